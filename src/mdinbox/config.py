#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/config.py
"""Configuration for the remote store and editor sessions.

Settings are read from a TOML file (``~/.config/mdinbox/config.toml`` by
default) and may be overridden by environment variables, which take
precedence over the file:

- ``MDINBOX_TOKEN``: API token
- ``MDINBOX_REPO``: repository as ``owner/name``
- ``MDINBOX_FOLDER``: folder holding documents (default ``/inbox``)
- ``MDINBOX_API_BASE``: API base URL (default ``https://api.github.com``)

The file layout is::

    [remote]
    token = "..."
    repository = "owner/name"
    folder = "/inbox"

Classes
-------
- RemoteConfig: Immutable remote store settings
- SessionOptions: Immutable editor session settings
- ConfigStore: Reads and writes the configuration file

"""

from __future__ import annotations

import logging
import os
import re
import sys
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

if sys.version_info >= (3, 11):
    import tomllib
    from typing import Self
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]
    from typing_extensions import Self

import tomli_w

from mdinbox.constants import (
    CONFIG_FILENAME,
    DEFAULT_API_BASE,
    DEFAULT_AUTOSAVE_INTERVAL,
    DEFAULT_CONFIG_DIR,
    DEFAULT_REMOTE_FOLDER,
    DEFAULT_REQUEST_TIMEOUT,
    ENV_API_BASE,
    ENV_FOLDER,
    ENV_REPO,
    ENV_TOKEN,
)
from mdinbox.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_REPOSITORY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def normalize_folder(folder: str) -> str:
    """Return ``folder`` as a repository path: one leading ``/`` and any trailing ``/`` removed.

    Examples
    --------
        >>> normalize_folder("/inbox/")
        'inbox'
        >>> normalize_folder("/")
        ''

    """
    if folder.startswith("/"):
        folder = folder[1:]
    return folder.rstrip("/")


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities."""

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)


@dataclass(frozen=True)
class RemoteConfig(CloneFrozenMixin):
    """Remote store settings.

    Parameters
    ----------
    token : str or None
        API token; never included in ``repr`` or logs
    repository : str or None
        Repository as ``owner/name``
    folder : str, default = "/inbox"
        Folder holding documents; a single leading ``/`` is ignored
    api_base : str, default = "https://api.github.com"
        API base URL
    timeout : float, default = 30.0
        Request timeout in seconds

    """

    token: Optional[str] = field(default=None, repr=False)
    repository: Optional[str] = None
    folder: str = DEFAULT_REMOTE_FOLDER
    api_base: str = DEFAULT_API_BASE
    timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def is_configured(self) -> bool:
        """Return True when both token and repository are set."""
        return not self.missing_settings()

    def missing_settings(self) -> list[str]:
        """Return the names of required settings that are not set."""
        missing = []
        if not self.token:
            missing.append("token")
        if not self.repository:
            missing.append("repository")
        return missing

    @property
    def normalized_folder(self) -> str:
        """Return the folder as a repository path, see :func:`normalize_folder`."""
        return normalize_folder(self.folder)

    def validate(self) -> None:
        """Validate the settings that are present.

        Raises
        ------
        ConfigurationError
            If the repository is not ``owner/name`` or the timeout is not positive

        """
        if self.repository and not _REPOSITORY_PATTERN.match(self.repository):
            raise ConfigurationError(f"Repository must be in the form owner/name, got {self.repository!r}")
        if self.timeout <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {self.timeout}")
        if not self.api_base.startswith(("https://", "http://")):
            raise ConfigurationError(f"API base must be an http(s) URL, got {self.api_base!r}")


@dataclass(frozen=True)
class SessionOptions(CloneFrozenMixin):
    """Editor session settings.

    Parameters
    ----------
    autosave_interval : float, default = 1.0
        Seconds between autosave passes
    data_dir : Path or None, default = None
        Directory of the durable slot; None keeps the draft in memory only
    remote : RemoteConfig
        Remote store settings

    """

    autosave_interval: float = DEFAULT_AUTOSAVE_INTERVAL
    data_dir: Optional[Path] = None
    remote: RemoteConfig = field(default_factory=RemoteConfig)


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Return remote settings found in the environment.

    Parameters
    ----------
    environ : mapping, optional
        Environment to read; defaults to ``os.environ``

    Returns
    -------
    dict
        RemoteConfig field names mapped to their non-empty values

    """
    environ = os.environ if environ is None else environ
    mapping = {
        ENV_TOKEN: "token",
        ENV_REPO: "repository",
        ENV_FOLDER: "folder",
        ENV_API_BASE: "api_base",
    }
    overrides = {}
    for variable, name in mapping.items():
        value = environ.get(variable, "").strip()
        if value:
            overrides[name] = value
            logger.debug(f"Using {variable} from environment")
    return overrides


class ConfigStore:
    """Read and write the mdinbox configuration file.

    Parameters
    ----------
    path : str or Path, optional
        Configuration file; defaults to ``~/.config/mdinbox/config.toml``

    """

    def __init__(self, path: Union[str, Path, None] = None) -> None:
        """Initialize the store location."""
        self.path = Path(path) if path is not None else DEFAULT_CONFIG_DIR / CONFIG_FILENAME

    def read(self) -> dict[str, Any]:
        """Read the raw ``[remote]`` table, or an empty dict when the file is absent.

        Raises
        ------
        ConfigurationError
            If the file cannot be read or is not valid TOML

        """
        if not self.path.exists():
            logger.debug(f"No configuration file at {self.path}")
            return {}
        try:
            with open(self.path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(
                f"Invalid TOML in config file {self.path}: {e}", config_path=str(self.path), original_error=e
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Error reading config file {self.path}: {e}", config_path=str(self.path), original_error=e
            ) from e

        remote = data.get("remote", {})
        if not isinstance(remote, dict):
            raise ConfigurationError(
                f"[remote] in {self.path} must be a table, got {type(remote).__name__}", config_path=str(self.path)
            )
        return remote

    def load(self, environ: Optional[Mapping[str, str]] = None, use_env: bool = True) -> RemoteConfig:
        """Load remote settings from the file, then apply environment overrides.

        Raises
        ------
        ConfigurationError
            If the file is invalid or a value has the wrong type

        """
        stored = self.read()
        values: dict[str, Any] = {
            name: stored[name] for name in ("token", "repository", "folder", "api_base", "timeout") if name in stored
        }
        if use_env:
            values.update(env_overrides(environ))

        if "timeout" in values:
            try:
                values["timeout"] = float(values["timeout"])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Timeout must be a number, got {values['timeout']!r}", config_path=str(self.path), original_error=e
                ) from e
        for name in ("token", "repository", "folder", "api_base"):
            if name in values and not isinstance(values[name], str):
                raise ConfigurationError(
                    f"Setting '{name}' must be a string, got {type(values[name]).__name__}",
                    config_path=str(self.path),
                )

        config = RemoteConfig(**values)
        config.validate()
        return config

    def save(self, config: RemoteConfig) -> Path:
        """Write remote settings to the file.

        The settings are written to an owner-only temporary file in the same
        directory which then replaces the config file, so the API token is
        never readable by others and a failed write leaves the old file intact.

        Returns
        -------
        Path
            The written file

        Raises
        ------
        ConfigurationError
            If the file cannot be written

        """
        config.validate()
        remote: dict[str, Any] = {"folder": config.folder, "api_base": config.api_base, "timeout": config.timeout}
        if config.token:
            remote["token"] = config.token
        if config.repository:
            remote["repository"] = config.repository

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}-", suffix=".tmp", dir=self.path.parent)
            try:
                with os.fdopen(fd, "wb") as f:
                    tomli_w.dump({"remote": remote}, f)
                os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, self.path)
            finally:
                # No-op once the replace succeeded
                Path(tmp_name).unlink(missing_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Error writing config file {self.path}: {e}", config_path=str(self.path), original_error=e
            ) from e

        logger.info(f"Saved configuration to {self.path}")
        return self.path


def load_remote_config(
    path: Union[str, Path, None] = None, environ: Optional[Mapping[str, str]] = None
) -> RemoteConfig:
    """Load remote settings from ``path`` and the environment."""
    return ConfigStore(path).load(environ=environ)


__all__ = [
    "CloneFrozenMixin",
    "ConfigStore",
    "RemoteConfig",
    "SessionOptions",
    "env_overrides",
    "load_remote_config",
    "normalize_folder",
]
