#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_config.py
"""Unit tests for configuration loading and saving."""

import os
import stat
import sys

import pytest

from mdinbox.config import ConfigStore, RemoteConfig, SessionOptions, env_overrides, load_remote_config
from mdinbox.exceptions import ConfigurationError


@pytest.mark.unit
class TestRemoteConfig:
    """Tests for the remote settings dataclass."""

    def test_defaults(self):
        """Test default folder and API base."""
        config = RemoteConfig()
        assert config.folder == "/inbox"
        assert config.api_base == "https://api.github.com"
        assert config.missing_settings() == ["token", "repository"]
        assert not config.is_configured

    def test_token_not_in_repr(self):
        """Test that the token is never shown."""
        assert "secret" not in repr(RemoteConfig(token="secret", repository="a/b"))

    @pytest.mark.parametrize(
        "folder,expected",
        [("/inbox", "inbox"), ("inbox", "inbox"), ("inbox/", "inbox"), ("/inbox/", "inbox"), ("", ""), ("/", "")],
    )
    def test_normalized_folder(self, folder, expected):
        """Test that a single leading slash and trailing slashes are ignored."""
        assert RemoteConfig(folder=folder).normalized_folder == expected

    def test_create_updated(self):
        """Test cloning with changes."""
        config = RemoteConfig(repository="a/b")
        updated = config.create_updated(folder="/notes")
        assert updated.folder == "/notes"
        assert updated.repository == "a/b"
        assert config.folder == "/inbox"

    @pytest.mark.parametrize(
        "kwargs",
        [{"repository": "no-slash"}, {"repository": "a/b/c"}, {"timeout": 0}, {"api_base": "ftp://x"}],
    )
    def test_validate_rejects(self, kwargs):
        """Test invalid settings."""
        with pytest.raises(ConfigurationError):
            RemoteConfig(**kwargs).validate()

    def test_session_options_defaults(self):
        """Test session option defaults."""
        options = SessionOptions()
        assert options.autosave_interval == 1.0
        assert options.data_dir is None
        assert options.remote == RemoteConfig()


@pytest.mark.unit
class TestEnvOverrides:
    """Tests for environment overrides."""

    def test_reads_known_variables(self):
        """Test the variable to field mapping."""
        environ = {"MDINBOX_TOKEN": "t", "MDINBOX_REPO": "a/b", "MDINBOX_FOLDER": "/x", "MDINBOX_API_BASE": "http://h"}
        assert env_overrides(environ) == {"token": "t", "repository": "a/b", "folder": "/x", "api_base": "http://h"}

    def test_blank_values_ignored(self):
        """Test that empty variables do not override."""
        assert env_overrides({"MDINBOX_TOKEN": "  "}) == {}


@pytest.mark.unit
class TestConfigStore:
    """Tests for reading and writing the configuration file."""

    def test_missing_file_gives_defaults(self, tmp_path):
        """Test loading without a file."""
        assert ConfigStore(tmp_path / "none.toml").load(environ={}) == RemoteConfig()

    def test_save_and_load(self, tmp_path):
        """Test that saved settings load back."""
        store = ConfigStore(tmp_path / "cfg" / "config.toml")
        config = RemoteConfig(token="tok", repository="alice/notes", folder="/drafts")
        store.save(config)
        assert store.load(environ={}) == config

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_saved_file_is_private(self, tmp_path):
        """Test that the token file is readable by the owner only."""
        path = ConfigStore(tmp_path / "config.toml").save(RemoteConfig(token="tok"))
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_is_private_before_it_replaces_config(self, tmp_path, monkeypatch):
        """Test that the token only ever lands in an owner-only file."""
        modes = []
        real_replace = os.replace

        def recording_replace(src, dst):
            modes.append(stat.S_IMODE(os.stat(src).st_mode))
            real_replace(src, dst)

        monkeypatch.setattr(os, "replace", recording_replace)
        ConfigStore(tmp_path / "config.toml").save(RemoteConfig(token="tok"))
        assert modes == [0o600]

    def test_overwrite_leaves_no_temporary_files(self, tmp_path):
        """Test that saving over an existing file replaces it."""
        store = ConfigStore(tmp_path / "config.toml")
        store.save(RemoteConfig(token="old"))
        store.save(RemoteConfig(token="new", repository="alice/notes"))
        assert store.load(environ={}).token == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["config.toml"]

    def test_failed_write_keeps_previous_file(self, tmp_path, monkeypatch):
        """Test that a failed save leaves the old settings in place."""
        store = ConfigStore(tmp_path / "config.toml")
        store.save(RemoteConfig(token="old"))

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", failing_replace)
        with pytest.raises(ConfigurationError, match="disk full"):
            store.save(RemoteConfig(token="new"))
        assert store.load(environ={}).token == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["config.toml"]

    def test_environment_wins(self, tmp_path):
        """Test that environment values override the file."""
        store = ConfigStore(tmp_path / "config.toml")
        store.save(RemoteConfig(token="file-token", repository="alice/notes"))
        config = store.load(environ={"MDINBOX_TOKEN": "env-token"})
        assert config.token == "env-token"
        assert config.repository == "alice/notes"

    def test_environment_ignored_when_disabled(self, tmp_path):
        """Test loading the file alone."""
        store = ConfigStore(tmp_path / "config.toml")
        store.save(RemoteConfig(token="file-token"))
        assert store.load(environ={"MDINBOX_TOKEN": "env"}, use_env=False).token == "file-token"

    def test_invalid_toml(self, tmp_path):
        """Test that malformed files raise with the path attached."""
        path = tmp_path / "config.toml"
        path.write_text("[remote\ntoken = ", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            ConfigStore(path).load(environ={})

    def test_remote_must_be_table(self, tmp_path):
        """Test that a scalar [remote] value is rejected."""
        path = tmp_path / "config.toml"
        path.write_text('remote = "x"\n', encoding="utf-8")
        with pytest.raises(ConfigurationError, match="must be a table"):
            ConfigStore(path).load(environ={})

    def test_wrong_value_type(self, tmp_path):
        """Test that non-string settings are rejected."""
        path = tmp_path / "config.toml"
        path.write_text("[remote]\ntoken = 42\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="must be a string"):
            ConfigStore(path).load(environ={})

    def test_invalid_repository_in_file(self, tmp_path):
        """Test that loaded settings are validated."""
        path = tmp_path / "config.toml"
        path.write_text('[remote]\nrepository = "nope"\n', encoding="utf-8")
        with pytest.raises(ConfigurationError, match="owner/name"):
            ConfigStore(path).load(environ={})

    def test_load_remote_config(self, tmp_path):
        """Test the module-level shortcut."""
        config = load_remote_config(tmp_path / "none.toml", environ={"MDINBOX_REPO": "a/b"})
        assert config.repository == "a/b"
