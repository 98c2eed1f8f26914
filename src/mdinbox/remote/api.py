#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/remote/api.py
"""HTTP client for the GitHub-compatible repository contents API.

All requests carry ``Authorization: token {token}`` and
``Accept: application/vnd.github.v3+json``. Failures are mapped to the
:class:`~mdinbox.exceptions.SyncError` hierarchy:

- connection failures, timeouts and malformed bodies raise
  :class:`~mdinbox.exceptions.TransportError`
- HTTP 404 raises :class:`~mdinbox.exceptions.RemoteNotFoundError`
- any other non-2xx status raises
  :class:`~mdinbox.exceptions.RemoteRejectedError` carrying the server's
  ``message`` verbatim

Nothing is retried.

"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from mdinbox.config import RemoteConfig
from mdinbox.constants import (
    DEFAULT_API_BASE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_USER_AGENT,
    GITHUB_ACCEPT_HEADER,
    REPOSITORY_LIST_PAGE_SIZE,
)
from mdinbox.exceptions import (
    NotConfiguredError,
    RemoteNotFoundError,
    RemoteRejectedError,
    TransportError,
)

logger = logging.getLogger(__name__)


def create_api_client(
    token: str,
    api_base: str = DEFAULT_API_BASE,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create an httpx client configured for the contents API.

    Parameters
    ----------
    token : str
        API token sent in the ``Authorization`` header
    api_base : str, default = "https://api.github.com"
        Base URL of the API
    timeout : float, default = 30.0
        Request timeout in seconds
    transport : httpx.BaseTransport, optional
        Custom transport, e.g. ``httpx.MockTransport`` in tests

    Returns
    -------
    httpx.Client
        Client with base URL, headers and logging hooks

    """

    def log_request(request: httpx.Request) -> None:
        logger.debug(f"{request.method} {request.url}")

    def log_response(response: httpx.Response) -> None:
        logger.debug(f"{response.request.method} {response.request.url} -> {response.status_code}")

    return httpx.Client(
        base_url=api_base.rstrip("/"),
        headers={
            "Authorization": f"token {token}",
            "Accept": GITHUB_ACCEPT_HEADER,
            "User-Agent": DEFAULT_USER_AGENT,
        },
        timeout=timeout,
        transport=transport,
        event_hooks={"request": [log_request], "response": [log_response]},
    )


class ContentsApiClient:
    """Repository contents operations used by the sync client and the index.

    Parameters
    ----------
    config : RemoteConfig
        Remote settings; token and repository are required
    transport : httpx.BaseTransport, optional
        Custom transport for the underlying httpx client

    Raises
    ------
    NotConfiguredError
        If the token or repository is missing

    """

    def __init__(self, config: RemoteConfig, transport: Optional[httpx.BaseTransport] = None) -> None:
        """Create the underlying HTTP client."""
        missing = config.missing_settings()
        if missing:
            raise NotConfiguredError(missing)
        self.config = config
        self._client = create_api_client(
            config.token or "", api_base=config.api_base, timeout=config.timeout, transport=transport
        )

    def __enter__(self) -> ContentsApiClient:
        """Enter the client context."""
        return self

    def __exit__(self, *exc_info: Any) -> None:
        """Close the client on context exit."""
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def contents_url(self, path: str) -> str:
        """Return the API path of ``path`` inside the configured repository."""
        return f"/repos/{self.config.repository}/contents/{quote(path, safe='/')}"

    def get_contents(self, path: str) -> Any:
        """Fetch a directory listing or file metadata.

        Parameters
        ----------
        path : str
            Repository-relative path; empty for the repository root

        Returns
        -------
        list or dict
            Listing entries for a directory, file metadata with base64
            ``content`` for a file

        """
        return _json_body(self._request("GET", self.contents_url(path), path), path)

    def put_contents(self, path: str, message: str, content: str) -> dict[str, Any]:
        """Create an object at ``path`` with base64 ``content`` in one request.

        Returns
        -------
        dict
            Response body (``content`` and ``commit`` metadata)

        """
        body = {"message": message, "content": content}
        data = _json_body(self._request("PUT", self.contents_url(path), path, json=body), path)
        return data if isinstance(data, dict) else {}

    def list_repositories(self) -> list[dict[str, Any]]:
        """List repositories visible to the token, most recently updated first."""
        return _list_repositories(self._client)

    def _request(self, method: str, url: str, path: str, **kwargs: Any) -> httpx.Response:
        response = _send(self._client, method, url, **kwargs)
        _raise_for_status(response, path)
        return response


def list_repositories(
    token: str,
    api_base: str = DEFAULT_API_BASE,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> list[dict[str, Any]]:
    """Validate ``token`` and list the repositories it can access.

    Raises
    ------
    NotConfiguredError
        If ``token`` is empty
    RemoteRejectedError
        If the token is rejected
    TransportError
        If the API cannot be reached

    """
    if not token:
        raise NotConfiguredError(["token"])
    with create_api_client(token, api_base=api_base, timeout=timeout, transport=transport) as client:
        return _list_repositories(client)


def _list_repositories(client: httpx.Client) -> list[dict[str, Any]]:
    params = {"sort": "updated", "per_page": REPOSITORY_LIST_PAGE_SIZE}
    response = _send(client, "GET", "/user/repos", params=params)
    _raise_for_status(response, "/user/repos")
    data = _json_body(response, "/user/repos")
    if not isinstance(data, list):
        raise TransportError("Malformed repository listing: expected a JSON array")
    return data


def _send(client: httpx.Client, method: str, url: str, **kwargs: Any) -> httpx.Response:
    try:
        return client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        raise TransportError(f"Request timed out: {method} {url}", original_error=e) from e
    except httpx.HTTPError as e:
        raise TransportError(f"Request failed: {method} {url}: {e}", original_error=e) from e


def _raise_for_status(response: httpx.Response, path: str) -> None:
    if response.is_success:
        return
    message = _error_message(response)
    if response.status_code == 404:
        raise RemoteNotFoundError(path, message=message)
    raise RemoteRejectedError(message, status_code=response.status_code)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text.strip() or response.reason_phrase or f"HTTP {response.status_code}"


def _json_body(response: httpx.Response, path: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise TransportError(f"Malformed response for {path}: not JSON", original_error=e) from e


__all__ = ["ContentsApiClient", "create_api_client", "list_repositories"]
