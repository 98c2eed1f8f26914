#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the mdinbox library.

This module defines specialized exception classes for the error conditions
that can occur while editing, persisting and synchronizing documents. These
exceptions provide more specific error information than generic built-ins.

Exception Hierarchy
-------------------
- MdInboxError (base exception)

  - ValidationError (parameter/value validation)
    - NodeError (document tree invariant violations)
    - ConfigurationError (unreadable or invalid configuration)

  - SyncError (remote store failures)
    - NotConfiguredError (missing token or repository)
    - RemoteRejectedError (API answered with an error body)
      - RemoteNotFoundError (404 on a path)
    - TransportError (network failure or timeout)

  - PreviewUnavailableError (a single preview fetch failed)

  - SessionLockedError (mutation attempted while a save is in flight)

Unparseable markdown never raises: it degrades to literal text and is
recorded by the deserializer instead.

"""

from typing import Any


class MdInboxError(Exception):
    """Base exception class for all mdinbox-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(MdInboxError):
    """Exception raised for invalid input parameters or values.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class NodeError(ValidationError):
    """Exception raised when a document tree invariant would be violated.

    Raised for out-of-range heading levels, invalid image sizes, unknown
    node type tags on import, and attaching a node that already has an owner.
    """


class ConfigurationError(ValidationError):
    """Exception raised when the configuration file cannot be read or is invalid.

    Parameters
    ----------
    message : str
        Description of the configuration problem
    config_path : str, optional
        Path of the configuration file involved
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(self, message: str, config_path: str | None = None, original_error: Exception | None = None):
        """Initialize the configuration error."""
        super().__init__(message, parameter_name="config", parameter_value=config_path, original_error=original_error)
        self.config_path = config_path


class SyncError(MdInboxError):
    """Base exception for remote store failures.

    Sync errors are reported once to the immediate caller and never retried
    automatically.
    """


class NotConfiguredError(SyncError):
    """Exception raised when the token or repository has not been configured.

    Parameters
    ----------
    missing : list[str], optional
        Names of the missing settings
    message : str, optional
        Custom error message

    """

    def __init__(self, missing: list[str] | None = None, message: str | None = None):
        """Initialize the not-configured error."""
        self.missing = missing or []
        if message is None:
            if self.missing:
                message = f"Remote store is not configured (missing: {', '.join(self.missing)})"
            else:
                message = "Remote store is not configured"
        super().__init__(message)


class RemoteRejectedError(SyncError):
    """Exception raised when the remote API answers with an error status.

    Parameters
    ----------
    message : str
        Error message reported by the server, surfaced verbatim
    status_code : int, optional
        HTTP status code of the response
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(self, message: str, status_code: int | None = None, original_error: Exception | None = None):
        """Initialize the rejection error with the server status code."""
        super().__init__(message, original_error=original_error)
        self.status_code = status_code


class RemoteNotFoundError(RemoteRejectedError):
    """Exception raised when the remote path does not exist (HTTP 404)."""

    def __init__(self, path: str, message: str | None = None):
        """Initialize the not-found error."""
        super().__init__(message or f"Not Found: {path}", status_code=404)
        self.path = path


class TransportError(SyncError):
    """Exception raised when the remote API could not be reached.

    Covers connection failures, timeouts and malformed responses.
    """


class PreviewUnavailableError(MdInboxError):
    """Exception raised when a single document preview cannot be fetched.

    Parameters
    ----------
    path : str
        Remote path of the document
    original_error : Exception, optional
        The underlying failure

    """

    def __init__(self, path: str, original_error: Exception | None = None):
        """Initialize the preview error."""
        super().__init__(f"Preview unavailable for {path}", original_error=original_error)
        self.path = path


class SessionLockedError(MdInboxError):
    """Exception raised when the document is mutated while a save is in flight."""

    def __init__(self, operation: str):
        """Initialize the locked error with the rejected operation name."""
        super().__init__(f"Cannot {operation}: the editor is read-only while a save is in flight")
        self.operation = operation
