#  Copyright (c) 2025 Tom Villani, Ph.D.

# src/mdinbox/cli/builder.py
"""Argument parser and exit codes for the mdinbox CLI."""

from __future__ import annotations

import argparse
import os

from mdinbox import __version__
from mdinbox.constants import DEFAULT_DATA_DIR, ENV_CONFIG, ENV_DATA_DIR
from mdinbox.exceptions import (
    ConfigurationError,
    NotConfiguredError,
    SyncError,
    ValidationError,
)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_VALIDATION_ERROR = 3
EXIT_FILE_ERROR = 4
EXIT_CONFIG_ERROR = 5
EXIT_REMOTE_ERROR = 6


def get_exit_code_for_exception(exception: Exception) -> int:
    """Map an exception to an appropriate CLI exit code.

    Parameters
    ----------
    exception : Exception
        The exception to map to an exit code

    Returns
    -------
    int
        The appropriate exit code for the exception type

    """
    if isinstance(exception, (ConfigurationError, NotConfiguredError)):
        return EXIT_CONFIG_ERROR

    if isinstance(exception, ValidationError):
        return EXIT_VALIDATION_ERROR

    if isinstance(exception, SyncError):
        return EXIT_REMOTE_ERROR

    if isinstance(exception, OSError):
        return EXIT_FILE_ERROR

    return EXIT_ERROR


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="mdinbox",
        description="Capture markdown drafts and file them into a repository inbox folder.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"mdinbox {__version__}")
    parser.add_argument(
        "--config",
        default=os.environ.get(ENV_CONFIG),
        help=f"Configuration file (default: ~/.config/mdinbox/config.toml, or ${ENV_CONFIG})",
    )
    parser.add_argument(
        "--data-dir",
        default=os.environ.get(ENV_DATA_DIR, str(DEFAULT_DATA_DIR)),
        help=f"Directory holding the cached draft (env: {ENV_DATA_DIR})",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Shortcut for --log-level DEBUG")
    parser.add_argument("--log-file", help="Also write log output to this file")
    parser.add_argument("--trace", action="store_true", help="Include timestamps and logger names in log output")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    configure = subparsers.add_parser(
        "configure",
        help="Store the token, repository and folder",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    configure.add_argument("--token", help="API token")
    configure.add_argument("--repo", dest="repository", help="Repository as owner/name")
    configure.add_argument("--folder", help="Folder holding documents")
    configure.add_argument("--api-base", help="API base URL")
    configure.add_argument(
        "--list-repos",
        action="store_true",
        help="Validate the token and list the repositories it can access",
    )
    configure.add_argument("--show", action="store_true", help="Print the effective settings without saving")

    save = subparsers.add_parser("save", help="Save a markdown file, or the cached draft, as a new document")
    save.add_argument("file", nargs="?", help="Markdown file to save; '-' reads stdin; omit to save the cached draft")

    listing = subparsers.add_parser("list", help="List remote documents with previews")
    listing.add_argument("query", nargs="?", default="", help="Case-insensitive filter over names and previews")
    listing.add_argument("--json", action="store_true", help="Emit entries as JSON")

    draft = subparsers.add_parser("draft", help="Inspect or edit the cached draft")
    draft_actions = draft.add_subparsers(dest="draft_action", metavar="ACTION")
    draft_actions.required = True
    draft_actions.add_parser("show", help="Print the cached draft")
    draft_actions.add_parser("clear", help="Remove the cached draft")
    draft_actions.add_parser("path", help="Print the location of the cached draft")
    append = draft_actions.add_parser("append", help="Append literal text to the cached draft")
    append.add_argument("text", help="Text appended as a literal run")
    image = draft_actions.add_parser("add-image", help="Embed an image file in the cached draft")
    image.add_argument("image", help="Image file")
    image.add_argument("--mime-type", help="MIME type of the image; detected when omitted")
    link = draft_actions.add_parser("link", help="Append a cross-reference to a remote document")
    link.add_argument("name", help="Document file name, e.g. 20240102030405.md")

    return parser


__all__ = [
    "EXIT_CONFIG_ERROR",
    "EXIT_ERROR",
    "EXIT_FILE_ERROR",
    "EXIT_REMOTE_ERROR",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "create_parser",
    "get_exit_code_for_exception",
]
