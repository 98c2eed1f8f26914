#  Copyright (c) 2025 Tom Villani, Ph.D.

# src/mdinbox/cli/commands.py
"""CLI command handlers for mdinbox.

Each handler receives the parsed arguments and returns an exit code. Remote
handlers accept an optional ``transport`` so that they can run against a
mock API.
"""

from __future__ import annotations

import argparse
import json
import logging
import mimetypes
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

import httpx

from mdinbox.cli.builder import EXIT_ERROR, EXIT_SUCCESS, EXIT_VALIDATION_ERROR
from mdinbox.config import ConfigStore, RemoteConfig, SessionOptions
from mdinbox.persistence import FileSlot, MemorySlot
from mdinbox.remote import DocumentEntry, DocumentIndex, cross_reference_token, list_repositories, search
from mdinbox.session import EditorSession

logger = logging.getLogger(__name__)


def _console() -> Any:
    from rich.console import Console

    return Console()


def _mask_token(token: Optional[str]) -> str:
    if not token:
        return "(not set)"
    return f"****{token[-4:]}" if len(token) > 8 else "****"


def _load_remote(args: argparse.Namespace) -> RemoteConfig:
    return ConfigStore(args.config).load()


def _draft_session(args: argparse.Namespace) -> EditorSession:
    """Open a session on the cached draft without remote settings."""
    session = EditorSession(SessionOptions(data_dir=Path(args.data_dir)))
    session.hydrate()
    return session


# ----------------------------------------------------------------------
# configure
# ----------------------------------------------------------------------


def handle_configure_command(args: argparse.Namespace, transport: Optional[httpx.BaseTransport] = None) -> int:
    """Handle ``mdinbox configure``.

    Given settings are merged into the stored configuration file. With
    ``--list-repos`` the token is validated against the API first and the
    accessible repositories are printed; nothing is saved if that fails.
    """
    store = ConfigStore(args.config)
    current = store.load(use_env=False)

    updates = {
        name: value
        for name, value in (
            ("token", args.token),
            ("repository", args.repository),
            ("folder", args.folder),
            ("api_base", args.api_base),
        )
        if value is not None
    }
    config = current.create_updated(**updates) if updates else current
    config.validate()

    if args.list_repos:
        repositories = list_repositories(config.token or "", config.api_base, config.timeout, transport=transport)
        _render_repositories(repositories)

    if updates and not args.show:
        path = store.save(config)
        print(f"Configuration saved to {path}")

    if args.show or not updates and not args.list_repos:
        _render_settings(config, store.path)

    return EXIT_SUCCESS


def _render_settings(config: RemoteConfig, path: Path) -> None:
    from rich.table import Table

    table = Table(title=f"Settings ({path})", show_header=False)
    table.add_column("Setting", style="bold cyan")
    table.add_column("Value")
    table.add_row("token", _mask_token(config.token))
    table.add_row("repository", config.repository or "(not set)")
    table.add_row("folder", config.folder)
    table.add_row("api_base", config.api_base)
    _console().print(table)

    missing = config.missing_settings()
    if missing:
        print(f"Remote store not configured; missing: {', '.join(missing)}", file=sys.stderr)


def _render_repositories(repositories: list[dict[str, Any]]) -> None:
    from rich.table import Table

    table = Table(title=f"Repositories ({len(repositories)})")
    table.add_column("Repository", style="bold cyan")
    table.add_column("Visibility")
    table.add_column("Updated", style="dim")
    for repo in repositories:
        visibility = "private" if repo.get("private") else "public"
        table.add_row(str(repo.get("full_name", "")), visibility, str(repo.get("updated_at", "")))
    _console().print(table)


# ----------------------------------------------------------------------
# save
# ----------------------------------------------------------------------


def handle_save_command(args: argparse.Namespace, transport: Optional[httpx.BaseTransport] = None) -> int:
    """Handle ``mdinbox save``.

    Without a file argument the cached draft is saved and, on success,
    removed. A file or stdin is saved without touching the cached draft.
    """
    remote = _load_remote(args)
    options = SessionOptions(data_dir=Path(args.data_dir), remote=remote)

    if args.file:
        session = EditorSession(options, slot=MemorySlot(), transport=transport)
        text = sys.stdin.read() if args.file == "-" else Path(args.file).read_text(encoding="utf-8")
        session.load_markdown(text)
    else:
        session = EditorSession(options, transport=transport)
        session.hydrate()

    if session.is_empty():
        print("Nothing to save: the document is empty", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    receipt = session.save_remote()
    if receipt is None:
        print("A save is already in progress; request dropped", file=sys.stderr)
        return EXIT_ERROR

    _console().print(f"[green]Saved[/green] {remote.repository}:{receipt.path}")
    print(cross_reference_token(receipt.filename))
    return EXIT_SUCCESS


# ----------------------------------------------------------------------
# list
# ----------------------------------------------------------------------


def handle_list_command(args: argparse.Namespace, transport: Optional[httpx.BaseTransport] = None) -> int:
    """Handle ``mdinbox list``."""
    index = DocumentIndex(_load_remote(args), transport=transport)
    entries = search(index.list_documents(), args.query)

    if args.json:
        print(json.dumps([{**asdict(entry), "reference": entry.reference} for entry in entries], indent=2))
        return EXIT_SUCCESS

    if not entries:
        print("No documents found.")
        return EXIT_SUCCESS

    _render_entries(entries)
    return EXIT_SUCCESS


def _render_entries(entries: list[DocumentEntry]) -> None:
    from rich.table import Table

    table = Table(title=f"Documents ({len(entries)})")
    table.add_column("Name", style="bold cyan", no_wrap=True)
    table.add_column("Reference", style="dim", no_wrap=True)
    table.add_column("Preview")
    for entry in entries:
        table.add_row(entry.name, entry.reference, entry.preview)
    _console().print(table)


# ----------------------------------------------------------------------
# draft
# ----------------------------------------------------------------------


def handle_draft_command(args: argparse.Namespace) -> int:
    """Handle ``mdinbox draft`` actions on the cached draft."""
    action = args.draft_action
    slot = FileSlot(Path(args.data_dir))

    if action == "path":
        print(slot.path)
        return EXIT_SUCCESS

    if action == "show":
        cached = slot.get()
        if not cached:
            print("No cached draft.", file=sys.stderr)
            return EXIT_SUCCESS
        print(cached)
        return EXIT_SUCCESS

    if action == "clear":
        slot.remove()
        print("Cached draft removed.")
        return EXIT_SUCCESS

    session = _draft_session(args)
    if action == "append":
        session.insert_literal(args.text)
    elif action == "link":
        session.insert_literal(cross_reference_token(args.name))
    elif action == "add-image":
        path = Path(args.image)
        mime_type = args.mime_type or mimetypes.guess_type(path.name)[0]
        image = session.insert_pasted_image(path.read_bytes(), mime_type)
        logger.info(f"Embedded {path.name} as '{image.alt_text}'")
    else:
        print(f"Unknown draft action: {action}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    session.close()
    print(f"Draft updated ({len(session.serialize())} characters)")
    return EXIT_SUCCESS


COMMANDS = {
    "configure": handle_configure_command,
    "save": handle_save_command,
    "list": handle_list_command,
}


def dispatch_command(args: argparse.Namespace, transport: Optional[httpx.BaseTransport] = None) -> int:
    """Run the handler for ``args.command``."""
    if args.command == "draft":
        return handle_draft_command(args)
    handler = COMMANDS.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR
    return handler(args, transport=transport)


__all__ = [
    "dispatch_command",
    "handle_configure_command",
    "handle_draft_command",
    "handle_list_command",
    "handle_save_command",
]
