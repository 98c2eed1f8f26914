"""Command-line interface for the mdinbox markdown inbox.

The CLI drives the editor core without a visual editor: it stores the
remote settings, saves markdown files or the cached draft as new documents,
lists and searches remote documents, and edits the cached draft.

Environment Variable Support
----------------------------
Remote settings can be supplied with ``MDINBOX_TOKEN``, ``MDINBOX_REPO``,
``MDINBOX_FOLDER`` and ``MDINBOX_API_BASE``, which override the
configuration file. ``MDINBOX_CONFIG`` and ``MDINBOX_DATA_DIR`` set the
defaults of ``--config`` and ``--data-dir``.

Examples
--------
Store settings and check the token::

    $ mdinbox configure --token ghp_xxx --repo alice/notes --list-repos

Save a file as a new document::

    $ mdinbox save idea.md

Append to the cached draft, then save it::

    $ mdinbox draft append "remember the milk"
    $ mdinbox save

Search remote documents::

    $ mdinbox list milk

"""

import argparse
import logging
import sys

from mdinbox.cli.builder import EXIT_ERROR, create_parser, get_exit_code_for_exception
from mdinbox.cli.commands import dispatch_command
from mdinbox.exceptions import MdInboxError
from mdinbox.logging_utils import configure_logging

logger = logging.getLogger(__name__)


def _setup_logging_level(parsed_args: argparse.Namespace) -> None:
    """Set up logging level based on command-line arguments.

    Parameters
    ----------
    parsed_args : argparse.Namespace
        Parsed command-line arguments

    """
    # --trace takes highest precedence, then --verbose, then --log-level
    if parsed_args.trace:
        log_level = logging.DEBUG
    elif parsed_args.verbose and parsed_args.log_level == "WARNING":
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, parsed_args.log_level.upper())

    configure_logging(log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)


def main(args: list[str] | None = None) -> int:
    """Execute the mdinbox CLI and return its exit code."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    _setup_logging_level(parsed_args)

    try:
        return dispatch_command(parsed_args)
    except MdInboxError as e:
        logger.debug(f"{parsed_args.command} failed", exc_info=True)
        print(f"Error: {e.message}", file=sys.stderr)
        return get_exit_code_for_exception(e)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return get_exit_code_for_exception(e)
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
