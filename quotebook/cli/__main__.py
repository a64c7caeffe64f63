"""
quotebook CLI - command-line interface for the quote collection.

Usage:
    quotebook list [--category C] [--json]
    quotebook add TEXT CATEGORY
    quotebook remove ID
    quotebook clear [--yes]
    quotebook categories [--json]
    quotebook filter [CATEGORY]
    quotebook random [--category C] [--json]
    quotebook last
    quotebook export [PATH]
    quotebook import PATH [--json]
    quotebook sync run|status|watch
    quotebook conflicts list|resolve|resolve-all
    quotebook config
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from quotebook import QuoteBook
from quotebook.cli.commands.helpers import print_json
from quotebook.cli.commands.quotes import (
    cmd_add,
    cmd_categories,
    cmd_clear,
    cmd_filter,
    cmd_last,
    cmd_list,
    cmd_random,
    cmd_remove,
)
from quotebook.cli.commands.sync import cmd_conflicts, cmd_sync
from quotebook.cli.commands.transfer import cmd_export, cmd_import
from quotebook.config import load_config
from quotebook.logging_config import setup_quotebook_logging
from quotebook.protocols import QuotebookError

# Set up logging
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)


def cmd_config(args, book: QuoteBook):
    """Show the effective configuration."""
    print_json(book.config.to_dict())


COMMANDS = {
    "list": cmd_list,
    "add": cmd_add,
    "remove": cmd_remove,
    "clear": cmd_clear,
    "categories": cmd_categories,
    "filter": cmd_filter,
    "random": cmd_random,
    "last": cmd_last,
    "export": cmd_export,
    "import": cmd_import,
    "sync": cmd_sync,
    "conflicts": cmd_conflicts,
    "config": cmd_config,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quotebook", description="Personal quote collection with remote sync"
    )
    parser.add_argument("--data-dir", "-d", type=Path, help="Data directory (default: ~/.quotebook)")
    parser.add_argument("--offline", action="store_true", help="Disable the remote source")
    parser.add_argument("--log-level", help="Log level for the log file (default: from config)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # list
    p_list = subparsers.add_parser("list", help="List quotes")
    p_list.add_argument("--category", "-c", help="Category ('all' for every quote)")
    p_list.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # add
    p_add = subparsers.add_parser("add", help="Add a quote")
    p_add.add_argument("text", help="Quote text")
    p_add.add_argument("category", help="Quote category")

    # remove
    p_remove = subparsers.add_parser("remove", help="Remove a quote")
    p_remove.add_argument("id", help="Quote ID")

    # clear
    p_clear = subparsers.add_parser("clear", help="Remove ALL quotes")
    p_clear.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    # categories
    p_categories = subparsers.add_parser("categories", help="List categories")
    p_categories.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # filter
    p_filter = subparsers.add_parser("filter", help="Show or set the saved category filter")
    p_filter.add_argument("category", nargs="?", help="Category, or 'all'")

    # random
    p_random = subparsers.add_parser("random", help="Show a random quote")
    p_random.add_argument("--category", "-c", help="Category (default: saved filter)")
    p_random.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # last
    subparsers.add_parser("last", help="Show the last displayed quote")

    # export / import
    p_export = subparsers.add_parser("export", help="Export quotes as JSON")
    p_export.add_argument("path", nargs="?", help="Output file (default: stdout)")

    p_import = subparsers.add_parser("import", help="Import quotes from a JSON file")
    p_import.add_argument("path", help="JSON file with a list of {text, category} records")
    p_import.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # sync
    p_sync = subparsers.add_parser("sync", help="Sync with the remote source")
    sync_sub = p_sync.add_subparsers(dest="sync_action", required=True)

    sync_run = sync_sub.add_parser("run", help="Run one sync cycle now")
    sync_run.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    sync_status = sync_sub.add_parser("status", help="Show sync status")
    sync_status.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    sync_watch = sync_sub.add_parser("watch", help="Sync periodically until interrupted")
    sync_watch.add_argument("--interval", "-i", type=float, help="Seconds between cycles")
    sync_watch.add_argument("--cycles", "-n", type=int, help="Stop after N scheduled ticks")

    # conflicts
    p_conflicts = subparsers.add_parser("conflicts", help="Review sync conflicts")
    conflicts_sub = p_conflicts.add_subparsers(dest="conflicts_action", required=True)

    conflicts_list = conflicts_sub.add_parser("list", help="List pending conflicts")
    conflicts_list.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    conflicts_resolve = conflicts_sub.add_parser("resolve", help="Resolve one conflict")
    conflicts_resolve.add_argument("id", help="Conflict ID")
    conflicts_resolve.add_argument(
        "--use", "-u", choices=["remote", "local"], required=True, help="Version to keep"
    )

    conflicts_all = conflicts_sub.add_parser("resolve-all", help="Resolve every pending conflict")
    conflicts_all.add_argument(
        "--use", "-u", choices=["remote", "local"], required=True, help="Version to keep"
    )

    # config
    subparsers.add_parser("config", help="Show effective configuration")

    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Initialize QuoteBook with error handling
    try:
        config = load_config(args.data_dir)
        if args.offline:
            config.remote_url = None
        setup_quotebook_logging(level=args.log_level or config.log_level)
        book = QuoteBook(config=config)
    except (ValueError, TypeError, QuotebookError) as e:
        logger.error(f"Failed to initialize quotebook: {e}")
        sys.exit(1)

    # Dispatch with error handling
    try:
        COMMANDS[args.command](args, book)
    except (ValueError, TypeError) as e:
        logger.error(f"Input validation error: {e}")
        sys.exit(1)
    except QuotebookError as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)
    finally:
        book.close()


if __name__ == "__main__":
    main()
