"""Sync and conflict commands for the quotebook CLI."""

import time
from typing import TYPE_CHECKING

from quotebook.cli.commands.helpers import format_quote, print_json
from quotebook.types import SyncResult

if TYPE_CHECKING:
    from quotebook import QuoteBook


def _print_result(result: SyncResult):
    if result.skipped:
        print("Sync skipped: another cycle is still running")
        return
    if result.errors:
        print("⚠ Sync failed. Check your connection.")
        for err in result.errors[:5]:
            print(f"  - {err}")
        return
    print(f"✓ Sync complete. {result.pulled} remote item(s) merged, {result.pushed} published.")
    if result.conflicts:
        print(f"  {result.conflict_count} conflict(s) detected (run `quotebook conflicts list`)")


def cmd_sync(args, book: "QuoteBook"):
    """Handle sync subcommands."""
    if book.remote is None:
        print("✗ No remote source configured (set QUOTEBOOK_REMOTE_URL)")
        raise SystemExit(1)

    if args.sync_action == "run":
        result = book.sync()
        if args.json:
            print_json(result.to_dict())
        else:
            _print_result(result)
        if result.errors:
            raise SystemExit(1)

    elif args.sync_action == "status":
        status = book.get_sync_status()
        if args.json:
            print_json(status)
            return
        print(f"Remote:            {status['remote_url']}")
        print(f"Pending publish:   {status['pending_publish']}")
        print(f"Pending conflicts: {status['conflicts']}")
        print(f"Last sync:         {status['last_sync_time'] or 'never'}")

    elif args.sync_action == "watch":
        scheduler = book.start_auto_sync(interval=args.interval)
        print(f"Syncing every {scheduler.interval:.0f}s (Ctrl-C to stop)")
        first = scheduler.trigger()
        _print_result(first)
        # --cycles counts scheduled ticks only, not the immediate one above
        baseline = scheduler.ticks
        try:
            while args.cycles is None or scheduler.ticks - baseline < args.cycles:
                time.sleep(min(0.5, scheduler.interval))
        except KeyboardInterrupt:
            pass
        finally:
            book.stop_auto_sync()


def cmd_conflicts(args, book: "QuoteBook"):
    """Handle conflict subcommands."""
    if args.conflicts_action == "list":
        conflicts = book.conflicts
        if args.json:
            print_json([c.to_dict() for c in conflicts])
            return
        if not conflicts:
            print("No conflicts")
            return
        for c in conflicts:
            print(f"ID: {c.id}")
            print(f"  Remote: {format_quote(c.remote)}")
            print(f"  Local:  {format_quote(c.local)}")

    elif args.conflicts_action == "resolve":
        if args.use == "remote":
            resolved = book.resolve_use_remote(args.id)
        else:
            resolved = book.resolve_keep_local(args.id)
        if not resolved:
            print(f"✗ No pending conflict with id {args.id}")
            raise SystemExit(1)
        print(f"✓ Conflict resolved: used {args.use} version.")

    elif args.conflicts_action == "resolve-all":
        count = book.resolve_all(args.use)
        print(f"✓ Resolved {count} conflict(s) using the {args.use} version")
