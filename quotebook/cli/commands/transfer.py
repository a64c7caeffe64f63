"""Import and export commands for the quotebook CLI."""

from typing import TYPE_CHECKING

from quotebook.cli.commands.helpers import print_json
from quotebook.protocols import ImportValidationError

if TYPE_CHECKING:
    from quotebook import QuoteBook


def cmd_export(args, book: "QuoteBook"):
    """Write the collection as JSON to a file, or to stdout."""
    if args.path:
        book.export_json(args.path)
        print(f"✓ Exported {len(book.collection)} quote(s) to {args.path}")
    else:
        print(book.export_json())


def cmd_import(args, book: "QuoteBook"):
    try:
        result = book.import_file(args.path)
    except FileNotFoundError as e:
        print(f"✗ {e}")
        raise SystemExit(1)
    except ImportValidationError as e:
        print(f"✗ Invalid import file: {e}")
        raise SystemExit(1)

    if args.json:
        print_json({"received": result.received, "added": result.added, "total": result.total})
    else:
        print(f"✓ Imported {result.added} new quote(s)")
