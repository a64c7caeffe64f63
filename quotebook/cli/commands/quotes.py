"""Quote commands for the quotebook CLI: list, add, remove, clear, filter, random."""

from typing import TYPE_CHECKING

from quotebook.cli.commands.helpers import format_quote, format_quote_line, print_json
from quotebook.protocols import DuplicateItemError

if TYPE_CHECKING:
    from quotebook import QuoteBook


def cmd_list(args, book: "QuoteBook"):
    """List quotes in a category (default: the saved filter)."""
    category = getattr(args, "category", None)
    items = book.list_quotes(category)

    if args.json:
        print_json([item.to_dict() for item in items])
        return

    shown = category or book.get_filter()
    if not items:
        print(f'No quotes found for "{"All" if shown == "all" else shown}"')
        return
    for item in items:
        print(format_quote_line(item))
    print(f"\n{len(items)} quote(s)")


def cmd_add(args, book: "QuoteBook"):
    try:
        item = book.add_quote(args.text, args.category)
    except DuplicateItemError as e:
        print(f"✗ {e}")
        raise SystemExit(1)
    print(f"✓ Quote added: {item.id}")


def cmd_remove(args, book: "QuoteBook"):
    if book.remove_quote(args.id):
        print(f"✓ Quote removed: {args.id}")
    else:
        print(f"✗ No quote with id {args.id}")
        raise SystemExit(1)


def cmd_clear(args, book: "QuoteBook"):
    if not args.yes:
        answer = input("This will remove ALL quotes. Continue? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Aborted.")
            return
    count = book.clear()
    print(f"✓ All quotes cleared ({count} removed)")


def cmd_categories(args, book: "QuoteBook"):
    categories = book.categories()
    if args.json:
        print_json(categories)
        return
    for category in categories:
        print(category)


def cmd_filter(args, book: "QuoteBook"):
    """Show or set the saved category filter."""
    if args.category:
        if args.category != "all" and args.category not in book.categories():
            print(f"✗ Unknown category: {args.category}")
            raise SystemExit(1)
        book.set_filter(args.category)
    print(f"Filter: {book.get_filter()}")


def cmd_random(args, book: "QuoteBook"):
    item = book.random_quote(getattr(args, "category", None))
    if item is None:
        print("No quotes available in this category")
        return
    if args.json:
        print_json(item.to_dict())
    else:
        print(format_quote(item))


def cmd_last(args, book: "QuoteBook"):
    item = book.last_displayed()
    if item is None:
        print("No quote displayed yet")
        return
    print(format_quote(item))
