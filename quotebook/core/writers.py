"""Quote write operations for QuoteBook."""

import logging

from quotebook.types import Item
from quotebook.validation import clean_quote

logger = logging.getLogger(__name__)


class WritersMixin:
    """Add, remove and clear quotes."""

    def add_quote(self, text: str, category: str) -> Item:
        """Add a quote typed in by the user.

        Raises:
            ValidationError: if ``clean_quote`` rejects a field.
            DuplicateItemError: if the same quote already exists.
        """
        text, category = clean_quote(text, category)
        return self.collection.add(text, category)

    def remove_quote(self, item_id: str) -> bool:
        removed = self.collection.remove(item_id)
        if removed:
            logger.info(f"Removed quote {item_id}")
        return removed

    def clear(self) -> int:
        """Remove every quote from the collection."""
        count = self.collection.clear()
        logger.warning(f"Cleared all quotes ({count} removed)")
        return count
