"""Read and display operations for QuoteBook: listing, filtering, random pick."""

import logging
import random
from typing import List, Optional

from quotebook.normalize import normalize
from quotebook.storage import ALL_CATEGORIES
from quotebook.types import Item

logger = logging.getLogger(__name__)


class LoaderMixin:
    """Category filtering and random selection."""

    def categories(self) -> List[str]:
        return self.collection.categories()

    def get_filter(self) -> str:
        """The persisted category filter; unknown categories read as 'all'."""
        saved = self.store.load_filter()
        if saved == ALL_CATEGORIES or saved in self.categories():
            return saved
        return ALL_CATEGORIES

    def set_filter(self, category: Optional[str]) -> str:
        category = category or ALL_CATEGORIES
        self.store.save_filter(category)
        return category

    def list_quotes(self, category: Optional[str] = None) -> List[Item]:
        """Quotes in a category, or in the persisted filter when none is given."""
        return self.collection.filter(category if category is not None else self.get_filter())

    def random_quote(self, category: Optional[str] = None) -> Optional[Item]:
        """Pick a random quote and remember it as the last displayed one.

        Returns:
            None when the selected category has no quotes.
        """
        pool = self.list_quotes(category)
        if not pool:
            return None
        choice = self._random.choice(pool)
        self.store.save_last_displayed(choice)
        return choice

    def last_displayed(self) -> Optional[Item]:
        record = self.store.load_last_displayed()
        if record is None:
            return None
        items = normalize([record])
        return items[0] if items else None

    def _make_random(self, seed: Optional[int] = None) -> random.Random:
        return random.Random(seed)
