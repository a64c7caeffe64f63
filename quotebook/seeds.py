"""Built-in quotes used when no usable collection is stored."""

from datetime import datetime
from typing import List, Optional

from quotebook.types import Item, Origin, utc_now

SEED_QUOTES = [
    ("seed-1", "The best way to predict the future is to invent it.", "Inspiration"),
    ("seed-2", "Life is what happens when you're busy making other plans.", "Life"),
    ("seed-3", "Simplicity is the ultimate sophistication.", "Wisdom"),
    (
        "seed-4",
        "Do not go where the path may lead; go instead where there is no path and leave a trail.",
        "Motivation",
    ),
]


def default_seed_items(now: Optional[datetime] = None) -> List[Item]:
    now = now or utc_now()
    return [
        Item(id=seed_id, text=text, category=category, origin=Origin.SEED, revised_at=now)
        for seed_id, text, category in SEED_QUOTES
    ]
