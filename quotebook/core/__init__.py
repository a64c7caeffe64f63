"""quotebook core - the QuoteBook facade.

    from quotebook.core import QuoteBook
"""

from quotebook.core.quotebook_class import QuoteBook

__all__ = ["QuoteBook"]
