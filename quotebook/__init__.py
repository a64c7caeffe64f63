"""
quotebook - personal quote collection with remote reconciliation.
"""

from .core import QuoteBook

try:
    from importlib.metadata import version

    __version__ = version("quotebook")
except Exception:
    __version__ = "0.0.0"

__all__ = ["QuoteBook"]
