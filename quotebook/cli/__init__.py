"""Command-line interface for quotebook."""
