"""Batch project lifecycle and status aggregation engine."""

__version__ = "0.1.0"
