"""Derived views over the transaction records."""

from fintrack.queries.summary import compute_summary

__all__ = ["compute_summary"]
