"""Append-only JSON-lines journal of round trips, skipped orders and metrics."""

from journal.writer import JournalWriter

__all__ = ["JournalWriter"]
