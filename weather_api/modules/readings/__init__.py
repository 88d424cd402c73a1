"""
Readings Module - Black Box Interface

Purpose: Persist and query weather station readings
Interface: ReadingStore (CRUD, time-range queries, per-device maxima)
Hidden: Key layout, time indexes, in-process aggregation

The grouping and maxima run in this module, not in the store.
"""

from .store import ReadingStore

__all__ = ["ReadingStore"]
