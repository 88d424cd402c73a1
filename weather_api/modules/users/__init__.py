"""
Users Module - Black Box Interface

Purpose: Persist user records (the credential store)
Interface: find_by_id(), find_by_email(), find_by_token(), insert(), replace(), delete()
Hidden: Key layout, secondary indexes, changelog format

Replaceable with any document store offering point lookups and
single-document writes.
"""

from .store import UserStore

__all__ = ["UserStore"]
