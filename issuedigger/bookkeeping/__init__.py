"""Bookkeeping of stored vector IDs."""

from issuedigger.bookkeeping.store import BookkeepingStore, KeyPage, RedisBookkeepingStore

__all__ = [
    "BookkeepingStore",
    "KeyPage",
    "RedisBookkeepingStore",
]
