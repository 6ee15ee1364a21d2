"""Entity store for issue thread vectors."""

from issuedigger.entity.locks import KeyedLock
from issuedigger.entity.store import EntityStore

__all__ = [
    "EntityStore",
    "KeyedLock",
]
