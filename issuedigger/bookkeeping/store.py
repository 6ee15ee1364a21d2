"""Bookkeeping of stored vector IDs.

The vector index cannot enumerate a namespace, only delete by ID. Every
stored vector ID is therefore also recorded in a flat key-value store,
which is what offboarding lists and sweeps.
"""

import re
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field
from redis.asyncio import Redis
from redis.exceptions import RedisError

from issuedigger.config import RedisSettings, get_settings
from issuedigger.exceptions import BookkeepingError
from issuedigger.logging_config import get_logger

logger = get_logger(__name__)


class KeyPage(BaseModel):
    """One page of a key listing.

    Attributes:
        keys: Keys on this page.
        cursor: Cursor for the next page, absent once complete.
        complete: Whether the listing is exhausted.
    """

    keys: list[str] = Field(default_factory=list, description="Keys on this page")
    cursor: str | None = Field(default=None, description="Cursor of the next page")
    complete: bool = Field(description="No further pages")


class BookkeepingStore(ABC):
    """Flat key-value store holding one empty-valued key per stored vector."""

    @abstractmethod
    async def put(self, key: str, value: str = "") -> None:
        """Record a key.

        Raises:
            BookkeepingError: If the write fails.
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Forget a key.

        Raises:
            BookkeepingError: If the delete fails.
        """
        ...

    @abstractmethod
    async def list(self, prefix: str, cursor: str | None = None) -> KeyPage:
        """List keys starting with `prefix`, one page at a time.

        Raises:
            BookkeepingError: If the listing fails.
        """
        ...


def _glob_escape(value: str) -> str:
    """Escape Redis glob metacharacters so `value` matches literally."""
    return re.sub(r"([*?\[\]\\])", r"\\\1", value)


class RedisBookkeepingStore(BookkeepingStore):
    """Bookkeeping in Redis, listed with cursor-based SCAN."""

    def __init__(
        self,
        settings: RedisSettings | None = None,
        client: Redis | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            settings: Redis configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().redis
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> Redis:
        if self._client is None:
            self._client = Redis.from_url(self._settings.url, decode_responses=True)
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def put(self, key: str, value: str = "") -> None:
        try:
            await self._get_client().set(key, value)
        except RedisError as e:
            logger.error(f"Bookkeeping insertion failed for '{key}': {e}")
            raise BookkeepingError(
                f"Failed to record key: {e}",
                details={"key": key},
            ) from e

    async def delete(self, key: str) -> None:
        try:
            await self._get_client().delete(key)
        except RedisError as e:
            raise BookkeepingError(
                f"Failed to delete key: {e}",
                details={"key": key},
            ) from e

    async def list(self, prefix: str, cursor: str | None = None) -> KeyPage:
        try:
            next_cursor, keys = await self._get_client().scan(
                cursor=int(cursor or 0),
                match=f"{_glob_escape(prefix)}*",
                count=self._settings.scan_count,
            )
        except RedisError as e:
            raise BookkeepingError(
                f"Failed to list keys: {e}",
                details={"prefix": prefix},
            ) from e

        keys = [k.decode() if isinstance(k, bytes) else k for k in keys]
        complete = int(next_cursor) == 0
        return KeyPage(
            keys=keys,
            cursor=None if complete else str(next_cursor),
            complete=complete,
        )
