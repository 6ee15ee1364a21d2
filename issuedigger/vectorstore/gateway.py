"""Typed gateway between entity vectors and the raw stores.

The gateway is the only place that converts between `EntityVector` and the
untyped records of the vector store, validates metadata on every write and
read, and writes the bookkeeping entry that makes vectors enumerable.
"""

from issuedigger.bookkeeping.store import BookkeepingStore, KeyPage
from issuedigger.exceptions import MetadataError
from issuedigger.logging_config import get_logger
from issuedigger.vectors.metadata import is_valid_vector_metadata, parse_vector_metadata
from issuedigger.vectors.naming import SCHEMA_VERSION
from issuedigger.vectorstore.models import EntityVector, Match, StoredVector
from issuedigger.vectorstore.service import VectorStore

logger = get_logger(__name__)


class VectorIndexGateway:
    """Validated, namespace-scoped access to the vector index."""

    def __init__(self, store: VectorStore, bookkeeping: BookkeepingStore) -> None:
        self._store = store
        self._bookkeeping = bookkeeping

    def _to_stored(self, entity: EntityVector) -> StoredVector:
        payload = entity.metadata.to_payload()
        if not is_valid_vector_metadata(payload, SCHEMA_VERSION):
            raise MetadataError(
                f"Invalid vector metadata: {payload!r}",
                details={"id": entity.id},
            )
        return StoredVector(
            id=entity.id,
            namespace=entity.namespace,
            values=entity.values,
            metadata=payload,
        )

    async def get(self, vector_id: str) -> EntityVector | None:
        """Fetch the entity vector with the given ID, if it exists.

        Raises:
            MetadataError: If the stored metadata is not valid.
        """
        vectors = await self._store.get_by_ids([vector_id])
        if not vectors:
            return None

        # Only one ID was requested, so only one vector is expected.
        stored = vectors[0]
        return EntityVector(
            id=stored.id,
            namespace=stored.namespace,
            values=stored.values,
            metadata=parse_vector_metadata(stored.metadata, SCHEMA_VERSION),
        )

    async def insert(self, entity: EntityVector) -> None:
        """Store a new entity vector; fails loudly if the ID already exists."""
        await self._store.insert([self._to_stored(entity)])

    async def upsert(self, entity: EntityVector) -> None:
        """Store an entity vector, overwriting any previous version."""
        await self._store.upsert([self._to_stored(entity)])

    async def record(self, vector_id: str) -> None:
        """Remember that `vector_id` is stored, for later enumeration."""
        await self._bookkeeping.put(vector_id, "")

    async def query(
        self,
        vector: list[float],
        namespace: str,
        top_k: int,
    ) -> list[Match]:
        """Nearest neighbours within `namespace`, highest score first.

        Raises:
            MetadataError: If any match carries invalid metadata.
        """
        hits = await self._store.query(vector, namespace, top_k)

        matches: list[Match] = []
        for hit in hits:
            if not is_valid_vector_metadata(hit.metadata, SCHEMA_VERSION):
                raise MetadataError(
                    f"Database metadata on vector {hit.id} isn't in usable format, "
                    f"got {hit.metadata!r}",
                    details={"id": hit.id},
                )
            matches.append(Match(id=hit.id, score=hit.score, metadata=hit.metadata))

        # The store documents sorted results, but do not rely on it.
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches

    async def list_ids(self, prefix: str, cursor: str | None = None) -> KeyPage:
        """One page of recorded vector IDs starting with `prefix`."""
        return await self._bookkeeping.list(prefix, cursor)

    async def forget(self, vector_id: str) -> None:
        """Remove the bookkeeping entry of `vector_id`."""
        await self._bookkeeping.delete(vector_id)

    async def delete(self, vector_id: str) -> None:
        """Remove `vector_id` from the vector index."""
        await self._store.delete_by_ids([vector_id])
