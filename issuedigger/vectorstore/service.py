"""Vector store capability and its Qdrant implementation."""

import time
from abc import ABC, abstractmethod
from uuid import NAMESPACE_URL, uuid5

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PayloadSchemaType,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from issuedigger.config import QdrantSettings, get_settings
from issuedigger.exceptions import ErrorCode, VectorStoreError
from issuedigger.logging_config import get_logger
from issuedigger.observability.metrics import track_vectorstore_operation
from issuedigger.vectorstore.models import ScoredVector, StoredVector

logger = get_logger(__name__)

# Payload keys the store reserves next to the caller's metadata.
ID_KEY = "vector_id"
NAMESPACE_KEY = "namespace"
METADATA_KEY = "metadata"


class VectorStore(ABC):
    """Abstract base class for vector stores.

    IDs are unique across the whole index, not just within a namespace.
    """

    @abstractmethod
    async def insert(self, vectors: list[StoredVector]) -> int:
        """Insert new vectors.

        Raises:
            VectorStoreError: With code VECTOR_EXISTS if any ID is taken.
        """
        ...

    @abstractmethod
    async def upsert(self, vectors: list[StoredVector]) -> int:
        """Insert or overwrite vectors."""
        ...

    @abstractmethod
    async def get_by_ids(self, ids: list[str]) -> list[StoredVector]:
        """Fetch vectors by ID; unknown IDs are absent from the result."""
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        namespace: str,
        top_k: int,
    ) -> list[ScoredVector]:
        """Nearest neighbours of `vector` within one namespace."""
        ...

    @abstractmethod
    async def delete_by_ids(self, ids: list[str]) -> int:
        """Delete vectors by ID."""
        ...


def point_id(vector_id: str) -> str:
    """Qdrant only accepts UUIDs and integers as point IDs; derive a stable UUID."""
    return str(uuid5(NAMESPACE_URL, vector_id))


class QdrantVectorStore(VectorStore):
    """Qdrant vector store, one collection partitioned by a namespace payload field."""

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant vector store.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None

    @property
    def collection(self) -> str:
        return self._settings.collection_name

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            api_key = None
            if self._settings.api_key:
                api_key = self._settings.api_key.get_secret_value()

            self._client = AsyncQdrantClient(
                url=self._settings.url,
                api_key=api_key,
            )
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    async def ensure_collection(self) -> None:
        """Create the collection and its namespace index unless present."""
        client = await self._get_client()

        try:
            if await client.collection_exists(self.collection):
                return

            await client.create_collection(
                collection_name=self.collection,
                vectors_config=VectorParams(
                    size=self._settings.dimensions,
                    distance=Distance.COSINE,
                ),
            )
            await client.create_payload_index(
                collection_name=self.collection,
                field_name=NAMESPACE_KEY,
                field_schema=PayloadSchemaType.KEYWORD,
            )
            logger.info(
                f"Created collection: {self.collection}",
                extra={"dimensions": self._settings.dimensions},
            )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to create collection: {e}",
                details={"collection": self.collection, "error": str(e)},
            ) from e

    def _to_point(self, vector: StoredVector) -> PointStruct:
        return PointStruct(
            id=point_id(vector.id),
            vector=vector.values,
            payload={
                ID_KEY: vector.id,
                NAMESPACE_KEY: vector.namespace,
                METADATA_KEY: vector.metadata,
            },
        )

    async def insert(self, vectors: list[StoredVector]) -> int:
        # Qdrant has no insert-only write, so check for collisions first.
        # Callers serialize writes per ID, so the check cannot race with itself.
        existing = await self.get_by_ids([v.id for v in vectors])
        if existing:
            raise VectorStoreError(
                f"Vector already exists: {existing[0].id}",
                code=ErrorCode.VECTOR_EXISTS,
                details={"ids": [v.id for v in existing]},
            )
        return await self._write("insert", vectors)

    async def upsert(self, vectors: list[StoredVector]) -> int:
        return await self._write("upsert", vectors)

    async def _write(self, operation: str, vectors: list[StoredVector]) -> int:
        if not vectors:
            return 0

        client = await self._get_client()
        start = time.perf_counter()

        try:
            await client.upsert(
                collection_name=self.collection,
                points=[self._to_point(v) for v in vectors],
            )
        except Exception as e:
            track_vectorstore_operation(operation, time.perf_counter() - start, success=False)
            raise VectorStoreError(
                f"Failed to {operation} vectors: {e}",
                details={"collection": self.collection, "error": str(e)},
            ) from e

        track_vectorstore_operation(operation, time.perf_counter() - start)
        logger.debug(f"Stored {len(vectors)} vectors", extra={"operation": operation})
        return len(vectors)

    async def get_by_ids(self, ids: list[str]) -> list[StoredVector]:
        if not ids:
            return []

        client = await self._get_client()
        start = time.perf_counter()

        try:
            points = await client.retrieve(
                collection_name=self.collection,
                ids=[point_id(i) for i in ids],
                with_payload=True,
                with_vectors=True,
            )
        except Exception as e:
            track_vectorstore_operation("get", time.perf_counter() - start, success=False)
            raise VectorStoreError(
                f"Failed to fetch vectors: {e}",
                details={"collection": self.collection, "error": str(e)},
            ) from e

        track_vectorstore_operation("get", time.perf_counter() - start)

        vectors: list[StoredVector] = []
        for point in points:
            payload = dict(point.payload or {})
            vectors.append(
                StoredVector(
                    id=payload.get(ID_KEY, str(point.id)),
                    namespace=payload.get(NAMESPACE_KEY) or "?",
                    values=list(point.vector or []),  # type: ignore[arg-type]
                    metadata=payload.get(METADATA_KEY) or {},
                )
            )
        return vectors

    async def query(
        self,
        vector: list[float],
        namespace: str,
        top_k: int,
    ) -> list[ScoredVector]:
        client = await self._get_client()
        start = time.perf_counter()

        try:
            results = await client.query_points(
                collection_name=self.collection,
                query=vector,
                limit=top_k,
                query_filter=Filter(
                    must=[FieldCondition(key=NAMESPACE_KEY, match=MatchValue(value=namespace))]
                ),
                with_payload=True,
            )
        except Exception as e:
            track_vectorstore_operation("query", time.perf_counter() - start, success=False)
            raise VectorStoreError(
                f"Failed to query: {e}",
                details={"collection": self.collection, "namespace": namespace, "error": str(e)},
            ) from e

        track_vectorstore_operation("query", time.perf_counter() - start)
        logger.info(f"Queried in NS '{namespace}', got {len(results.points)} matches")

        return [
            ScoredVector(
                id=(point.payload or {}).get(ID_KEY, str(point.id)),
                score=point.score if point.score is not None else 0.0,
                metadata=(point.payload or {}).get(METADATA_KEY) or {},
            )
            for point in results.points
        ]

    async def delete_by_ids(self, ids: list[str]) -> int:
        if not ids:
            return 0

        client = await self._get_client()
        start = time.perf_counter()

        try:
            await client.delete(
                collection_name=self.collection,
                points_selector=PointIdsList(points=[point_id(i) for i in ids]),  # type: ignore[arg-type]
            )
        except Exception as e:
            track_vectorstore_operation("delete", time.perf_counter() - start, success=False)
            raise VectorStoreError(
                f"Failed to delete vectors: {e}",
                details={"collection": self.collection, "error": str(e)},
            ) from e

        track_vectorstore_operation("delete", time.perf_counter() - start)
        logger.debug(f"Deleted {len(ids)} vectors")
        return len(ids)
