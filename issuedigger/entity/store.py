"""Entity store: the only writer of issue thread vectors.

One issue thread (an issue plus all its human comments) is represented by
exactly one vector. Every new issue or comment is folded into it by
averaging, never by overwriting, and all writes to one thread run under
mutual exclusion so near-simultaneous comments cannot lose each other.
"""

from issuedigger.embeddings.reducer import EmbeddingReducer
from issuedigger.entity.locks import KeyedLock
from issuedigger.logging_config import get_logger
from issuedigger.queue.messages import IndexItem
from issuedigger.vectors.arithmetic import average
from issuedigger.vectors.metadata import VectorMetadataV1
from issuedigger.vectors.naming import vector_id, vector_namespace
from issuedigger.vectorstore.gateway import VectorIndexGateway
from issuedigger.vectorstore.models import EntityVector

logger = get_logger(__name__)


class EntityStore:
    """Serialized read-modify-write of entity vectors, keyed per issue."""

    def __init__(
        self,
        reducer: EmbeddingReducer,
        gateway: VectorIndexGateway,
        locks: KeyedLock | None = None,
    ) -> None:
        self._reducer = reducer
        self._gateway = gateway
        self._locks = locks or KeyedLock()

    async def apply(self, item: IndexItem) -> str:
        """Fold an issue or comment into its thread's vector.

        Returns:
            ID of the stored vector.

        Raises:
            EmbeddingError: If no part of the item could be embedded.
            VectorStoreError: If creating the vector collides with an
                existing one, which means writes were not serialized.
            MetadataError: If stored metadata is invalid.
        """
        key = (item.repo_owner, item.repo_name, item.issue_number)

        async with self._locks.hold(key):
            return await self._apply_locked(item)

    async def _apply_locked(self, item: IndexItem) -> str:
        embedding = await self._reducer.embed_item(item.title, item.body)

        identifier = vector_id(item.repo_owner, item.repo_name, item.issue_number)
        logger.debug(f"Will query for potentially existing vector ID {identifier}")

        existing = await self._gateway.get(identifier)

        if existing is not None:
            logger.info(f"Vector for '{identifier}' already exists. Enriching it.")
            # Equal weights regardless of how many items the stored vector
            # already contains: an approximation, not a running mean.
            entity = existing.model_copy(
                update={"values": average([existing.values, embedding])}
            )
            await self._gateway.upsert(entity)
        else:
            logger.info(f"Vector for '{identifier}' does not exist yet. Creating it.")
            entity = EntityVector(
                id=identifier,
                namespace=vector_namespace(item.repo_owner, item.repo_name),
                values=embedding,
                metadata=VectorMetadataV1(
                    issue_number=item.issue_number,
                    owner=item.repo_owner,
                    repo=item.repo_name,
                ),
            )
            # Insert, not upsert: a collision here must surface.
            await self._gateway.insert(entity)

        logger.debug(
            "Stored vector",
            extra={"id": entity.id, "namespace": entity.namespace, "kind": item.kind.value},
        )

        await self._gateway.record(identifier)
        return identifier
