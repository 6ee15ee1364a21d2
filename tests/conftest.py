"""Pytest configuration and shared fixtures."""

import hashlib
import math
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from issuedigger.api.app import app
from issuedigger.bookkeeping import BookkeepingStore, KeyPage
from issuedigger.config import QueueSettings
from issuedigger.embeddings import EmbeddingReducer, EmbeddingResult, EmbeddingService
from issuedigger.exceptions import BookkeepingError, EmbeddingError, ErrorCode, SummarizationError, VectorStoreError
from issuedigger.queue import InMemoryWorkQueue
from issuedigger.summarization import Summarizer, Summary
from issuedigger.vectorstore import ScoredVector, StoredVector, VectorIndexGateway, VectorStore

DIMENSIONS = 4


def fake_vector(text: str) -> list[float]:
    """Deterministic unit vector derived from a text."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    values = [digest[i] + 1.0 for i in range(DIMENSIONS)]
    norm = math.sqrt(sum(v * v for v in values))
    return [v / norm for v in values]


def cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class FakeEmbeddingService(EmbeddingService):
    """Embeds deterministically; texts containing a `fail_on` marker are rejected."""

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.fail_on = fail_on
        self.calls: list[str] = []

    async def embed(self, text: str) -> EmbeddingResult:
        self.calls.append(text)
        if any(marker in text for marker in self.fail_on):
            raise EmbeddingError("Input too long")
        return EmbeddingResult(text=text, embedding=fake_vector(text), model="fake", dimensions=DIMENSIONS)

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        return [await self.embed(t) for t in texts]

    @property
    def model_name(self) -> str:
        return "fake"

    @property
    def dimensions(self) -> int:
        return DIMENSIONS


class FakeSummarizer(Summarizer):
    """Summarizes to a fixed short text, or fails."""

    def __init__(self, summary: str = "short summary", fail: bool = False) -> None:
        self.summary = summary
        self.fail = fail
        self.calls: list[str] = []

    async def summarize(self, text: str) -> Summary:
        self.calls.append(text)
        if self.fail:
            raise SummarizationError("Model unavailable")
        return Summary(text=self.summary, source_length=len(text), model="fake")


class FakeVectorStore(VectorStore):
    """In-memory vector store with cosine similarity."""

    def __init__(self) -> None:
        self.vectors: dict[str, StoredVector] = {}
        self.fail_delete: set[str] = set()
        self.writes: list[str] = []

    async def insert(self, vectors: list[StoredVector]) -> int:
        for vector in vectors:
            if vector.id in self.vectors:
                raise VectorStoreError(f"Vector already exists: {vector.id}", code=ErrorCode.VECTOR_EXISTS)
        return await self.upsert(vectors)

    async def upsert(self, vectors: list[StoredVector]) -> int:
        for vector in vectors:
            self.vectors[vector.id] = vector
            self.writes.append(vector.id)
        return len(vectors)

    async def get_by_ids(self, ids: list[str]) -> list[StoredVector]:
        return [self.vectors[i] for i in ids if i in self.vectors]

    async def query(self, vector: list[float], namespace: str, top_k: int) -> list[ScoredVector]:
        scored = [
            ScoredVector(id=v.id, score=cosine(vector, v.values), metadata=v.metadata)
            for v in self.vectors.values()
            if v.namespace == namespace
        ]
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored[:top_k]

    async def delete_by_ids(self, ids: list[str]) -> int:
        for i in ids:
            if i in self.fail_delete:
                raise VectorStoreError(f"Failed to delete {i}")
            self.vectors.pop(i, None)
        return len(ids)


class FakeBookkeepingStore(BookkeepingStore):
    """In-memory bookkeeping with offset cursors."""

    def __init__(self, page_size: int = 100) -> None:
        self.keys: dict[str, str] = {}
        self.page_size = page_size
        self.fail_delete: set[str] = set()
        self.list_calls = 0
        self._snapshot: list[str] = []

    async def put(self, key: str, value: str = "") -> None:
        self.keys[key] = value

    async def delete(self, key: str) -> None:
        if key in self.fail_delete:
            raise BookkeepingError(f"Failed to delete {key}")
        self.keys.pop(key, None)

    async def list(self, prefix: str, cursor: str | None = None) -> KeyPage:
        self.list_calls += 1
        # Snapshot at the first page so deletions between pages do not shift offsets.
        if cursor is None:
            self._snapshot = sorted(k for k in self.keys if k.startswith(prefix))
        offset = int(cursor or 0)
        page = self._snapshot[offset : offset + self.page_size]
        next_offset = offset + self.page_size
        complete = next_offset >= len(self._snapshot)
        return KeyPage(keys=page, cursor=None if complete else str(next_offset), complete=complete)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    Yields:
        AsyncClient configured for testing.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def embedding_service() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def reducer(embedding_service: FakeEmbeddingService, summarizer: FakeSummarizer) -> EmbeddingReducer:
    return EmbeddingReducer(embedding_service, summarizer)


@pytest.fixture
def vector_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def bookkeeping() -> FakeBookkeepingStore:
    return FakeBookkeepingStore()


@pytest.fixture
def gateway(vector_store: FakeVectorStore, bookkeeping: FakeBookkeepingStore) -> VectorIndexGateway:
    return VectorIndexGateway(vector_store, bookkeeping)


@pytest.fixture
def queue_settings() -> QueueSettings:
    return QueueSettings(max_size=10, max_batch_size=5, batch_timeout=0.01, send_timeout=0.01, max_attempts=3)


@pytest.fixture
def queue(queue_settings: QueueSettings) -> InMemoryWorkQueue:
    return InMemoryWorkQueue(queue_settings)
