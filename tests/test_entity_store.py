"""Tests for the entity store."""

import asyncio

import pytest
from conftest import FakeBookkeepingStore, FakeEmbeddingService, FakeSummarizer, FakeVectorStore, fake_vector

from issuedigger.embeddings import EmbeddingReducer
from issuedigger.entity import EntityStore, KeyedLock
from issuedigger.exceptions import EmbeddingError
from issuedigger.queue import IndexItem, ItemKind
from issuedigger.vectors import average
from issuedigger.vectorstore import VectorIndexGateway


def _issue(number: int = 1, title: str = "crash", body: str = "on start") -> IndexItem:
    return IndexItem(
        repo_owner="octo",
        repo_name="repo",
        kind=ItemKind.ISSUE,
        issue_number=number,
        title=title,
        body=body,
        installation_id=1,
    )


def _comment(body: str, number: int = 1) -> IndexItem:
    return IndexItem(
        repo_owner="octo",
        repo_name="repo",
        kind=ItemKind.COMMENT,
        issue_number=number,
        body=body,
        installation_id=1,
    )


@pytest.fixture
def entity_store(reducer: EmbeddingReducer, gateway: VectorIndexGateway) -> EntityStore:
    return EntityStore(reducer, gateway)


class TestKeyedLock:
    """Tests for KeyedLock."""

    async def test_same_key_serialized(self) -> None:
        """Holders of one key never overlap."""
        locks = KeyedLock()
        active = 0
        peak = 0

        async def worker() -> None:
            nonlocal active, peak
            async with locks.hold("k"):
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0)
                active -= 1

        await asyncio.gather(*(worker() for _ in range(5)))

        assert peak == 1

    async def test_different_keys_concurrent(self) -> None:
        """Different keys do not block each other."""
        locks = KeyedLock()
        inside = asyncio.Event()

        async def first() -> None:
            async with locks.hold("a"):
                await inside.wait()

        async def second() -> None:
            async with locks.hold("b"):
                inside.set()

        await asyncio.wait_for(asyncio.gather(first(), second()), timeout=1)

    async def test_locks_released(self) -> None:
        """Idle keys leave no lock behind."""
        locks = KeyedLock()
        async with locks.hold("k"):
            assert len(locks) == 1
        assert len(locks) == 0

    async def test_released_on_error(self) -> None:
        """A failing holder still releases the key."""
        locks = KeyedLock()
        with pytest.raises(RuntimeError):
            async with locks.hold("k"):
                raise RuntimeError("boom")
        assert len(locks) == 0


class TestEntityStore:
    """Tests for EntityStore."""

    async def test_creates_vector(
        self,
        entity_store: EntityStore,
        vector_store: FakeVectorStore,
        bookkeeping: FakeBookkeepingStore,
    ) -> None:
        """First item of a thread creates its vector and bookkeeping entry."""
        identifier = await entity_store.apply(_issue())

        assert identifier == "I1/octo/repo/1"
        stored = vector_store.vectors[identifier]
        assert stored.namespace == "N1/octo/repo"
        assert stored.values == pytest.approx(fake_vector("crash\non start"))
        assert stored.metadata == {"version": 1, "issue_number": 1, "owner": "octo", "repo": "repo"}
        assert identifier in bookkeeping.keys

    async def test_merges_instead_of_overwriting(
        self,
        entity_store: EntityStore,
        vector_store: FakeVectorStore,
    ) -> None:
        """A comment is averaged into the issue vector."""
        await entity_store.apply(_issue())
        await entity_store.apply(_comment("me too"))

        stored = vector_store.vectors["I1/octo/repo/1"]
        expected = average([fake_vector("crash\non start"), fake_vector("me too")])
        assert stored.values == pytest.approx(expected)

    async def test_equal_weight_merge(
        self,
        entity_store: EntityStore,
        vector_store: FakeVectorStore,
    ) -> None:
        """Each new item weighs as much as everything stored before it."""
        await entity_store.apply(_issue())
        await entity_store.apply(_comment("first"))
        await entity_store.apply(_comment("second"))

        stored = vector_store.vectors["I1/octo/repo/1"]
        expected = average(
            [average([fake_vector("crash\non start"), fake_vector("first")]), fake_vector("second")]
        )
        assert stored.values == pytest.approx(expected)

    async def test_threads_are_separate(self, entity_store: EntityStore, vector_store: FakeVectorStore) -> None:
        """Different issues get different vectors."""
        await entity_store.apply(_issue(1))
        await entity_store.apply(_issue(2, title="other"))

        assert set(vector_store.vectors) == {"I1/octo/repo/1", "I1/octo/repo/2"}

    async def test_concurrent_writes_serialized(
        self,
        entity_store: EntityStore,
        vector_store: FakeVectorStore,
    ) -> None:
        """Simultaneous items of one thread are both folded in."""
        await asyncio.gather(
            entity_store.apply(_issue()),
            entity_store.apply(_comment("racing comment")),
        )

        stored = vector_store.vectors["I1/octo/repo/1"]
        expected = average([fake_vector("crash\non start"), fake_vector("racing comment")])
        assert stored.values == pytest.approx(expected)
        assert vector_store.writes == ["I1/octo/repo/1", "I1/octo/repo/1"]

    async def test_unembeddable_item_writes_nothing(
        self,
        gateway: VectorIndexGateway,
        vector_store: FakeVectorStore,
    ) -> None:
        """An item with no usable text leaves the index untouched."""
        reducer = EmbeddingReducer(FakeEmbeddingService(fail_on=("x",)), FakeSummarizer(fail=True))
        store = EntityStore(reducer, gateway)

        with pytest.raises(EmbeddingError):
            await store.apply(_comment("x"))
        assert vector_store.vectors == {}
