"""Construction and lifecycle of the service graph."""

from dataclasses import dataclass

from issuedigger.bookkeeping import RedisBookkeepingStore
from issuedigger.config import Settings, get_settings
from issuedigger.embeddings import EmbeddingReducer, HTTPEmbeddingService
from issuedigger.entity import EntityStore
from issuedigger.github import GitHubClientRegistry
from issuedigger.logging_config import get_logger
from issuedigger.queue import InMemoryWorkQueue
from issuedigger.routing import EventRouter, RouterConfig
from issuedigger.similarity import SimilarityResponder
from issuedigger.summarization import ChatCompletionSummarizer
from issuedigger.vectorstore import QdrantVectorStore, VectorIndexGateway
from issuedigger.worker import Dispatcher, QueueConsumer

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Every long-lived service, wired together once per process."""

    settings: Settings
    embeddings: HTTPEmbeddingService
    summarizer: ChatCompletionSummarizer
    vector_store: QdrantVectorStore
    bookkeeping: RedisBookkeepingStore
    registry: GitHubClientRegistry
    queue: InMemoryWorkQueue
    router: EventRouter
    dispatcher: Dispatcher
    consumer: QueueConsumer

    @classmethod
    def build(cls, settings: Settings | None = None) -> "ServiceContainer":
        """Wire the service graph. No connections are opened yet."""
        settings = settings or get_settings()

        embeddings = HTTPEmbeddingService(settings.embedding)
        summarizer = ChatCompletionSummarizer(settings.summarization)
        reducer = EmbeddingReducer(embeddings, summarizer)

        vector_store = QdrantVectorStore(settings.qdrant)
        bookkeeping = RedisBookkeepingStore(settings.redis)
        gateway = VectorIndexGateway(vector_store, bookkeeping)

        registry = GitHubClientRegistry(settings.github)
        queue = InMemoryWorkQueue(settings.queue)

        dispatcher = Dispatcher(
            entity_store=EntityStore(reducer, gateway),
            gateway=gateway,
            responder=SimilarityResponder(reducer, gateway, settings.n_similar_issues),
            registry=registry,
            queue=queue,
            onboarding_lookback_limit=settings.github.onboarding_lookback_limit,
        )

        return cls(
            settings=settings,
            embeddings=embeddings,
            summarizer=summarizer,
            vector_store=vector_store,
            bookkeeping=bookkeeping,
            registry=registry,
            queue=queue,
            router=EventRouter(RouterConfig.from_settings(settings.github), queue, registry),
            dispatcher=dispatcher,
            consumer=QueueConsumer(queue, dispatcher, max_concurrency=settings.queue.max_concurrency),
        )

    async def start(self, consume: bool = True) -> None:
        """Prepare storage and, unless disabled, start consuming the queue."""
        await self.vector_store.ensure_collection()
        if consume:
            self.consumer.start()
        logger.info("Services started", extra={"consuming": consume})

    async def close(self) -> None:
        """Stop consuming and release all owned clients."""
        await self.consumer.stop()
        await self.registry.close()
        await self.embeddings.close()
        await self.summarizer.close()
        await self.vector_store.close()
        await self.bookkeeping.close()
        logger.info("Services closed")
