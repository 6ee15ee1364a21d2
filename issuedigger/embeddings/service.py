"""Embedding model capability and its HTTP implementation."""

import time
from abc import ABC, abstractmethod

import httpx

from issuedigger.config import EmbeddingSettings, get_settings
from issuedigger.embeddings.models import EmbeddingResult
from issuedigger.exceptions import EmbeddingError, ErrorCode
from issuedigger.logging_config import get_logger
from issuedigger.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Every call may fail; callers decide how to degrade.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Raises:
            EmbeddingError: If embedding fails.
        """
        ...

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts.

        Raises:
            EmbeddingError: If embedding fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Get the embedding dimensions."""
        ...


class HTTPEmbeddingService(EmbeddingService):
    """Embedding service speaking the OpenAI-style `/embeddings` API.

    Also works against text-embeddings-inference (TEI) servers.
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "BAAI/bge-large-en-v1.5": 1024,
        "BAAI/bge-base-en-v1.5": 768,
        "BAAI/bge-small-en-v1.5": 384,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
    }

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HTTP embedding service.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None
        self._dimensions: int | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        return self._settings.model

    @property
    def dimensions(self) -> int:
        if self._dimensions is not None:
            return self._dimensions
        return self.MODEL_DIMENSIONS.get(self._settings.model, 1024)

    async def embed(self, text: str) -> EmbeddingResult:
        results = await self.embed_batch([text])
        if not results:
            raise EmbeddingError(
                "Embedding service returned no vector",
                details={"model": self._settings.model},
            )
        return results[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        if not texts:
            return []

        client = await self._get_client()
        url = f"{self._settings.base_url}/embeddings"
        batch_size = self._settings.batch_size

        results: list[EmbeddingResult] = []
        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            results.extend(await self._request(client, url, batch))
        return results

    async def _request(
        self,
        client: httpx.AsyncClient,
        url: str,
        texts: list[str],
    ) -> list[EmbeddingResult]:
        """Make one embedding request.

        Raises:
            EmbeddingError: If the request fails or the response is unusable.
        """
        payload = {"input": texts, "model": self._settings.model}
        start = time.perf_counter()

        try:
            response = await client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            track_embedding_request(self._settings.model, time.perf_counter() - start, success=False)
            logger.error(
                f"Embedding request failed: {e.response.status_code}",
                extra={"url": url, "status": e.response.status_code},
            )
            raise EmbeddingError(
                f"Embedding service returned {e.response.status_code}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            track_embedding_request(self._settings.model, time.perf_counter() - start, success=False)
            logger.error(f"Embedding request error: {e}", extra={"url": url})
            raise EmbeddingError(
                f"Failed to connect to embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"url": url},
            ) from e

        track_embedding_request(self._settings.model, time.perf_counter() - start)

        try:
            data = response.json()
            results: list[EmbeddingResult] = []
            for text, item in zip(texts, data["data"], strict=True):
                embedding = item["embedding"]
                if self._dimensions is None and embedding:
                    self._dimensions = len(embedding)
                results.append(
                    EmbeddingResult(
                        text=text,
                        embedding=embedding,
                        model=self._settings.model,
                        dimensions=len(embedding),
                    )
                )
            return results

        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e
