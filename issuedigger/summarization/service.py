"""Summarization capability backed by an OpenAI-compatible chat API."""

from abc import ABC, abstractmethod

import httpx

from issuedigger.config import SummarizationSettings, get_settings
from issuedigger.exceptions import SummarizationError
from issuedigger.logging_config import get_logger
from issuedigger.summarization.models import Message, Role, Summary
from issuedigger.summarization.prompts import SummarizationPrompt

logger = get_logger(__name__)


class Summarizer(ABC):
    """Abstract base class for summarizers."""

    @abstractmethod
    async def summarize(self, text: str) -> Summary:
        """Summarize `text`.

        Raises:
            SummarizationError: If no summary could be produced.
        """
        ...


class ChatCompletionSummarizer(Summarizer):
    """Summarizer using the chat completions API.

    Works with:
    - Ollama (localhost:11434/v1)
    - vLLM
    - OpenAI API
    """

    def __init__(
        self,
        settings: SummarizationSettings | None = None,
        client: httpx.AsyncClient | None = None,
        prompt: SummarizationPrompt | None = None,
    ) -> None:
        """Initialize the summarizer.

        Args:
            settings: Summarization configuration.
            client: HTTP client (for testing).
            prompt: Prompt builder override.
        """
        self._settings = settings or get_settings().summarization
        self._client = client
        self._owns_client = client is None
        self._prompt = prompt or SummarizationPrompt()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> dict[str, str]:
        api_key = self._settings.api_key.get_secret_value()
        if api_key and api_key != "not-required":
            return {"Authorization": f"Bearer {api_key}"}
        return {}

    async def summarize(self, text: str) -> Summary:
        client = await self._get_client()
        url = f"{self._settings.base_url}/chat/completions"

        system_prompt, user_prompt = self._prompt.build(text)
        messages = [
            Message(role=Role.SYSTEM, content=system_prompt),
            Message(role=Role.USER, content=user_prompt),
        ]
        payload = {
            "model": self._settings.model,
            "messages": [m.model_dump(mode="json") for m in messages],
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }

        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Summarization request failed: {e.response.status_code}")
            raise SummarizationError(
                f"Summarization service returned {e.response.status_code}",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Summarization connection error: {e}")
            raise SummarizationError(
                f"Failed to connect to summarization service: {e}",
                details={"url": url},
            ) from e

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise SummarizationError(
                f"Invalid response from summarization service: {e}",
                details={"error": str(e)},
            ) from e

        summary_text = (content or "").strip()
        if not summary_text:
            raise SummarizationError("Summarization service returned an empty summary")

        logger.info("Got summary", extra={"summary": summary_text})
        return Summary(
            text=summary_text,
            source_length=len(text),
            model=data.get("model", self._settings.model),
        )
