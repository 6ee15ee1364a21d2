"""Reduction of arbitrary text into a single document vector.

Text is split into paragraphs, every paragraph is embedded on its own and
the resulting vectors are averaged. A paragraph the embedding model rejects
(for example an overly long log dump) is summarized and the summary
embedded instead; if that fails too, the paragraph is dropped.
"""

import asyncio
import re

from issuedigger.embeddings.models import ParagraphEmbedding, ParagraphOutcome
from issuedigger.embeddings.service import EmbeddingService
from issuedigger.exceptions import EmbeddingError
from issuedigger.logging_config import get_logger
from issuedigger.observability.metrics import track_paragraph_outcome
from issuedigger.summarization.service import Summarizer
from issuedigger.vectors.arithmetic import average

logger = get_logger(__name__)

_BLANK_LINE = re.compile(r"\n[ \t\r\f\v]*\n")


def split_paragraphs(text: str) -> list[str]:
    """Split text on blank lines, trimming and dropping empty paragraphs."""
    paragraphs = (p.strip() for p in _BLANK_LINE.split(text))
    return [p for p in paragraphs if p]


def item_text(title: str | None, body: str | None) -> str:
    """Text representing an issue or comment: title and body on separate lines."""
    return f"{title or ''}\n{body or ''}"


class EmbeddingReducer:
    """Turns text into one fixed-length vector, tolerating per-paragraph failure."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        summarizer: Summarizer,
    ) -> None:
        self._embedding_service = embedding_service
        self._summarizer = summarizer

    async def _embed_paragraph(self, index: int, paragraph: str) -> ParagraphEmbedding:
        """Embed one paragraph, falling back to its summary. Never raises."""
        try:
            result = await self._embedding_service.embed(paragraph)
            outcome = ParagraphOutcome.EMBEDDED
        except Exception as e:
            logger.warning(
                f"Error embedding paragraph {index}, falling back on summarization: {e}"
            )
            try:
                summary = await self._summarizer.summarize(paragraph)
                result = await self._embedding_service.embed(summary.text)
                outcome = ParagraphOutcome.SUMMARIZED
            except Exception as e:
                logger.error(f"Error embedding summary of paragraph {index}, skipping it: {e}")
                track_paragraph_outcome(ParagraphOutcome.DROPPED.value)
                return ParagraphEmbedding(index=index, outcome=ParagraphOutcome.DROPPED)

        track_paragraph_outcome(outcome.value)
        return ParagraphEmbedding(index=index, outcome=outcome, embedding=result.embedding)

    async def embed_paragraphs(self, text: str) -> list[list[float]]:
        """Vectors of every paragraph that could be embedded, in text order.

        Paragraphs are processed concurrently. Failures are logged and leave
        no entry behind, so an empty list means nothing could be embedded.
        """
        paragraphs = split_paragraphs(text)
        logger.info(f"Split text into {len(paragraphs)} paragraphs")

        results = await asyncio.gather(
            *(self._embed_paragraph(i, p) for i, p in enumerate(paragraphs))
        )

        return [r.embedding for r in results if r.embedding is not None]

    async def embed(self, text: str) -> list[float]:
        """Document vector of `text`: the mean of its paragraph vectors.

        Raises:
            EmbeddingError: If no paragraph could be embedded, including the
                case of text without any non-empty paragraph.
        """
        vectors = await self.embed_paragraphs(text)

        if not vectors:
            raise EmbeddingError(
                "No paragraph of the text could be embedded",
                details={"text_length": len(text)},
            )

        return average(vectors)

    async def embed_item(self, title: str | None, body: str | None) -> list[float]:
        """Document vector of an issue or comment."""
        return await self.embed(item_text(title, body))
