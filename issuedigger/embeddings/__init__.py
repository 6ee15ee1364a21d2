"""Embedding service module."""

from issuedigger.embeddings.models import EmbeddingResult, ParagraphEmbedding, ParagraphOutcome
from issuedigger.embeddings.reducer import EmbeddingReducer, item_text, split_paragraphs
from issuedigger.embeddings.service import EmbeddingService, HTTPEmbeddingService

__all__ = [
    "EmbeddingReducer",
    "EmbeddingResult",
    "EmbeddingService",
    "HTTPEmbeddingService",
    "ParagraphEmbedding",
    "ParagraphOutcome",
    "item_text",
    "split_paragraphs",
]
