"""Embedding data models."""

from enum import Enum

from pydantic import BaseModel, Field


class EmbeddingResult(BaseModel):
    """Vector returned by the embedding model for one text.

    Attributes:
        text: The text that was embedded.
        embedding: The embedding vector.
        model: The model that produced it.
        dimensions: Length of `embedding`.
    """

    text: str = Field(description="Embedded text")
    embedding: list[float] = Field(description="Embedding vector")
    model: str = Field(description="Model used for embedding")
    dimensions: int = Field(description="Vector dimensions")

    def model_post_init(self, __context: object) -> None:
        """Reject results whose declared dimensions disagree with the vector."""
        if self.dimensions != len(self.embedding):
            raise ValueError(
                f"dimensions ({self.dimensions}) does not match "
                f"embedding length ({len(self.embedding)})"
            )


class ParagraphOutcome(str, Enum):
    """How a single paragraph ended up contributing to a document vector."""

    EMBEDDED = "embedded"
    SUMMARIZED = "summarized"
    DROPPED = "dropped"


class ParagraphEmbedding(BaseModel):
    """Per-paragraph result of the reducer.

    Attributes:
        index: Position of the paragraph in the text.
        outcome: Which path produced the vector, if any.
        embedding: The vector, absent for dropped paragraphs.
    """

    index: int = Field(description="Paragraph position")
    outcome: ParagraphOutcome = Field(description="Embedding path taken")
    embedding: list[float] | None = Field(default=None, description="Paragraph vector")
