"""Vector store data models."""

from typing import Any

from pydantic import BaseModel, Field

from issuedigger.vectors.metadata import VectorMetadata


class StoredVector(BaseModel):
    """A vector as the raw store sees it.

    Attributes:
        id: Vector identifier, unique across the whole index.
        namespace: Partition the vector belongs to.
        values: The vector itself.
        metadata: Untyped metadata payload.
    """

    id: str = Field(description="Vector identifier")
    namespace: str = Field(min_length=1, description="Namespace partition")
    values: list[float] = Field(description="Vector values")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Metadata payload",
    )


class ScoredVector(BaseModel):
    """A raw similarity query hit.

    Attributes:
        id: Vector identifier.
        score: Similarity score (higher is more similar).
        metadata: Untyped metadata payload.
    """

    id: str = Field(description="Vector identifier")
    score: float = Field(description="Similarity score")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Metadata payload",
    )


class EntityVector(BaseModel):
    """The durable semantic representation of one issue thread."""

    id: str = Field(description="Vector identifier")
    namespace: str = Field(min_length=1, description="Namespace partition")
    values: list[float] = Field(description="Vector values")
    metadata: VectorMetadata = Field(description="Validated metadata")


class Match(BaseModel):
    """A similarity hit returned by the gateway."""

    id: str = Field(description="Vector identifier")
    score: float = Field(description="Similarity score")
    metadata: dict[str, Any] = Field(description="Metadata payload, validated on read")
