"""Vector arithmetic."""

from collections.abc import Sequence

from issuedigger.exceptions import EmbeddingError, ErrorCode


def average(vectors: Sequence[Sequence[float]]) -> list[float]:
    """Per-dimension arithmetic mean of equally sized vectors.

    An averaged vector captures the general topic of a text rather than
    every individual topic in it. That loss of granularity is accepted.

    Raises:
        ValueError: If `vectors` is empty; there is no meaningful mean.
        EmbeddingError: If the vectors differ in dimensionality.
    """
    if not vectors:
        raise ValueError("Cannot average zero vectors")

    dimensions = len(vectors[0])
    totals = [0.0] * dimensions

    for vector in vectors:
        if len(vector) != dimensions:
            raise EmbeddingError(
                f"Vector has {len(vector)} dimensions, expected {dimensions}",
                code=ErrorCode.EMBEDDING_DIMENSION_MISMATCH,
                details={"expected": dimensions, "got": len(vector)},
            )
        for i, value in enumerate(vector):
            totals[i] += value

    n = len(vectors)
    return [total / n for total in totals]
