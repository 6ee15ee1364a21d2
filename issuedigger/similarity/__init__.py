"""Similar issue responses."""

from issuedigger.similarity.responder import (
    LOW_SCORE_WARNING,
    NO_MATCHES,
    SimilarityResponder,
    format_response,
    to_precision,
)

__all__ = [
    "LOW_SCORE_WARNING",
    "NO_MATCHES",
    "SimilarityResponder",
    "format_response",
    "to_precision",
]
