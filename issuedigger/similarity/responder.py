"""Similar-issue lookup and the comment text reporting it."""

from collections.abc import Sequence

from issuedigger.embeddings.reducer import EmbeddingReducer
from issuedigger.logging_config import get_logger
from issuedigger.vectors.metadata import parse_vector_metadata
from issuedigger.vectors.naming import SCHEMA_VERSION, vector_id, vector_namespace
from issuedigger.vectorstore.gateway import VectorIndexGateway
from issuedigger.vectorstore.models import Match

logger = get_logger(__name__)

NO_MATCHES = "No similar issues found."
HEADER = "The most similar issues to this one are:\n"
LOW_SCORE_THRESHOLD = 0.6
LOW_SCORE_WARNING = " ⚠️ This is a low score, indicating weak similarity."


def to_precision(value: float, digits: int = 2) -> str:
    """Render a number with a fixed count of significant figures, keeping trailing zeros.

    Fixed-point is used for decimal exponents from -6 below `digits`, and
    exponent notation otherwise, as in JavaScript's `toPrecision`.
    """
    if value == 0:
        return f"{0.0:.{digits - 1}f}"

    mantissa, exponent = f"{value:.{digits - 1}e}".split("e")
    power = int(exponent)
    if -6 <= power < digits:
        return f"{value:.{digits - 1 - power}f}"
    return f"{mantissa}e{power:+d}"


def format_response(matches: Sequence[Match]) -> str:
    """Human-readable list of similar issues, most similar first.

    Raises:
        MetadataError: If any match carries invalid metadata; nothing is
            formatted in that case.
    """
    logger.debug("Formatting response for vector matches")
    if not matches:
        return NO_MATCHES

    ranked = sorted(matches, key=lambda m: m.score, reverse=True)

    parts = [HEADER]
    for i, match in enumerate(ranked, start=1):
        metadata = parse_vector_metadata(match.metadata, SCHEMA_VERSION)
        line = (
            f"{i}. #{metadata.issue_number} , with a similarity score of "
            f"_{to_precision(match.score)}_."
        )
        if match.score < LOW_SCORE_THRESHOLD:
            line += LOW_SCORE_WARNING
        parts.append(line)

    return "\n".join(parts)


class SimilarityResponder:
    """Finds the issues most similar to a given one within its repository."""

    def __init__(
        self,
        reducer: EmbeddingReducer,
        gateway: VectorIndexGateway,
        n_similar: int = 3,
    ) -> None:
        self._reducer = reducer
        self._gateway = gateway
        self._n_similar = n_similar

    async def find_similar(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        title: str | None,
        body: str | None,
    ) -> list[Match]:
        """Top matches for an issue, excluding the issue itself.

        Raises:
            EmbeddingError: If the issue text could not be embedded.
            MetadataError: If any match carries invalid metadata.
        """
        embedding = await self._reducer.embed_item(title, body)
        own_id = vector_id(owner, repo, issue_number)

        # One extra, as the issue itself is likely indexed already.
        matches = await self._gateway.query(
            embedding,
            vector_namespace(owner, repo),
            self._n_similar + 1,
        )
        others = [m for m in matches if m.id != own_id]

        logger.info(
            f"Found {len(others)} similar issues",
            extra={"id": own_id, "scores": [m.score for m in others]},
        )
        return others[: self._n_similar]

    async def respond(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        title: str | None,
        body: str | None,
    ) -> tuple[str, list[Match]]:
        """Comment text for an issue, with the matches it lists."""
        matches = await self.find_similar(owner, repo, issue_number, title, body)
        return format_response(matches), matches
