"""Deterministic names for vectors and namespaces.

Every vector lives in a per-repository namespace so that similarity queries
never cross repositories. Both names carry a schema version prefix so a
future metadata layout can coexist with the current one.
"""

from typing import NamedTuple

from issuedigger.logging_config import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

# Limits of the downstream index. Exceeding them only warns: the limits
# may change, and things might still work.
MAX_NAMESPACE_BYTES = 63
MAX_VECTOR_ID_BYTES = 64


class RepositoryKey(NamedTuple):
    """A repository, the unit of namespace scoping and (off)boarding."""

    owner: str
    name: str

    @classmethod
    def from_full_name(cls, full_name: str) -> "RepositoryKey":
        """Build a key from an `owner/name` string."""
        owner, _, name = full_name.partition("/")
        if not owner or not name or "/" in name:
            raise ValueError(f"Expected 'owner/name', got {full_name!r}")
        return cls(owner=owner, name=name)

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


def _byte_length(value: str) -> int:
    return len(value.encode("utf-8"))


def vector_namespace(owner: str, name: str) -> str:
    """Namespace for all vectors of one repository, e.g. `N1/owner/repo`."""
    namespace = f"N{SCHEMA_VERSION}/{owner}/{name}"

    if _byte_length(namespace) > MAX_NAMESPACE_BYTES:
        logger.warning(
            f"Namespace '{namespace}' is longer than {MAX_NAMESPACE_BYTES} bytes. "
            "This will probably cause issues."
        )

    return namespace


def base_vector_id(owner: str, name: str) -> str:
    """Common prefix of all vector IDs of one repository, e.g. `I1/owner/repo`.

    IDs double as keys in the bookkeeping store, where periods are not
    allowed. GitHub logins cannot contain `@` and neither can repository
    names, so periods are rewritten to `@`. The mapping is assumed to be
    unambiguous under GitHub naming rules; it is not a general encoding.
    """
    base_id = f"I{SCHEMA_VERSION}/{owner}/{name}"
    return base_id.replace(".", "@")


def vector_id(owner: str, name: str, issue_number: int) -> str:
    """ID of the one vector representing an issue thread, e.g. `I1/owner/repo/7`."""
    identifier = f"{base_vector_id(owner, name)}/{issue_number}"

    if _byte_length(identifier) > MAX_VECTOR_ID_BYTES:
        logger.warning(
            f"Vector ID '{identifier}' is longer than {MAX_VECTOR_ID_BYTES} bytes. "
            "This will probably cause issues."
        )

    return identifier
