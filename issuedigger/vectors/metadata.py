"""Versioned vector metadata.

Metadata is stored as an untyped payload next to each vector, so anything
read back from the index has to be validated before use. The predicate is
keyed on an explicit schema version so later layouts can coexist.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from issuedigger.exceptions import MetadataError


class VectorMetadataV1(BaseModel):
    """Metadata of a version 1 issue vector."""

    model_config = ConfigDict(frozen=True)

    version: Literal[1] = Field(default=1, description="Schema version")
    issue_number: int = Field(description="Issue number within the repository")
    owner: str = Field(description="Repository owner login")
    repo: str = Field(description="Repository name")

    def to_payload(self) -> dict[str, Any]:
        """Plain dict suitable for storing alongside a vector."""
        return self.model_dump()


# Union of all supported layouts; only one so far.
VectorMetadata = VectorMetadataV1


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_valid_vector_metadata(data: Any, version: int) -> bool:
    """Check whether `data` is well-formed metadata of the given schema version.

    Unknown versions are never valid. Extra keys are tolerated.
    """
    match version:
        case 1:
            if not isinstance(data, dict):
                return False
            return (
                data.get("version") == 1
                and _is_int(data.get("version"))
                and _is_int(data.get("issue_number"))
                and isinstance(data.get("owner"), str)
                and isinstance(data.get("repo"), str)
            )
        case _:
            return False


def parse_vector_metadata(data: Any, version: int = 1) -> VectorMetadata:
    """Validate and convert a stored payload into typed metadata.

    Raises:
        MetadataError: If the payload does not match the schema version.
    """
    if not is_valid_vector_metadata(data, version):
        raise MetadataError(
            f"Vector metadata isn't in usable format, got {data!r}",
            details={"version": version},
        )
    return VectorMetadataV1(
        issue_number=data["issue_number"],
        owner=data["owner"],
        repo=data["repo"],
    )
