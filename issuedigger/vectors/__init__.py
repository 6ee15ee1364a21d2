"""Vector naming, metadata schema and arithmetic."""

from issuedigger.vectors.arithmetic import average
from issuedigger.vectors.metadata import (
    VectorMetadata,
    VectorMetadataV1,
    is_valid_vector_metadata,
    parse_vector_metadata,
)
from issuedigger.vectors.naming import (
    SCHEMA_VERSION,
    RepositoryKey,
    base_vector_id,
    vector_id,
    vector_namespace,
)

__all__ = [
    "SCHEMA_VERSION",
    "RepositoryKey",
    "VectorMetadata",
    "VectorMetadataV1",
    "average",
    "base_vector_id",
    "is_valid_vector_metadata",
    "parse_vector_metadata",
    "vector_id",
    "vector_namespace",
]
