"""Vector store module."""

from issuedigger.vectorstore.gateway import VectorIndexGateway
from issuedigger.vectorstore.models import EntityVector, Match, ScoredVector, StoredVector
from issuedigger.vectorstore.service import QdrantVectorStore, VectorStore

__all__ = [
    "EntityVector",
    "Match",
    "QdrantVectorStore",
    "ScoredVector",
    "StoredVector",
    "VectorIndexGateway",
    "VectorStore",
]
