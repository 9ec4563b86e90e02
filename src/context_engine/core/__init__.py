"""
Core components of the Context Engine.
"""

from .context_store import ContextStore, ContextEntry, MISSING
from .similarity_index import (
    SimilarityIndex,
    BruteForceSimilarityIndex,
    VectorDocument,
    SimilarityMatch,
)
from .model_gateway import ModelGateway, Deadline
from .service import MCPService, RESOURCES

__all__ = [
    "ContextStore",
    "ContextEntry",
    "MISSING",
    "SimilarityIndex",
    "BruteForceSimilarityIndex",
    "VectorDocument",
    "SimilarityMatch",
    "ModelGateway",
    "Deadline",
    "MCPService",
    "RESOURCES",
]
