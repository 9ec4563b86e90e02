"""
Embedding similarity index.

``SimilarityIndex`` is the interface callers depend on; the brute-force
implementation scans every document of a tenant partition with numpy. The
index stores embeddings it is given and never computes them.
"""

import copy
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..utils.error_handling import DimensionMismatchError, ValidationError, validate_input
from ..utils.logging import get_logger


@dataclass
class VectorDocument:
    """A document with its embedding, scoped to one tenant."""
    id: str
    content: str
    embedding: List[float]
    tenant_id: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    inserted_at: float = field(default_factory=time.time)

    @property
    def type(self) -> Optional[str]:
        return self.metadata.get("type")

    def to_dict(self, include_embedding: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "content": self.content,
            "tenant_id": self.tenant_id,
            "metadata": copy.deepcopy(self.metadata),
            "inserted_at": self.inserted_at,
        }
        if include_embedding:
            data["embedding"] = list(self.embedding)
        return data


@dataclass(frozen=True)
class SimilarityMatch:
    document_id: str
    score: float


class SimilarityIndex(ABC):
    """Abstract interface for per-tenant nearest-neighbour search."""

    @abstractmethod
    def insert(self, document: VectorDocument) -> bool:
        """Store a document. Returns False when its id already exists."""

    @abstractmethod
    def find_similar(
        self,
        query_embedding: Sequence[float],
        tenant_id: str,
        type_filter: Optional[str] = None,
        limit: int = 10,
    ) -> List[SimilarityMatch]:
        """Rank the tenant's documents by cosine similarity to the query."""

    @abstractmethod
    def get(self, tenant_id: str, document_id: str) -> Optional[VectorDocument]:
        """Fetch a document by id."""

    @abstractmethod
    def remove(self, tenant_id: str, document_id: str) -> bool:
        """Delete a document. Returns False when it was not present."""

    @abstractmethod
    def clear(self, tenant_id: str) -> int:
        """Delete every document of a tenant and return how many were removed."""

    @abstractmethod
    def count(self, tenant_id: str) -> int:
        """Number of documents held for a tenant."""


class _IndexPartition:
    """Documents of one tenant with their unit vectors."""

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        self.lock = threading.RLock()
        self.dimension: Optional[int] = None
        self.documents: Dict[str, VectorDocument] = {}
        self.unit_vectors: Dict[str, np.ndarray] = {}
        self.retired = False


def _unit_vector(vector: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(vector)
    if norm == 0:
        # Zero vectors stay zero so every dot product against them is 0
        return vector
    return vector / norm


class BruteForceSimilarityIndex(SimilarityIndex):
    """Exact cosine similarity over every document in a tenant partition."""

    def __init__(self):
        self.logger = get_logger(__name__)
        self._partitions: Dict[str, _IndexPartition] = {}
        self._registry_lock = threading.Lock()

    def _get_partition(self, tenant_id: str, create: bool = False) -> Optional[_IndexPartition]:
        partition = self._partitions.get(tenant_id)
        if partition is not None or not create:
            return partition

        with self._registry_lock:
            partition = self._partitions.get(tenant_id)
            if partition is None:
                partition = _IndexPartition(tenant_id)
                self._partitions[tenant_id] = partition
            return partition

    def _as_array(self, embedding: Sequence[float], field_name: str) -> np.ndarray:
        if embedding is None or len(embedding) == 0:
            raise ValidationError(f"{field_name} must not be empty", details={"field": field_name})
        try:
            vector = np.asarray(embedding, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"{field_name} must be a sequence of numbers: {e}", details={"field": field_name}) from e
        if vector.ndim != 1:
            raise ValidationError(f"{field_name} must be one-dimensional", details={"field": field_name})
        return vector

    def insert(self, document: VectorDocument) -> bool:
        validate_input(document.tenant_id, "tenant", str)
        validate_input(document.id, "document id", str)
        vector = self._as_array(document.embedding, "embedding")

        while True:
            partition = self._get_partition(document.tenant_id, create=True)
            with partition.lock:
                if not partition.retired:
                    return self._insert_into(partition, document, vector)

    def _insert_into(self, partition: _IndexPartition, document: VectorDocument, vector: np.ndarray) -> bool:
        # Caller holds partition.lock
        if partition.dimension is not None and len(vector) != partition.dimension:
            raise DimensionMismatchError(partition.dimension, len(vector), document.tenant_id)

        if document.id in partition.documents:
            self.logger.debug(f"Document {document.id} already indexed for tenant {document.tenant_id}")
            return False

        if partition.dimension is None:
            partition.dimension = len(vector)

        stored = VectorDocument(
            id=document.id,
            content=document.content,
            embedding=[float(x) for x in vector],
            tenant_id=document.tenant_id,
            metadata=copy.deepcopy(document.metadata),
            inserted_at=document.inserted_at,
        )
        partition.documents[document.id] = stored
        partition.unit_vectors[document.id] = _unit_vector(vector)

        self.logger.debug(f"Indexed document {document.id} for tenant {document.tenant_id}")
        return True

    def find_similar(
        self,
        query_embedding: Sequence[float],
        tenant_id: str,
        type_filter: Optional[str] = None,
        limit: int = 10,
    ) -> List[SimilarityMatch]:
        if limit <= 0:
            return []

        partition = self._get_partition(tenant_id)
        if partition is None:
            return []

        query = _unit_vector(self._as_array(query_embedding, "query embedding"))

        with partition.lock:
            if partition.dimension is None:
                return []
            if len(query) != partition.dimension:
                raise DimensionMismatchError(partition.dimension, len(query), tenant_id)

            candidates = [
                doc_id for doc_id, doc in partition.documents.items()
                if type_filter is None or doc.type == type_filter
            ]
            if not candidates:
                return []

            matrix = np.vstack([partition.unit_vectors[doc_id] for doc_id in candidates])

        scores = matrix @ query
        ranked = sorted(zip(candidates, scores.tolist()), key=lambda item: (-item[1], item[0]))

        return [SimilarityMatch(document_id=doc_id, score=float(score)) for doc_id, score in ranked[:limit]]

    def get(self, tenant_id: str, document_id: str) -> Optional[VectorDocument]:
        partition = self._get_partition(tenant_id)
        if partition is None:
            return None
        with partition.lock:
            document = partition.documents.get(document_id)
            return copy.deepcopy(document) if document is not None else None

    def remove(self, tenant_id: str, document_id: str) -> bool:
        partition = self._get_partition(tenant_id)
        if partition is None:
            return False
        with partition.lock:
            if document_id not in partition.documents:
                return False
            del partition.documents[document_id]
            del partition.unit_vectors[document_id]
            return True

    def clear(self, tenant_id: str) -> int:
        """Drop the tenant partition, including its established dimension."""
        with self._registry_lock:
            partition = self._partitions.pop(tenant_id, None)
        if partition is None:
            return 0
        with partition.lock:
            removed = len(partition.documents)
            partition.documents.clear()
            partition.unit_vectors.clear()
            partition.dimension = None
            partition.retired = True

        self.logger.info(f"Cleared {removed} indexed documents for tenant: {tenant_id}")
        return removed

    def count(self, tenant_id: str) -> int:
        partition = self._get_partition(tenant_id)
        if partition is None:
            return 0
        with partition.lock:
            return len(partition.documents)

    def dimension(self, tenant_id: str) -> Optional[int]:
        partition = self._get_partition(tenant_id)
        return partition.dimension if partition is not None else None
