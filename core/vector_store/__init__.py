# Path: core/vector_store/__init__.py
# Purpose: Package initializer for vector index interfaces and implementations.
# Layer: core/vector_store.
# Details: Exposes the index contract, the Weaviate client, the in-memory backend, and a settings-driven factory.

from .base import PartialBatchError, VectorIndex, VectorIndexError
from .factory import build_index
from .memory_store import InMemoryVectorIndex
from .weaviate_store import WeaviateIndex

__all__ = ["VectorIndex", "VectorIndexError", "PartialBatchError", "InMemoryVectorIndex", "WeaviateIndex", "build_index"]
