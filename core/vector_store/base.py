# Path: core/vector_store/base.py
# Purpose: Define the VectorIndex interface for collection lifecycle, inserts, and text search.
# Layer: core/vector_store.
# Details: The index vectorizes images and query text itself; callers only send records and prompts.

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from core.models.domain import CollectionSchema, ImageRecord, IndexHit


class VectorIndexError(RuntimeError):
    """Raised when the index backend is unreachable or rejects a request."""


class PartialBatchError(VectorIndexError):
    """Raised when a batch call went through but the backend rejected some of its records.

    ``rejected`` holds the records that were not stored; every other record of the call was.
    """

    def __init__(self, message: str, rejected: Sequence[ImageRecord]) -> None:
        super().__init__(message)
        self.rejected: List[ImageRecord] = list(rejected)


class VectorIndex(ABC):
    """Abstract base class for pluggable vector index backends."""

    name: str

    @abstractmethod
    def collection_exists(self, name: str) -> bool:
        """Return True if a collection with the given name exists."""

    @abstractmethod
    def delete_collection(self, name: str) -> None:
        """Delete a collection and all of its records."""

    @abstractmethod
    def create_collection(self, schema: CollectionSchema) -> None:
        """Create an empty collection from the given schema."""

    @abstractmethod
    def batch_upsert(self, collection: str, records: Sequence[ImageRecord]) -> None:
        """Insert records in one call.

        Raises VectorIndexError if nothing was stored, or PartialBatchError naming the records that were not.
        """

    @abstractmethod
    def single_upsert(self, collection: str, record: ImageRecord) -> None:
        """Insert one record. Raises VectorIndexError if the call fails."""

    @abstractmethod
    def near_text(self, collection: str, query: str, limit: int) -> List[IndexHit]:
        """Return up to ``limit`` hits for the query text, sorted by ascending distance."""
