# Path: core/models/__init__.py
# Purpose: Package initializer for domain model definitions.
# Layer: core/models.
# Details: Exposes dataclasses used across ingestion, index, and search layers.

from .domain import (
    UNAVAILABLE,
    CollectionSchema,
    ImageRecord,
    IndexHit,
    IngestionReport,
    IngestionState,
    ItemOutcome,
    NormalizedImage,
    PropertySpec,
    SearchHit,
    SearchResponse,
    similarity_from_distance,
)

__all__ = [
    "UNAVAILABLE",
    "CollectionSchema",
    "ImageRecord",
    "IndexHit",
    "IngestionReport",
    "IngestionState",
    "ItemOutcome",
    "NormalizedImage",
    "PropertySpec",
    "SearchHit",
    "SearchResponse",
    "similarity_from_distance",
]
