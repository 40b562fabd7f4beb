# Path: core/indexing/__init__.py
# Purpose: Package initializer for indexing utilities.
# Layer: core/indexing.
# Details: Exposes scanning, normalization, collection lifecycle, and the ingestion engine.

from .scanner import ImageScanner, SUPPORTED_EXTENSIONS
from .normalizer import ImageNormalizationError, ImageNormalizer
from .lifecycle import CollectionManager
from .index_builder import IngestionEngine, ThroughputMeter, chunked

__all__ = [
    "ImageScanner",
    "SUPPORTED_EXTENSIONS",
    "ImageNormalizationError",
    "ImageNormalizer",
    "CollectionManager",
    "IngestionEngine",
    "ThroughputMeter",
    "chunked",
]
