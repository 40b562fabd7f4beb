# Path: core/vector_store/factory.py
# Purpose: Construct the configured vector index backend from application settings.
# Layer: core/vector_store.
# Details: The memory backend is reloaded from disk when a saved copy exists.

from __future__ import annotations

import logging

from config import AppSettings
from core.embedders.clip_embedder import ClipEmbedder
from .base import VectorIndex
from .memory_store import MANIFEST_NAME, InMemoryVectorIndex
from .weaviate_store import WeaviateIndex

logger = logging.getLogger(__name__)


def build_index(settings: AppSettings, load_existing: bool = True) -> VectorIndex:
    """Return a new index client for ``settings.index.backend``."""

    if settings.index.backend == "weaviate":
        return WeaviateIndex(settings.index.url, timeout=settings.index.timeout)

    embedder = ClipEmbedder(model_name=settings.embedder.model_name, dim=settings.embedder.dim)
    index = InMemoryVectorIndex(embedder)
    if load_existing and (settings.index.persist_path / MANIFEST_NAME).is_file():
        index.load(str(settings.index.persist_path))
        logger.info("Loaded in-memory index from %s", settings.index.persist_path)
    return index
