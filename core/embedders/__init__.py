# Path: core/embedders/__init__.py
# Purpose: Package initializer for embedder implementations and interfaces.
# Layer: core/embedders.
# Details: Exposes base interface and the reference implementation.

from .base import Embedder
from .clip_embedder import ClipEmbedder

__all__ = ["Embedder", "ClipEmbedder"]
