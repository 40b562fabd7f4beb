# Path: core/embedders/base.py
# Purpose: Define the Embedder interface for image and text embeddings.
# Layer: core/embedders.
# Details: Used by the in-process index backend to vectorize stored images and query text.

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
from PIL import Image


class Embedder(ABC):
    """Abstract base class for embedders that share one image/text vector space."""

    name: str
    dim: int

    @abstractmethod
    def embed_image(self, image: Image.Image) -> np.ndarray:
        """Return an embedding for a given image."""

    @abstractmethod
    def embed_text(self, text: str) -> np.ndarray:
        """Return an embedding for a given text query."""

    @staticmethod
    def _normalize(vector: np.ndarray) -> np.ndarray:
        """Normalize embedding vectors to unit length to simplify similarity comparisons."""

        norm = np.linalg.norm(vector)
        if norm == 0:
            return vector.astype(np.float32)
        return (vector / norm).astype(np.float32)
