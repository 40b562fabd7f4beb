# Path: core/embedders/clip_embedder.py
# Purpose: Provide a lightweight CLIP-style embedder implementation.
# Layer: core/embedders.
# Details: Uses deterministic numpy-based projections so the in-memory index works without model weights.

from __future__ import annotations

import hashlib

import numpy as np
from PIL import Image

from .base import Embedder


class ClipEmbedder(Embedder):
    """Stub implementation that mimics CLIP behavior with lightweight operations."""

    def __init__(self, model_name: str = "ViT-B-32", dim: int = 512) -> None:
        self.model_name = model_name
        self.dim = dim
        self.name = "clip"

    def embed_image(self, image: Image.Image) -> np.ndarray:
        """Generate a deterministic image embedding from a coarse colour thumbnail."""

        resized = image.convert("RGB").resize((16, 16))
        pixels = np.asarray(resized, dtype=np.float32).flatten() / 255.0
        centered = pixels - pixels.mean()
        padded = np.resize(centered, self.dim)
        return self._normalize(padded)

    def embed_text(self, text: str) -> np.ndarray:
        """Generate a deterministic text embedding based on hashing."""

        hash_bytes = hashlib.sha256(text.strip().lower().encode("utf-8")).digest()
        expanded = np.frombuffer(hash_bytes * (self.dim // len(hash_bytes) + 1), dtype=np.uint8)
        vector = expanded[: self.dim].astype(np.float32) - 127.5
        return self._normalize(vector)
