# Path: core/indexing/normalizer.py
# Purpose: Convert raw image bytes into the fixed square JPEG the index vectorizer expects.
# Layer: core/indexing.
# Details: Cover-fits (centre crop, no letterboxing) and re-encodes at high quality with Pillow.

from __future__ import annotations

import io
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from core.models.domain import NormalizedImage


class ImageNormalizationError(ValueError):
    """Raised when an image cannot be decoded or re-encoded."""


class ImageNormalizer:
    """Resize images to ``size`` x ``size`` and encode them as JPEG."""

    def __init__(self, size: int = 224, quality: int = 95) -> None:
        self.size = size
        self.quality = quality

    def normalize(self, data: bytes) -> NormalizedImage:
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                rgb = image.convert("RGB")
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ImageNormalizationError(f"Unreadable image: {exc}") from exc

        fitted = ImageOps.fit(rgb, (self.size, self.size), method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
        buffer = io.BytesIO()
        fitted.save(buffer, format="JPEG", quality=self.quality, optimize=True)
        encoded = buffer.getvalue()
        return NormalizedImage(data=encoded, size=len(encoded))

    def normalize_file(self, path: Path) -> NormalizedImage:
        """Read ``path`` and normalize its contents."""

        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise ImageNormalizationError(f"Could not read {path}: {exc}") from exc
        return self.normalize(data)
