# Path: core/search/pipeline.py
# Purpose: Answer text prompts with the nearest stored images, enriched for display.
# Layer: core/search.
# Details: Delegates ranking to the vector index, then adds similarity, a data URI, and a public URL per hit.

from __future__ import annotations

import base64
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

from core.models.domain import IndexHit, SearchHit, SearchResponse, similarity_from_distance
from core.vector_store.base import VectorIndex

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_ENRICHMENT_WORKERS = 8

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


class QueryValidationError(ValueError):
    """Raised for a missing prompt or an invalid limit."""


def encode_image_to_data_uri(filepath: str) -> str:
    """Read ``filepath`` and return it as a base64 ``data:`` URI. Raises OSError on read failure."""

    data = Path(filepath).read_bytes()
    mime_type = MIME_TYPES.get(Path(filepath).suffix.lower(), "image/jpeg")
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class QueryEngine:
    """High-level service bridging the API and CLI layers with the vector index."""

    def __init__(self, index: VectorIndex, collection: str = "Image", images_route: str = "/images") -> None:
        self.index = index
        self.collection = collection
        self.images_route = "/" + images_route.strip("/")

    def search(self, prompt: Optional[str], limit: int = DEFAULT_LIMIT, base_url: str = "") -> SearchResponse:
        """
        Return up to ``limit`` hits for ``prompt`` in index order (most similar first).

        External calls:
        - core/vector_store/base.py::VectorIndex.near_text - embeds the prompt and ranks stored images.
        """

        if prompt is None or not str(prompt).strip():
            raise QueryValidationError("Please provide a search prompt.")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise QueryValidationError(f"limit must be a positive integer, got {limit!r}.")

        raw_hits = self.index.near_text(self.collection, str(prompt), limit)
        if not raw_hits:
            return SearchResponse()

        base_url = base_url.rstrip("/")
        workers = min(MAX_ENRICHMENT_WORKERS, len(raw_hits))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="enrich") as pool:
            hits: List[SearchHit] = list(pool.map(lambda hit: self._enrich(hit, base_url), raw_hits))
        return SearchResponse(results=hits)

    def image_url(self, base_url: str, filename: str) -> str:
        return f"{base_url}{self.images_route}/{quote(filename)}"

    def _enrich(self, hit: IndexHit, base_url: str) -> SearchHit:
        image_base64 = ""
        try:
            image_base64 = encode_image_to_data_uri(hit.filepath)
        except OSError as exc:
            logger.error("Failed to encode image %s: %s", hit.filepath, exc)

        similarity = similarity_from_distance(hit.distance)
        return SearchHit(
            filename=hit.filename,
            filepath=hit.filepath,
            distance=None if similarity is None else float(hit.distance),
            similarity=similarity,
            image_url=self.image_url(base_url, hit.filename),
            image_base64=image_base64,
        )
