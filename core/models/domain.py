# Path: core/models/domain.py
# Purpose: Define domain models shared across ingestion, index, and search workflows.
# Layer: core/models.
# Details: Lightweight dataclasses simplify serialization between scripts, API, and core services.

from __future__ import annotations

import base64
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

UNAVAILABLE = "N/A"


@dataclass(frozen=True)
class ImageRecord:
    """A normalized image ready to be written to the index.

    ``filepath`` is the only identity signal; the index does not deduplicate.
    """

    embeddable_image: bytes
    filename: str
    filepath: str

    @classmethod
    def from_path(cls, path: Path, embeddable_image: bytes) -> "ImageRecord":
        return cls(embeddable_image=embeddable_image, filename=path.name, filepath=str(path))

    def to_properties(self) -> Dict[str, str]:
        """Return the record as index properties with the image blob base64-encoded."""

        return {
            "image": base64.b64encode(self.embeddable_image).decode("ascii"),
            "filename": self.filename,
            "filepath": self.filepath,
        }


@dataclass(frozen=True)
class NormalizedImage:
    """Re-encoded image bytes plus their encoded size in bytes."""

    data: bytes
    size: int


@dataclass(frozen=True)
class ItemOutcome:
    """Result of preparing one file: either a record or the reason it was dropped."""

    path: Path
    record: Optional[ImageRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def success(cls, path: Path, record: ImageRecord) -> "ItemOutcome":
        return cls(path=path, record=record)

    @classmethod
    def failure(cls, path: Path, error: str) -> "ItemOutcome":
        return cls(path=path, error=error)


@dataclass(frozen=True)
class PropertySpec:
    """One property of a collection schema."""

    name: str
    data_type: str
    description: str = ""


@dataclass(frozen=True)
class CollectionSchema:
    """Backend-neutral description of a collection and its vectorizer binding."""

    name: str
    properties: List[PropertySpec]
    image_fields: List[str]
    vectorizer: str = "multi2vec-clip"
    description: str = ""

    @classmethod
    def for_images(cls, name: str = "Image", vectorizer: str = "multi2vec-clip") -> "CollectionSchema":
        """Schema with an image blob plus filename/filepath metadata.

        Only the image field is bound to the vectorizer so that ranking reflects visual similarity.
        """

        return cls(
            name=name,
            description="A class to store images with vector embeddings",
            vectorizer=vectorizer,
            image_fields=["image"],
            properties=[
                PropertySpec("image", "blob", "The image file as base64 encoded blob"),
                PropertySpec("filename", "string", "The filename of the image"),
                PropertySpec("filepath", "string", "The full file path of the image"),
            ],
        )


@dataclass(frozen=True)
class IndexHit:
    """A raw nearest-neighbor hit as returned by a vector index, in index order."""

    filename: str
    filepath: str
    distance: Optional[float] = None
    id: Optional[str] = None


def similarity_from_distance(distance: Optional[float]) -> Optional[float]:
    """Return ``1 - distance`` for finite distances, ``None`` when unavailable."""

    if distance is None or isinstance(distance, bool):
        return None
    try:
        value = float(distance)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return 1.0 - value


@dataclass(frozen=True)
class SearchHit:
    """An enriched search result. ``None`` for distance/similarity means unavailable."""

    filename: str
    filepath: str
    distance: Optional[float]
    similarity: Optional[float]
    image_url: str
    image_base64: str = ""

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the wire shape used by the HTTP API."""

        return {
            "filename": self.filename,
            "filepath": self.filepath,
            "similarity": UNAVAILABLE if self.similarity is None else f"{self.similarity:.4f}",
            "distance": UNAVAILABLE if self.distance is None else self.distance,
            "imageUrl": self.image_url,
            "imageBase64": self.image_base64,
        }


@dataclass
class SearchResponse:
    """Ordered hits returned by the query engine."""

    results: List[SearchHit] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.results)

    def to_payload(self) -> Dict[str, Any]:
        return {"results": [hit.to_payload() for hit in self.results], "count": self.count}


class IngestionState(str, Enum):
    """Lifecycle of a single ingest run."""

    PENDING = "pending"
    RESETTING = "resetting"
    DISCOVERING = "discovering"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class IngestionReport:
    """Counters and timings collected during an ingest run."""

    state: IngestionState = IngestionState.PENDING
    discovered: int = 0
    processed: int = 0
    normalization_failures: int = 0
    insert_failures: int = 0
    waves: List[int] = field(default_factory=list)
    batch_calls: int = 0
    fallback_batches: int = 0
    elapsed: float = 0.0

    @property
    def rate(self) -> float:
        return self.processed / self.elapsed if self.elapsed > 0 else 0.0

    def summary(self) -> str:
        return (
            f"Processed {self.processed} out of {self.discovered} images in {self.elapsed:.1f}s "
            f"(avg {self.rate:.1f} images/sec)"
        )
