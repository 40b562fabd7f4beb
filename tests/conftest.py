import io
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

import numpy as np
import pytest
from PIL import Image

from core.embedders.clip_embedder import ClipEmbedder
from core.models.domain import CollectionSchema, ImageRecord, IndexHit
from core.vector_store.base import PartialBatchError, VectorIndex, VectorIndexError
from core.vector_store.memory_store import InMemoryVectorIndex


def make_noise_image(seed: int, size=(64, 48)) -> Image.Image:
    rng = np.random.default_rng(seed)
    arr = rng.integers(0, 256, (size[1], size[0], 3), dtype=np.uint8)
    return Image.fromarray(arr, mode="RGB")


def image_bytes(seed: int = 0, fmt: str = "JPEG", size=(64, 48)) -> bytes:
    buffer = io.BytesIO()
    make_noise_image(seed, size).save(buffer, format=fmt)
    return buffer.getvalue()


def write_image(path: Path, seed: int = 0, fmt: str = "JPEG") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(image_bytes(seed, fmt))
    return path


class RecordingIndex(VectorIndex):
    """In-memory VectorIndex fake that records every call and can be told to fail."""

    def __init__(
        self,
        fail_batch_calls: Optional[Set[int]] = None,
        fail_single_filenames: Optional[Set[str]] = None,
        fail_single_calls: Optional[Set[int]] = None,
        reject_batch_filenames: Optional[Set[str]] = None,
        hits: Optional[List[IndexHit]] = None,
    ) -> None:
        self.name = "recording"
        self.collections: Dict[str, List[ImageRecord]] = {}
        self.schemas: Dict[str, CollectionSchema] = {}
        self.calls: List[tuple] = []
        self.fail_batch_calls = fail_batch_calls or set()
        self.fail_single_filenames = fail_single_filenames or set()
        self.fail_single_calls = fail_single_calls or set()
        self.reject_batch_filenames = reject_batch_filenames or set()
        self.hits = hits
        self.batch_call_count = 0
        self.single_call_count = 0
        self._lock = threading.Lock()

    def collection_exists(self, name: str) -> bool:
        self.calls.append(("exists", name))
        return name in self.collections

    def delete_collection(self, name: str) -> None:
        self.calls.append(("delete", name))
        if name not in self.collections:
            raise VectorIndexError(f"missing {name}")
        del self.collections[name]

    def create_collection(self, schema: CollectionSchema) -> None:
        self.calls.append(("create", schema.name))
        self.collections[schema.name] = []
        self.schemas[schema.name] = schema

    def batch_upsert(self, collection: str, records: Sequence[ImageRecord]) -> None:
        self.batch_call_count += 1
        self.calls.append(("batch", collection, [r.filename for r in records]))
        if self.batch_call_count in self.fail_batch_calls:
            raise VectorIndexError("simulated batch failure")
        rejected = [r for r in records if r.filename in self.reject_batch_filenames]
        self.collections[collection].extend(r for r in records if r not in rejected)
        if rejected:
            raise PartialBatchError("simulated rejection", rejected)

    def single_upsert(self, collection: str, record: ImageRecord) -> None:
        self.single_call_count += 1
        self.calls.append(("single", collection, record.filename))
        if record.filename in self.fail_single_filenames or self.single_call_count in self.fail_single_calls:
            raise VectorIndexError(f"simulated insert failure for {record.filename}")
        self.collections[collection].append(record)

    def near_text(self, collection: str, query: str, limit: int) -> List[IndexHit]:
        self.calls.append(("near_text", collection, query, limit))
        if collection not in self.collections:
            raise VectorIndexError(f"missing {collection}")
        if self.hits is not None:
            return list(self.hits[:limit])
        return [
            IndexHit(filename=r.filename, filepath=r.filepath, distance=0.1 * i)
            for i, r in enumerate(self.collections[collection][:limit])
        ]

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


class SpyMemoryIndex(InMemoryVectorIndex):
    """Real in-memory index that also counts batch and single inserts."""

    def __init__(self) -> None:
        super().__init__(ClipEmbedder(dim=64))
        self.batch_sizes: List[int] = []
        self.single_calls = 0

    def batch_upsert(self, collection, records):
        self.batch_sizes.append(len(records))
        super().batch_upsert(collection, records)

    def single_upsert(self, collection, record):
        self.single_calls += 1
        super().single_upsert(collection, record)


@pytest.fixture
def schema() -> CollectionSchema:
    return CollectionSchema.for_images("Image")


@pytest.fixture
def recording_index() -> RecordingIndex:
    return RecordingIndex()


@pytest.fixture
def memory_index() -> SpyMemoryIndex:
    return SpyMemoryIndex()


@pytest.fixture
def corpus(tmp_path: Path) -> Path:
    """Three JPEGs, one of them in a subdirectory, plus an unsupported text file."""

    root = tmp_path / "images"
    write_image(root / "cat.jpg", seed=1)
    write_image(root / "dog.jpg", seed=2)
    write_image(root / "nested" / "bird.jpg", seed=3)
    (root / "notes.txt").write_text("not an image")
    return root
