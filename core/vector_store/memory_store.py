# Path: core/vector_store/memory_store.py
# Purpose: Provide an in-memory vector index with the same contract as the remote backend.
# Layer: core/vector_store.
# Details: Vectorizes bound image fields with an Embedder and ranks by cosine distance using numpy.

from __future__ import annotations

import io
import json
import logging
import threading
import uuid
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Sequence

import numpy as np
from PIL import Image

from core.embedders.base import Embedder
from core.models.domain import CollectionSchema, ImageRecord, IndexHit, PropertySpec
from .base import VectorIndex, VectorIndexError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"


class _Collection:
    def __init__(self, schema: CollectionSchema, dim: int) -> None:
        self.schema = schema
        self.ids: List[str] = []
        self.vectors = np.empty((0, dim), dtype=np.float32)
        self.payloads: Dict[str, Dict[str, str]] = {}


class InMemoryVectorIndex(VectorIndex):
    """Minimal vector index compatible with the ingestion and query engines.

    Cosine distance (``1 - cos``) is used so scores line up with the remote backend.
    Batch inserts are atomic: either every record is added or none is.
    """

    def __init__(self, embedder: Embedder, name: str = "memory") -> None:
        self.embedder = embedder
        self.name = name
        self._collections: Dict[str, _Collection] = {}
        self._lock = threading.Lock()

    def collection_exists(self, name: str) -> bool:
        with self._lock:
            return name in self._collections

    def delete_collection(self, name: str) -> None:
        with self._lock:
            if self._collections.pop(name, None) is None:
                raise VectorIndexError(f"Collection {name!r} does not exist.")

    def create_collection(self, schema: CollectionSchema) -> None:
        with self._lock:
            if schema.name in self._collections:
                raise VectorIndexError(f"Collection {schema.name!r} already exists.")
            self._collections[schema.name] = _Collection(schema, self.embedder.dim)

    def batch_upsert(self, collection: str, records: Sequence[ImageRecord]) -> None:
        target = self._get(collection)
        vectors = [self._vectorize(target.schema, record) for record in records]
        with self._lock:
            self._append(target, records, vectors)

    def single_upsert(self, collection: str, record: ImageRecord) -> None:
        self.batch_upsert(collection, [record])

    def near_text(self, collection: str, query: str, limit: int) -> List[IndexHit]:
        target = self._get(collection)
        with self._lock:
            ids = list(target.ids)
            matrix = target.vectors.copy()
            payloads = dict(target.payloads)
        if not ids:
            return []

        query_vector = self.embedder.embed_text(query)
        if query_vector.shape[0] != matrix.shape[1]:
            raise VectorIndexError(
                f"Query dimensionality {query_vector.shape[0]} does not match index dimension {matrix.shape[1]}."
            )

        distances = 1.0 - matrix @ query_vector
        ranked = np.argsort(distances, kind="stable")[:limit]
        hits: List[IndexHit] = []
        for idx in ranked:
            item_id = ids[idx]
            payload = payloads[item_id]
            hits.append(
                IndexHit(
                    filename=payload["filename"],
                    filepath=payload["filepath"],
                    distance=float(distances[idx]),
                    id=item_id,
                )
            )
        return hits

    def count(self, collection: str) -> int:
        """Return the number of records stored in a collection."""

        target = self._get(collection)
        with self._lock:
            return len(target.ids)

    def save(self, path: str) -> None:
        """Persist every collection as a numpy matrix plus JSON metadata under ``path``.

        Only collection files listed in the previous manifest are replaced; other files are left alone.
        """

        target = Path(path)
        target.mkdir(parents=True, exist_ok=True)
        with self._lock:
            for name in self._manifest_names(target):
                if name not in self._collections:
                    (target / f"{name}.json").unlink(missing_ok=True)
                    (target / f"{name}.npy").unlink(missing_ok=True)
            for name, coll in self._collections.items():
                np.save(target / f"{name}.npy", coll.vectors)
                metadata = {"schema": asdict(coll.schema), "ids": coll.ids, "payloads": coll.payloads}
                (target / f"{name}.json").write_text(json.dumps(metadata))
            (target / MANIFEST_NAME).write_text(json.dumps({"collections": sorted(self._collections)}))
        logger.info("Saved %d collection(s) to %s", len(self._collections), target)

    def load(self, path: str) -> None:
        """Load collections previously saved by :meth:`save`."""

        target = Path(path)
        if not (target / MANIFEST_NAME).is_file():
            raise FileNotFoundError(f"Missing vector index manifest in {path}.")

        collections: Dict[str, _Collection] = {}
        for name in self._manifest_names(target):
            metadata = json.loads((target / f"{name}.json").read_text())
            raw_schema = metadata["schema"]
            schema = CollectionSchema(
                name=raw_schema["name"],
                properties=[PropertySpec(**prop) for prop in raw_schema["properties"]],
                image_fields=list(raw_schema["image_fields"]),
                vectorizer=raw_schema.get("vectorizer", "multi2vec-clip"),
                description=raw_schema.get("description", ""),
            )
            coll = _Collection(schema, self.embedder.dim)
            coll.vectors = np.load(target / f"{name}.npy").astype(np.float32)
            coll.ids = list(metadata.get("ids", []))
            coll.payloads = dict(metadata.get("payloads", {}))
            collections[schema.name] = coll

        with self._lock:
            self._collections = collections

    @staticmethod
    def _manifest_names(target: Path) -> List[str]:
        manifest = target / MANIFEST_NAME
        if not manifest.is_file():
            return []
        return list(json.loads(manifest.read_text()).get("collections", []))

    def _get(self, name: str) -> _Collection:
        with self._lock:
            coll = self._collections.get(name)
        if coll is None:
            raise VectorIndexError(f"Collection {name!r} does not exist.")
        return coll

    def _vectorize(self, schema: CollectionSchema, record: ImageRecord) -> np.ndarray:
        """Embed the fields bound to the vectorizer. Only the image blob is supported."""

        if "image" not in schema.image_fields:
            return np.zeros(self.embedder.dim, dtype=np.float32)
        try:
            with Image.open(io.BytesIO(record.embeddable_image)) as image:
                return self.embedder.embed_image(image)
        except OSError as exc:
            raise VectorIndexError(f"Could not vectorize {record.filename}: {exc}") from exc

    @staticmethod
    def _append(target: _Collection, records: Sequence[ImageRecord], vectors: List[np.ndarray]) -> None:
        if not records:
            return
        ids = [str(uuid.uuid4()) for _ in records]
        target.vectors = np.vstack([target.vectors, np.vstack(vectors).astype(np.float32)])
        target.ids.extend(ids)
        for item_id, record in zip(ids, records):
            target.payloads[item_id] = {"filename": record.filename, "filepath": record.filepath}
