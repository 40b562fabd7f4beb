# Path: core/vector_store/weaviate_store.py
# Purpose: Implement the VectorIndex contract against a Weaviate server.
# Layer: core/vector_store.
# Details: Uses the REST schema/objects/batch endpoints and a GraphQL nearText query via requests.

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from core.models.domain import CollectionSchema, ImageRecord, IndexHit
from .base import PartialBatchError, VectorIndex, VectorIndexError

logger = logging.getLogger(__name__)


def schema_to_class(schema: CollectionSchema) -> Dict[str, Any]:
    """Translate a backend-neutral schema into a Weaviate class definition."""

    return {
        "class": schema.name,
        "description": schema.description,
        "vectorizer": schema.vectorizer,
        "moduleConfig": {schema.vectorizer: {"imageFields": list(schema.image_fields)}},
        "properties": [
            {"name": prop.name, "dataType": [prop.data_type], "description": prop.description}
            for prop in schema.properties
        ],
    }


class WeaviateIndex(VectorIndex):
    """Thin synchronous Weaviate client covering what ingestion and search need."""

    def __init__(self, url: str, timeout: float = 30.0, session: Optional[requests.Session] = None) -> None:
        self.name = "weaviate"
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def collection_exists(self, name: str) -> bool:
        response = self._request("GET", f"/v1/schema/{name}", allow_status=(404,))
        return response.status_code == 200

    def delete_collection(self, name: str) -> None:
        self._request("DELETE", f"/v1/schema/{name}")

    def create_collection(self, schema: CollectionSchema) -> None:
        self._request("POST", "/v1/schema", payload=schema_to_class(schema))

    def batch_upsert(self, collection: str, records: Sequence[ImageRecord]) -> None:
        objects = [{"class": collection, "properties": record.to_properties()} for record in records]
        response = self._request("POST", "/v1/batch/objects", payload={"objects": objects})
        # Per-object errors come back with HTTP 200, one result per object in request order.
        rejected: List[ImageRecord] = []
        for record, item in zip(records, self._json(response) or []):
            errors = ((item or {}).get("result") or {}).get("errors")
            if errors:
                logger.warning("Batch object %s reported errors: %s", record.filename, errors)
                rejected.append(record)
        if rejected:
            raise PartialBatchError(
                f"{len(rejected)} of {len(records)} object(s) rejected by {collection!r} batch insert.", rejected
            )

    def single_upsert(self, collection: str, record: ImageRecord) -> None:
        self._request("POST", "/v1/objects", payload={"class": collection, "properties": record.to_properties()})

    def near_text(self, collection: str, query: str, limit: int) -> List[IndexHit]:
        graphql = (
            "{ Get { %s(nearText: {concepts: [%s]}, limit: %d) "
            "{ filename filepath _additional { id distance } } } }" % (collection, json.dumps(query), int(limit))
        )
        body = self._json(self._request("POST", "/v1/graphql", payload={"query": graphql})) or {}
        if body.get("errors"):
            messages = "; ".join(str(err.get("message", err)) for err in body["errors"])
            raise VectorIndexError(f"nearText query on {collection!r} failed: {messages}")

        rows = ((body.get("data") or {}).get("Get") or {}).get(collection) or []
        hits: List[IndexHit] = []
        for row in rows:
            additional = row.get("_additional") or {}
            hits.append(
                IndexHit(
                    filename=row.get("filename") or "",
                    filepath=row.get("filepath") or "",
                    distance=additional.get("distance"),
                    id=additional.get("id"),
                )
            )
        return hits

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        allow_status: Sequence[int] = (),
    ) -> requests.Response:
        try:
            response = self.session.request(method, f"{self.url}{path}", json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise VectorIndexError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400 and response.status_code not in allow_status:
            raise VectorIndexError(f"{method} {path} returned {response.status_code}: {response.text[:500]}")
        return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise VectorIndexError(f"Invalid JSON from index: {exc}") from exc
