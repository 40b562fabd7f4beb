import json

import pytest
import requests

from core.indexing.index_builder import IngestionEngine
from core.models.domain import CollectionSchema, ImageRecord
from core.vector_store.base import PartialBatchError, VectorIndexError
from core.vector_store.weaviate_store import WeaviateIndex, schema_to_class

from .conftest import write_image


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.content = b"" if payload is None else json.dumps(payload).encode()
        self.text = self.content.decode()

    def json(self):
        return json.loads(self.content)


class FakeSession:
    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.requests = []

    def request(self, method, url, json=None, timeout=None):
        self.requests.append((method, url, json, timeout))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0) if self.responses else FakeResponse()


def _index(*responses, error=None):
    session = FakeSession(responses, error)
    return WeaviateIndex("http://weaviate:8080/", timeout=5, session=session), session


def test_collection_exists_maps_status_codes():
    index, session = _index(FakeResponse(200, {"class": "Image"}), FakeResponse(404))

    assert index.collection_exists("Image") is True
    assert index.collection_exists("Image") is False
    assert session.requests[0][:2] == ("GET", "http://weaviate:8080/v1/schema/Image")


def test_schema_binds_only_image_field():
    definition = schema_to_class(CollectionSchema.for_images("Image"))

    assert definition["class"] == "Image"
    assert definition["vectorizer"] == "multi2vec-clip"
    assert definition["moduleConfig"] == {"multi2vec-clip": {"imageFields": ["image"]}}
    assert [p["dataType"] for p in definition["properties"]] == [["blob"], ["string"], ["string"]]


def test_batch_upsert_sends_base64_properties():
    index, session = _index(FakeResponse(200, []))
    record = ImageRecord(b"\xff\xd8jpeg", "a.jpg", "/corpus/a.jpg")

    index.batch_upsert("Image", [record])

    method, url, body, timeout = session.requests[0]
    assert (method, url, timeout) == ("POST", "http://weaviate:8080/v1/batch/objects", 5)
    assert body["objects"][0]["class"] == "Image"
    assert body["objects"][0]["properties"] == record.to_properties()


def test_server_error_raises_vector_index_error():
    index, _ = _index(FakeResponse(500, {"error": "boom"}))

    with pytest.raises(VectorIndexError):
        index.batch_upsert("Image", [ImageRecord(b"x", "a.jpg", "/a.jpg")])


def test_connection_error_raises_vector_index_error():
    index, _ = _index(error=requests.ConnectionError("refused"))

    with pytest.raises(VectorIndexError):
        index.collection_exists("Image")


def test_near_text_parses_hits_in_server_order():
    payload = {
        "data": {
            "Get": {
                "Image": [
                    {"filename": "b.jpg", "filepath": "/b.jpg", "_additional": {"id": "2", "distance": 0.1}},
                    {"filename": "a.jpg", "filepath": "/a.jpg", "_additional": {"id": "1", "distance": None}},
                ]
            }
        }
    }
    index, session = _index(FakeResponse(200, payload))

    hits = index.near_text("Image", 'red "sports" car', 2)

    assert [(h.filename, h.distance, h.id) for h in hits] == [("b.jpg", 0.1, "2"), ("a.jpg", None, "1")]
    query = session.requests[0][2]["query"]
    assert 'concepts: ["red \\"sports\\" car"]' in query
    assert "limit: 2" in query


def test_near_text_with_no_matches_returns_empty_list():
    index, _ = _index(FakeResponse(200, {"data": {"Get": {"Image": []}}}))

    assert index.near_text("Image", "nothing", 10) == []


def test_graphql_errors_raise():
    index, _ = _index(FakeResponse(200, {"errors": [{"message": "class not found"}]}))

    with pytest.raises(VectorIndexError, match="class not found"):
        index.near_text("Image", "dog", 3)


def test_batch_rejections_raise_partial_batch_error():
    records = [ImageRecord(b"a", "good.jpg", "/good.jpg"), ImageRecord(b"b", "bad.jpg", "/bad.jpg")]
    reply = [{"result": {}}, {"result": {"errors": {"error": [{"message": "invalid blob"}]}}}]
    index, _ = _index(FakeResponse(200, reply))

    with pytest.raises(PartialBatchError) as excinfo:
        index.batch_upsert("Image", records)

    assert excinfo.value.rejected == [records[1]]


class WeaviateServer:
    """Session stub that answers like a server which rejects some filenames inside batches."""

    def __init__(self, reject=(), refuse_single=()):
        self.reject = set(reject)
        self.refuse_single = set(refuse_single)
        self.requests = []

    def request(self, method, url, json=None, timeout=None):
        self.requests.append((method, url, json))
        if url.endswith("/v1/schema/Image") and method == "GET":
            return FakeResponse(404)
        if url.endswith("/v1/batch/objects"):
            results = []
            for obj in json["objects"]:
                filename = obj["properties"]["filename"]
                errors = {"error": [{"message": "rejected"}]} if filename in self.reject else None
                results.append({"properties": {"filename": filename}, "result": {"errors": errors}})
            return FakeResponse(200, results)
        if url.endswith("/v1/objects") and json["properties"]["filename"] in self.refuse_single:
            return FakeResponse(422, {"error": [{"message": "still invalid"}]})
        return FakeResponse(200, {})

    def single_inserts(self):
        return [body["properties"]["filename"] for _, url, body in self.requests if url.endswith("/v1/objects")]


def test_ingestion_counts_objects_rejected_inside_a_batch(tmp_path):
    write_image(tmp_path / "good.jpg", seed=1)
    write_image(tmp_path / "bad.jpg", seed=2)
    server = WeaviateServer(reject={"bad.jpg"}, refuse_single={"bad.jpg"})
    index = WeaviateIndex("http://weaviate:8080", session=server)

    report = IngestionEngine(index, CollectionSchema.for_images("Image"), store_batch_size=10).run(tmp_path)

    assert server.single_inserts() == ["bad.jpg"]
    assert report.processed == 1
    assert report.insert_failures == 1
    assert report.fallback_batches == 1


def test_rejected_object_is_stored_by_individual_retry(tmp_path):
    write_image(tmp_path / "good.jpg", seed=1)
    write_image(tmp_path / "bad.jpg", seed=2)
    server = WeaviateServer(reject={"bad.jpg"})
    index = WeaviateIndex("http://weaviate:8080", session=server)

    report = IngestionEngine(index, CollectionSchema.for_images("Image")).run(tmp_path)

    assert server.single_inserts() == ["bad.jpg"]
    assert report.processed == 2
    assert report.insert_failures == 0
