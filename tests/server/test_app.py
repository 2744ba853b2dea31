"""Tests for the HTTP boundary."""

import json

import pytest
from fastapi.testclient import TestClient

from annostore.core.config_schema import ServerSettings
from annostore.models import Annotation
from annostore.server import create_app
from annostore.storage.base import TransactionError


@pytest.fixture
def client(local_store):
    return TestClient(create_app(local_store))


def _put(client, body, path="/annotations"):
    return client.put(path, content=json.dumps(body) if not isinstance(body, (str, bytes)) else body)


class TestPut:
    def test_stores_annotation(self, client, local_store, now):
        resp = _put(client, {"created_at": now, "message": "deploy web", "tags": ["deploy", "web"]})
        assert resp.status_code == 200
        assert resp.json() == {"result": "ok"}
        assert local_store.tag_stats() == {"deploy": 1, "web": 1}

    def test_created_at_defaults_to_now(self, client, local_store, now):
        resp = _put(client, {"message": "no time", "tags": ["t"]})
        assert resp.status_code == 200
        [post] = local_store.range_for_tag("t", 60, now + 60)
        assert post.created_at // 1000 >= now

    @pytest.mark.parametrize(
        "body",
        [
            "{not json",
            "",
            {"tags": ["t"]},
            {"message": "", "tags": ["t"]},
            {"message": "m"},
            {"message": "m", "tags": []},
            {"message": "m", "tags": "t"},
            {"message": "m", "tags": ["t"], "created_at": -5},
        ],
    )
    def test_invalid_body(self, client, local_store, body):
        resp = _put(client, body)
        assert resp.status_code == 400
        assert resp.json() == {"result": "invalid_json"}
        assert local_store.all_tags() == set()

    def test_storage_failure(self, client, local_store, monkeypatch):
        def _fail(annotation):
            raise TransactionError("disk full")

        monkeypatch.setattr(local_store, "add", _fail)
        resp = _put(client, {"message": "m", "tags": ["t"]})
        assert resp.status_code == 500
        assert resp.json() == {"result": "err: disk full"}


class TestGet:
    @pytest.fixture
    def seeded(self, local_store, now):
        local_store.add(Annotation(created_at=now - 10, message="old", tags=["a"]))
        local_store.add(Annotation(created_at=now, message="new", tags=["a", "b"]))
        local_store.add(Annotation(created_at=now - 7200, message="ancient", tags=["b"]))
        return local_store

    def test_tags_and_window(self, client, seeded, now):
        resp = client.get("/annotations", params={"tags": ["a", "b"], "range": 60, "until": now})
        assert resp.status_code == 200
        assert resp.json() == {
            "posts": [
                {"created_at": (now - 10) * 1000, "message": "old", "tags": ["a"]},
                {"created_at": now * 1000, "message": "new", "tags": ["a"]},
                {"created_at": now * 1000, "message": "new", "tags": ["b"]},
            ]
        }

    def test_bracketed_tags_param(self, client, seeded, now):
        resp = client.get("/annotations", params={"tags[]": "b", "range": 60, "until": now})
        assert [p["message"] for p in resp.json()["posts"]] == ["new"]

    def test_default_range_is_an_hour(self, client, seeded, now):
        resp = client.get("/annotations", params={"tags": "b", "until": now})
        assert [p["message"] for p in resp.json()["posts"]] == ["new"]

    def test_until_moves_window(self, client, seeded, now):
        resp = client.get("/annotations", params={"tags": "a", "range": 60, "until": now - 5})
        assert [p["message"] for p in resp.json()["posts"]] == ["old"]

    def test_unparsable_numbers_fall_back(self, client, seeded):
        resp = client.get("/annotations", params={"tags": "a", "range": "soon", "until": "later"})
        assert resp.status_code == 200
        assert [p["message"] for p in resp.json()["posts"]] == ["old", "new"]

    def test_no_tags(self, client, seeded):
        resp = client.get("/annotations")
        assert resp.status_code == 200
        assert resp.json() == {"posts": []}

    def test_all_mode(self, client, seeded):
        resp = client.get("/annotations", params={"all": "1", "tags": "ignored", "range": 1})
        posts = resp.json()["posts"]
        assert [(p["tags"], p["message"]) for p in posts] == [
            (["a"], "old"),
            (["a"], "new"),
            (["b"], "ancient"),
            (["b"], "new"),
        ]

    def test_query_failure(self, client, local_store, monkeypatch):
        def _fail(tag, range_seconds, until_seconds):
            raise TransactionError("bucket unreadable")

        monkeypatch.setattr(local_store, "range_for_tag", _fail)
        resp = client.get("/annotations", params={"tags": "a"})
        assert resp.status_code == 500
        assert resp.json()["result"].startswith("err: ")
        assert "bucket unreadable" in resp.json()["result"]


class TestRouting:
    def test_other_methods_rejected(self, client):
        assert client.post("/annotations", content="{}").status_code == 405
        assert client.delete("/annotations").status_code == 405

    def test_unknown_path(self, client):
        assert client.get("/nope").status_code == 404

    def test_custom_endpoints(self, local_store, now):
        settings = ServerSettings(endpoint="/api/notes", metrics_endpoint="/stats")
        client = TestClient(create_app(local_store, settings))

        assert _put(client, {"message": "m", "tags": ["t"]}, path="/api/notes").status_code == 200
        assert len(client.get("/api/notes", params={"tags": "t"}).json()["posts"]) == 1
        assert client.get("/annotations").status_code == 404
        assert "annotations_total" in client.get("/stats").text

    def test_metrics_endpoint(self, client, local_store, now):
        local_store.add(Annotation(created_at=now, message="m", tags=["build"]))
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert 'annotations_total{tag="build"} 1.0' in resp.text
