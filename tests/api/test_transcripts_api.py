from __future__ import annotations

import pytest

fastapi = pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from subdraft.api.app import create_app
from subdraft.api.metrics import metrics
from subdraft.api.services.transcripts_service import get_drafts
from subdraft.core.drafts.service import DraftPublishStore
from subdraft.core.drafts.store import InMemoryTranscriptStore

SRT = "1\n00:00:01,000 --> 00:00:04,000\nHello\n\n2\n00:00:05,000 --> 00:00:08,000\nWorld"


@pytest.fixture()
def drafts() -> DraftPublishStore:
    return DraftPublishStore(InMemoryTranscriptStore())


@pytest.fixture()
def client(drafts: DraftPublishStore) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_drafts] = lambda: drafts
    return TestClient(app)


def _draft(client: TestClient, tid: str, *pairs: tuple[str, str], **extra):
    body = {"content": [{"time": t, "text": x} for t, x in pairs], **extra}
    return client.put(f"/v1/transcripts/{tid}/draft", json=body)


def test_health():
    client = TestClient(create_app())
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["ok"] is True
    assert data["service"] == "subdraft-api"
    assert client.get("/healthz").json() == {"ok": True}


def test_request_id_is_echoed(client: TestClient):
    resp = client.get("/healthz", headers={"X-Request-Id": "rid-123"})
    assert resp.headers["X-Request-Id"] == "rid-123"
    assert client.get("/healthz").headers.get("X-Request-Id")


def test_get_missing_transcript_is_404_envelope(client: TestClient):
    resp = client.get("/v1/transcripts/nope", headers={"X-Request-Id": "rid-404"})
    assert resp.status_code == 404
    err = resp.json()["error"]
    assert err["code"] == "not_found"
    assert err["request_id"] == "rid-404"
    assert err["details"] == {"transcript_id": "nope"}


def test_save_draft_then_publish(client: TestClient):
    resp = _draft(client, "v1_ar", ("0:01", "a"), ("78:48", "b"), video_id="v1", language="ar")
    assert resp.status_code == 200
    data = resp.json()
    assert data["has_draft"] is True
    assert data["has_draft_changes"] is True
    assert data["transcript"]["content"] == []
    assert data["transcript"]["language"] == "ar"

    resp = client.post("/v1/transcripts/v1_ar/publish")
    assert resp.status_code == 200
    data = resp.json()
    assert data["transcript"]["content"] == [{"time": "0:01", "text": "a"}, {"time": "78:48", "text": "b"}]
    assert data["transcript"]["draft_content"] == data["transcript"]["content"]
    assert data["has_draft"] is True
    assert data["has_draft_changes"] is False


def test_publish_without_draft_is_conflict(client: TestClient):
    client.post("/v1/transcripts/t1/import-srt", json={"srt_content": SRT})
    resp = client.post("/v1/transcripts/t1/publish")
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "nothing_to_publish"


def test_publish_with_empty_segment_is_bad_request(client: TestClient):
    _draft(client, "t1", ("0:01", "a"), ("0:05", ""))
    resp = client.post("/v1/transcripts/t1/publish")
    assert resp.status_code == 400
    err = resp.json()["error"]
    assert err["code"] == "invalid_operation"
    assert err["details"]["segment_index"] == 1


def test_save_draft_rejects_bad_time(client: TestClient):
    resp = _draft(client, "t1", ("1:75", "a"))
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_format"


def test_save_draft_body_validation(client: TestClient):
    resp = client.put("/v1/transcripts/t1/draft", json={"nope": []})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "validation_error"


def test_discard_draft(client: TestClient):
    _draft(client, "t1", ("0:01", "a"))
    resp = client.delete("/v1/transcripts/t1/draft")
    assert resp.status_code == 200
    assert resp.json()["has_draft"] is False
    assert resp.json()["transcript"]["draft_content"] is None


def test_import_srt(client: TestClient):
    before = metrics().get("subdraft_srt_imports_total", labels={"target": "published"})
    resp = client.post("/v1/transcripts/t1/import-srt", json={"srt_content": SRT + "\n\n3\nbroken\nblock"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == "SRT file imported successfully"
    assert data["segments_count"] == 2
    assert data["skipped_blocks"] == 1
    assert data["transcript"]["content"] == [{"time": "0:01", "text": "Hello"}, {"time": "0:05", "text": "World"}]
    assert metrics().get("subdraft_srt_imports_total", labels={"target": "published"}) == before + 1


def test_import_srt_into_draft(client: TestClient):
    resp = client.post("/v1/transcripts/t1/import-srt", json={"srt_content": SRT, "target": "draft"})
    assert resp.status_code == 200
    tr = resp.json()["transcript"]
    assert tr["content"] == []
    assert [r["text"] for r in tr["draft_content"]] == ["Hello", "World"]


@pytest.mark.parametrize(
    "body,code",
    [
        ("   ", "empty_input"),
        ("no timestamps in here", "invalid_format"),
        ("00:00:01,000 --> 00:00:02,000", "no_segments_extracted"),
    ],
)
def test_import_srt_errors(client: TestClient, body: str, code: str):
    resp = client.post("/v1/transcripts/t1/import-srt", json={"srt_content": body})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == code


def test_export_srt(client: TestClient):
    _draft(client, "t1", ("1:00", "only"), language="ar")
    client.post("/v1/transcripts/t1/publish")

    resp = client.get("/v1/transcripts/t1/srt", params={"title": "My Video"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.headers["content-disposition"] == 'attachment; filename="my_video_ar.srt"'
    assert resp.text == "1\n00:01:00,000 --> 00:01:04,000\nonly"


def test_export_missing_draft_is_bad_request(client: TestClient):
    client.post("/v1/transcripts/t1/import-srt", json={"srt_content": SRT})
    resp = client.get("/v1/transcripts/t1/srt", params={"which": "draft"})
    assert resp.status_code == 400


def test_metrics_endpoint(client: TestClient):
    _draft(client, "t1", ("0:01", "a"))
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "subdraft_drafts_saved_total" in resp.text


def test_readyz_pings_store(client: TestClient, drafts: DraftPublishStore, monkeypatch):
    assert client.get("/readyz").json() == {"ok": True}

    def down() -> None:
        raise ConnectionError("store down")

    monkeypatch.setattr(drafts.store, "ping", down)
    resp = client.get("/readyz")
    assert resp.status_code == 503
    assert resp.json()["ok"] is False


def test_request_metrics_use_route_template(client: TestClient):
    client.get("/v1/transcripts/abc")
    client.get("/v1/transcripts/def")
    body = client.get("/metrics").text
    assert 'route="/v1/transcripts/{transcript_id}"' in body
    assert "subdraft_http_request_duration_ms_count" in body
