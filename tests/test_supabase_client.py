import json

import httpx
import pytest

from apps.store.content_store import PURGE_ORDER, ContentStore
from apps.store.supabase import MATCH_ALL_SENTINEL, SupabaseClient, SupabaseConfig
from csync.core.errors import ArtifactUploadError, StoreReadError, StoreWriteError


def _client(handler, *, api_key: str | None = "service-key") -> SupabaseClient:
    http_client = httpx.Client(transport=httpx.MockTransport(handler), base_url="https://store.test")
    return SupabaseClient(SupabaseConfig(base_url="https://store.test", api_key=api_key), client=http_client)


def test_upsert_sends_prefer_header_and_returns_first_row() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["url"] = str(request.url)
        captured["payload"] = json.loads(request.content)
        captured["prefer"] = request.headers.get("prefer")
        captured["apikey"] = request.headers.get("apikey")
        captured["authorization"] = request.headers.get("authorization")
        return httpx.Response(201, json=[{"id": "course-1", "name": "Intro"}])

    client = _client(handler)

    row = client.upsert("courses", {"id": "course-1", "name": "Intro"}, on_conflict="id")

    assert row == {"id": "course-1", "name": "Intro"}
    assert captured["method"] == "POST"
    assert captured["url"] == "https://store.test/rest/v1/courses?on_conflict=id"
    assert captured["payload"] == {"id": "course-1", "name": "Intro"}
    assert captured["prefer"] == "resolution=merge-duplicates,return=representation"
    assert captured["apikey"] == "service-key"
    assert captured["authorization"] == "Bearer service-key"


def test_delete_all_uses_match_all_filter() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        seen.append(f"{request.url.path}?{request.url.query.decode()}")
        return httpx.Response(204)

    store = ContentStore(_client(handler))

    assert store.purge() == list(PURGE_ORDER)
    assert seen == [f"/rest/v1/{table}?id=neq.{MATCH_ALL_SENTINEL}" for table in PURGE_ORDER]


def test_select_builds_filters_and_order() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json=[{"id": "ch-1"}])

    client = _client(handler)

    rows = client.select("chapters", filters={"course_id": "c1"}, order=("index",))

    assert rows == [{"id": "ch-1"}]
    assert captured["params"] == {"select": "*", "course_id": "eq.c1", "order": "index.asc"}


def test_update_targets_row_by_id() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["params"] = dict(request.url.params)
        captured["payload"] = json.loads(request.content)
        return httpx.Response(200, json=[{"id": "lesson-1", "previous": None, "next": "lesson-2"}])

    store = ContentStore(_client(handler))

    row = store.set_lesson_links("lesson-1", previous=None, next="lesson-2")

    assert row["next"] == "lesson-2"
    assert captured["method"] == "PATCH"
    assert captured["params"] == {"id": "eq.lesson-1"}
    assert captured["payload"] == {"previous": None, "next": "lesson-2"}


def test_update_without_matching_row_is_write_error() -> None:
    client = _client(lambda request: httpx.Response(200, json=[]))

    with pytest.raises(StoreWriteError) as excinfo:
        client.update("lessons", "missing", {"guide": "x"})

    assert "id=missing" in str(excinfo.value)


def test_http_failures_map_to_store_errors() -> None:
    client = _client(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(StoreWriteError) as write_error:
        client.upsert("chapters", {"name": "Intro"})
    with pytest.raises(StoreReadError):
        client.select("courses")
    with pytest.raises(ArtifactUploadError) as upload_error:
        client.upload("guides", "l1.md", b"# Guide", content_type="text/markdown")

    assert "HTTP 500" in str(write_error.value)
    assert "bucket=guides" in str(upload_error.value)


def test_transport_errors_are_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(StoreWriteError) as excinfo:
        _client(handler).delete_all("courses")

    assert "ConnectError" in str(excinfo.value)


def test_upload_sets_content_type_and_upsert_flag() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["content_type"] = request.headers.get("content-type")
        captured["x_upsert"] = request.headers.get("x-upsert")
        captured["body"] = request.content
        return httpx.Response(200, json={"Key": "workspaces/l1.zip"})

    reference = _client(handler).upload("workspaces", "l1.zip", b"PK", content_type="application/zip")

    assert reference == "workspaces/l1.zip"
    assert captured == {
        "path": "/storage/v1/object/workspaces/l1.zip",
        "content_type": "application/zip",
        "x_upsert": "true",
        "body": b"PK",
    }


def test_upload_falls_back_to_bucket_key_reference() -> None:
    reference = _client(lambda request: httpx.Response(200)).upload(
        "files", "l1/tests_check.py", b"", content_type="text/x-python"
    )

    assert reference == "files/l1/tests_check.py"


def test_headers_omitted_without_api_key() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["apikey"] = request.headers.get("apikey")
        return httpx.Response(200, json=[])

    _client(handler, api_key=None).select("courses")

    assert captured["apikey"] is None


def test_content_store_requires_generated_ids() -> None:
    store = ContentStore(_client(lambda request: httpx.Response(201, json=[{"name": "Intro"}])))

    with pytest.raises(StoreWriteError):
        store.insert_chapter("c1", "Intro", 0)
