import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import scripts.inspect_store as inspect_cli
from apps.store.content_store import ContentStore
from apps.store.supabase import SupabaseClient, SupabaseConfig
from apps.sync.orchestrator import SyncOrchestrator
from csync.core.config import load_sync_config
from tests.mocks.content_tree import build_course
from tests.mocks.supabase_api import SupabaseAPIMock

RUNNER = CliRunner()


@pytest.fixture()
def synced_api(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    api = SupabaseAPIMock()
    build_course(tmp_path / "content")
    client = SupabaseClient(
        SupabaseConfig(base_url=api.base_url, api_key=api.api_key),
        client=api.build_httpx_client(),
    )
    result = SyncOrchestrator(load_sync_config(base_dir=tmp_path / "content"), ContentStore(client)).run()
    assert result.success, result.error

    monkeypatch.setattr(inspect_cli, "_HTTP_CLIENT", api.build_httpx_client())
    monkeypatch.setenv("SUPABASE_URL", api.base_url)
    monkeypatch.setenv("SUPABASE_SECRET_KEY", api.api_key)
    yield api
    api.close()


def test_courses_command_outputs_json(synced_api: SupabaseAPIMock) -> None:
    result = RUNNER.invoke(inspect_cli.app, ["courses", "--json"])

    assert result.exit_code == 0
    rows = json.loads(result.stdout)
    assert [row["id"] for row in rows] == ["intro-python"]


def test_courses_command_renders_table(synced_api: SupabaseAPIMock) -> None:
    result = RUNNER.invoke(inspect_cli.app, ["courses"])

    assert result.exit_code == 0
    assert "intro-python" in result.stdout


def test_outline_lists_lessons_in_global_order(synced_api: SupabaseAPIMock) -> None:
    result = RUNNER.invoke(inspect_cli.app, ["outline", "intro-python", "--json"])

    assert result.exit_code == 0
    outline = json.loads(result.stdout)
    assert [(row["chapter_index"], row["lesson_index"]) for row in outline] == [(0, 0), (0, 1), (1, 0)]
    assert outline[0]["previous"] is None
    assert outline[0]["next"] == outline[1]["id"]
    assert outline[2]["previous"] == outline[1]["id"]
    assert outline[2]["next"] is None


def test_read_failure_exits_non_zero(synced_api: SupabaseAPIMock) -> None:
    synced_api.fail("GET", "courses")

    result = RUNNER.invoke(inspect_cli.app, ["courses"])

    assert result.exit_code == 1
    assert "Failed to read courses" in result.stdout


def test_missing_store_url_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SUPABASE_URL", raising=False)

    result = RUNNER.invoke(inspect_cli.app, ["courses"])

    assert result.exit_code != 0
    assert "store url required" in result.output.lower()
