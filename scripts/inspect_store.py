"""CLI helpers for inspecting synchronized courses in the backing store."""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional

import httpx
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from apps.store.content_store import ContentStore
from apps.store.supabase import SupabaseClient, SupabaseConfig
from csync.core.errors import SyncError

URL_ENV_VAR = "SUPABASE_URL"
KEY_ENV_VAR = "SUPABASE_SECRET_KEY"

app = typer.Typer(help="List synchronized courses and their lesson outlines.")
console = Console()

# Tests inject an httpx client routed to the mock store.
_HTTP_CLIENT: httpx.Client | None = None


def _open_store(store_url: Optional[str]) -> ContentStore:
    base_url = (store_url or os.environ.get(URL_ENV_VAR) or "").strip().rstrip("/")
    if not base_url:
        raise typer.BadParameter(f"Store URL required (pass --store-url or set {URL_ENV_VAR})")
    client = SupabaseClient(
        SupabaseConfig(base_url=base_url, api_key=os.environ.get(KEY_ENV_VAR)),
        client=_HTTP_CLIENT,
    )
    return ContentStore(client)


def course_outline(store: ContentStore, course_id: str) -> List[Dict[str, Any]]:
    """Lessons of ``course_id`` in global order with their chapter and links."""

    outline: List[Dict[str, Any]] = []
    for chapter in store.list_chapters(course_id):
        for lesson in store.list_lessons(str(chapter["id"])):
            outline.append(
                {
                    "chapter": chapter.get("name"),
                    "chapter_index": chapter.get("index"),
                    "lesson": lesson.get("name"),
                    "lesson_index": lesson.get("index"),
                    "id": lesson.get("id"),
                    "previous": lesson.get("previous"),
                    "next": lesson.get("next"),
                    "workspace": lesson.get("workspace"),
                }
            )
    return outline


@app.command()
def courses(
    store_url: Optional[str] = typer.Option(None, "--store-url", help="Store base URL"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table"),
) -> None:
    store = _open_store(store_url)
    try:
        rows = store.list_courses()
    except SyncError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    finally:
        store.close()
    if as_json:
        typer.echo(json.dumps(rows, indent=2, default=str))
        return
    table = Table(title="Courses")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Chapters", justify="right")
    for row in rows:
        table.add_row(str(row.get("id")), str(row.get("name")), str(len(row.get("chapters") or [])))
    console.print(table)


@app.command()
def outline(
    course_id: str = typer.Argument(..., help="Course identifier"),
    store_url: Optional[str] = typer.Option(None, "--store-url", help="Store base URL"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table"),
) -> None:
    store = _open_store(store_url)
    try:
        rows = course_outline(store, course_id)
    except SyncError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    finally:
        store.close()
    if as_json:
        typer.echo(json.dumps(rows, indent=2, default=str))
        return
    table = Table(title=f"Outline for {course_id}")
    for column in ("Chapter", "Lesson", "Previous", "Next"):
        table.add_column(column)
    for row in rows:
        table.add_row(
            f"{row['chapter_index']}. {row['chapter']}",
            f"{row['lesson_index']}. {row['lesson']}",
            str(row["previous"] or "-"),
            str(row["next"] or "-"),
        )
    console.print(table)


if __name__ == "__main__":
    app()
