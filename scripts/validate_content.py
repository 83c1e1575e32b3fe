"""Lint a course content tree without touching the store.

Errors come from the same dry walk ``coursesync --dry-run`` performs, one
course at a time so a single bad course does not hide problems in the next.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.append(str(REPO_ROOT))

from apps.store.dry_run import DryRunStore  # noqa: E402
from apps.sync.orchestrator import SyncOrchestrator, SyncResult  # noqa: E402
from content_tree.metadata import load_course, load_lesson  # noqa: E402
from content_tree.packager import resolve_lesson_file  # noqa: E402
from content_tree.walker import discover_chapters, discover_lessons, list_subdirectories  # noqa: E402
from csync.core.config import SyncConfig, load_sync_config  # noqa: E402
from csync.core.errors import SyncError  # noqa: E402

app = typer.Typer(help="Check course descriptors, chapter directories and lesson guides.")
console = Console()


@dataclass
class ContentReport:
    courses: int = 0
    lessons: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _looks_like_path(value: object) -> bool:
    return isinstance(value, str) and ("/" in value or Path(value).suffix != "")


def _for_root(config: SyncConfig, content_root: Path) -> SyncConfig:
    content = config.content.model_copy(update={"root": content_root.resolve()})
    return config.model_copy(update={"content": content})


def lint_content(content_root: Path, *, config: SyncConfig | None = None) -> ContentReport:
    """Report the first halting error of every course, plus softer warnings.

    ``courses`` and ``lessons`` count what the dry walk got through.
    """

    config = _for_root(config or load_sync_config(base_dir=content_root), content_root)
    orchestrator = SyncOrchestrator(config, DryRunStore(config.buckets), logger=logging.getLogger(__name__))
    walked = SyncResult(success=False, dry_run=True)
    report = ContentReport()
    try:
        course_dirs = orchestrator.discover_course_dirs()
    except SyncError as exc:
        report.errors.append(str(exc))
        return report

    for course_dir in course_dirs:
        try:
            orchestrator.sync_course(course_dir, walked)
        except SyncError as exc:
            report.errors.append(str(exc))
        _collect_warnings(course_dir, config, report)
    report.courses = walked.courses_synced
    report.lessons = walked.lessons_synced
    return report


def _collect_warnings(course_dir: Path, config: SyncConfig, report: ContentReport) -> None:
    """Best-effort pass for things a sync accepts but an author probably did not mean."""

    content = config.content
    try:
        course = load_course(course_dir)
        declared = set(course.chapter_slugs())
        for child in list_subdirectories(course_dir, excluded=content.excluded_dirs):
            if child.name not in declared:
                report.warnings.append(f"Directory {child} is not a declared chapter of {course.id}")
        chapters = discover_chapters(course_dir, course)
    except SyncError:
        # already reported by the dry walk
        return

    for chapter in chapters:
        try:
            lesson_dirs = discover_lessons(chapter.path, excluded=content.excluded_dirs)
        except SyncError:
            continue
        for lesson_dir in lesson_dirs:
            try:
                lesson = load_lesson(lesson_dir, guide_filename=content.guide_filename)
            except SyncError:
                continue
            for task_index, task in enumerate(lesson.tasks):
                for condition in task.conditions:
                    if resolve_lesson_file(lesson_dir, condition.value) is None and _looks_like_path(condition.value):
                        report.warnings.append(
                            f"Task {task_index} of {lesson_dir} has value {condition.value!r} "
                            "that looks like a path but no such file exists; it will be stored as a literal"
                        )


@app.command()
def validate(
    content_root: Path = typer.Argument(..., exists=True, file_okay=False),
    config_path: Optional[Path] = typer.Option(
        None, "--config", exists=True, dir_okay=False, help="Sync config whose content settings to lint with."
    ),
    fail_on_warning: bool = typer.Option(
        False, "--fail-on-warning", help="Exit non-zero when warnings are present."
    ),
) -> None:
    try:
        if config_path is None:
            config = load_sync_config(base_dir=content_root)
        else:
            config = load_sync_config(config_path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    report = lint_content(content_root, config=config)
    table = Table(title="Course Content Validation", show_header=True)
    table.add_column("Severity", justify="center")
    table.add_column("Message")
    for issue in report.errors:
        table.add_row("error", escape(issue), style="bold red")
    for issue in report.warnings:
        table.add_row("warning", escape(issue), style="yellow")
    console.print(table)
    console.print(f"Checked {report.courses} course(s) and {report.lessons} lesson(s).")

    if report.errors or (fail_on_warning and report.warnings):
        raise typer.Exit(code=1)

    console.print("[green]Content tree looks good![/green]")


if __name__ == "__main__":
    app()
