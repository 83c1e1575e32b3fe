"""Destructive full resync of a course content tree into the backing store.

The run:

1. purges conditions, tasks, lessons, chapters and courses (children first);
2. walks every course top-down, upserting rows and threading each generated
   parent id into its children;
3. uploads guides, workspace archives, resources and condition files keyed by
   the owning lesson id and writes the references back;
4. links every lesson of a course to its neighbours once the course is done.

Every step is sequential and the first ``SyncError`` halts the run. Because the
purge comes first, a halted run leaves the store partially populated.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

from apps.store.content_store import ContentStore
from apps.store.dry_run import DryRunStore
from content_tree.metadata import ConditionRecord, LessonRecord, find_course_descriptor, load_course, load_lesson
from content_tree.packager import (
    collect_files,
    package_workspace,
    read_file_artifact,
    resolve_lesson_file,
)
from content_tree.walker import ChapterDir, discover_chapters, discover_courses, discover_lessons
from csync.core.config import SyncConfig
from csync.core.errors import MalformedMetadata, SyncError
from csync.core.provenance import ProvenanceLogger
from csync.utils.slugs import sanitize_filename

from .navigation import NavigationLinker

LOGGER_NAME = "coursesync.orchestrator"
AGENT = "apps.sync"


@dataclass
class SyncResult:
    """Result of a sync run.

    Attributes:
        success: Whether every course was synchronized.
        dry_run: Whether store writes were skipped.
        courses_synced: Number of course rows upserted.
        chapters_synced: Number of chapter rows inserted.
        lessons_synced: Number of lesson rows inserted.
        tasks_synced: Number of task rows inserted.
        conditions_synced: Number of condition rows inserted.
        files_uploaded: Number of condition files uploaded.
        workspaces_uploaded: Number of workspace archives uploaded.
        resources_uploaded: Number of lesson resource files uploaded.
        lessons_linked: Number of lessons given navigation links.
        error: Error message if the run halted.
        error_path: Filesystem path the halting error was raised for.
        started_at: When the run started.
        completed_at: When the run finished or halted.
    """

    success: bool
    dry_run: bool = False
    courses_synced: int = 0
    chapters_synced: int = 0
    lessons_synced: int = 0
    tasks_synced: int = 0
    conditions_synced: int = 0
    files_uploaded: int = 0
    workspaces_uploaded: int = 0
    resources_uploaded: int = 0
    lessons_linked: int = 0
    error: str | None = None
    error_path: Path | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        """Get run duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def counters(self) -> Dict[str, int]:
        return {
            "courses": self.courses_synced,
            "chapters": self.chapters_synced,
            "lessons": self.lessons_synced,
            "tasks": self.tasks_synced,
            "conditions": self.conditions_synced,
            "files": self.files_uploaded,
            "workspaces": self.workspaces_uploaded,
            "resources": self.resources_uploaded,
            "linked": self.lessons_linked,
        }


@contextmanager
def _at_path(path: Path) -> Iterator[None]:
    """Attach ``path`` to any ``SyncError`` raised inside the block."""

    try:
        yield
    except SyncError as exc:
        exc.with_path(path)
        raise


class SyncOrchestrator:
    """Drives walker, extractor, packager, store and navigation linker."""

    def __init__(
        self,
        config: SyncConfig,
        store: ContentStore | DryRunStore,
        *,
        provenance: ProvenanceLogger | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.provenance = provenance
        self.logger = logger or logging.getLogger(LOGGER_NAME)

    @property
    def dry_run(self) -> bool:
        return isinstance(self.store, DryRunStore)

    def run(self) -> SyncResult:
        result = SyncResult(success=False, dry_run=self.dry_run, started_at=datetime.now(timezone.utc))
        try:
            course_dirs = self.discover_course_dirs()
            self.logger.info("Found %d course directories under %s", len(course_dirs), self.config.content.root)
            purged = self.store.purge()
            self._log_stage("purge", "Synchronized tables purged", {"tables": purged, "dry_run": self.dry_run})
            for course_dir in course_dirs:
                self.sync_course(course_dir, result)
            result.success = True
        except SyncError as exc:
            result.error = str(exc)
            result.error_path = exc.path
            self.logger.error("Sync halted at %s: %s", exc.path or "<unknown>", exc.message)
            self._log_stage(
                "halted",
                "Sync halted on first failure",
                {
                    "error": exc.message,
                    "error_type": type(exc).__name__,
                    "path": str(exc.path) if exc.path else None,
                    **result.counters(),
                },
            )
        finally:
            result.completed_at = datetime.now(timezone.utc)
        if result.success:
            self._log_stage("complete", "Sync completed", {**result.counters(), "dry_run": self.dry_run})
            self.logger.info("Sync completed: %s", result.counters())
        return result

    def discover_course_dirs(self) -> List[Path]:
        content = self.config.content
        # The default log dir lives under the content root.
        return [
            path
            for path in discover_courses(content.root, excluded=content.excluded_dirs)
            if path.resolve() != self.config.log_dir
        ]

    def sync_course(self, course_dir: Path, result: SyncResult) -> None:
        """Write one course and everything below it, raising the first ``SyncError``."""

        course = load_course(course_dir)
        chapters = discover_chapters(course_dir, course)
        with _at_path(course_dir):
            course_id = self.store.upsert_course(course)
            descriptor = find_course_descriptor(course_dir)
            self.store.upload_course_descriptor(course_id, read_file_artifact(descriptor))
        result.courses_synced += 1
        self.logger.info("Synced course %s (%s) from %s", course_id, course.name, course_dir)
        self._log_stage(
            "course",
            f"Course {course.name} upserted",
            {"course_id": course_id, "path": str(course_dir), "chapters": len(chapters)},
        )

        for chapter in chapters:
            self._sync_chapter(course_id, chapter, result)

        if self.dry_run:
            return
        with _at_path(course_dir):
            links = NavigationLinker(self.store, logger=self.logger).link_course(course_id)
        result.lessons_linked += len(links)
        self._log_stage("navigation", "Lesson navigation linked", {"course_id": course_id, "lessons": len(links)})

    def _sync_chapter(self, course_id: str, chapter: ChapterDir, result: SyncResult) -> None:
        with _at_path(chapter.path):
            chapter_id = self.store.insert_chapter(course_id, chapter.name, chapter.index)
        result.chapters_synced += 1
        self._log_stage(
            "chapter",
            f"Chapter {chapter.name} inserted",
            {"chapter_id": chapter_id, "course_id": course_id, "index": chapter.index, "path": str(chapter.path)},
        )
        lesson_dirs = discover_lessons(chapter.path, excluded=self.config.content.excluded_dirs)
        for index, lesson_dir in enumerate(lesson_dirs):
            self._sync_lesson(chapter_id, lesson_dir, index, result)

    def _sync_lesson(self, chapter_id: str, lesson_dir: Path, index: int, result: SyncResult) -> None:
        content = self.config.content
        lesson = load_lesson(lesson_dir, guide_filename=content.guide_filename)
        with _at_path(lesson_dir):
            lesson_id = self.store.insert_lesson(chapter_id, lesson.name, lesson.environment, index)
            result.lessons_synced += 1
            guide_ref = self.store.upload_guide(lesson_id, lesson.body)

            workspace_ref = None
            workspace_dir = lesson_dir / content.workspace_dirname
            if workspace_dir.is_dir():
                archive = package_workspace(workspace_dir)
                workspace_ref = self.store.upload_workspace(lesson_id, archive)
                result.workspaces_uploaded += 1
            else:
                self.logger.debug("No workspace for lesson %s", lesson_dir)

            resource_refs = self._upload_resources(lesson_id, lesson_dir / content.resources_dirname)
            result.resources_uploaded += len(resource_refs)
            self.store.set_lesson_artifacts(
                lesson_id,
                guide=guide_ref,
                workspace=workspace_ref,
                resources=resource_refs,
            )

            self._sync_tasks(lesson_id, lesson_dir, lesson, result)

        self._log_stage(
            "lesson",
            f"Lesson {lesson.name} synchronized",
            {
                "lesson_id": lesson_id,
                "chapter_id": chapter_id,
                "index": index,
                "path": str(lesson_dir),
                "guide": guide_ref,
                "workspace": workspace_ref,
                "resources": len(resource_refs),
                "tasks": len(lesson.tasks),
            },
        )

    def _upload_resources(self, lesson_id: str, resources_dir: Path) -> List[str]:
        if not resources_dir.is_dir():
            return []
        refs: List[str] = []
        for path in collect_files(resources_dir, excluded=self.config.content.excluded_dirs):
            with _at_path(path):
                refs.append(
                    self.store.upload_resource(lesson_id, path.relative_to(resources_dir), read_file_artifact(path))
                )
        return refs

    def _sync_tasks(self, lesson_id: str, lesson_dir: Path, lesson: LessonRecord, result: SyncResult) -> None:
        # sanitized blob name -> (relative path, reference), per lesson
        uploaded: Dict[str, Tuple[str, str]] = {}
        for task_index, task in enumerate(lesson.tasks):
            task_id = self.store.insert_task(lesson_id, task, task_index)
            result.tasks_synced += 1
            for condition in task.conditions:
                value = self._resolve_condition_value(lesson_id, lesson_dir, condition, uploaded, result)
                self.store.insert_condition(task_id, condition, value)
                result.conditions_synced += 1

    def _resolve_condition_value(
        self,
        lesson_id: str,
        lesson_dir: Path,
        condition: ConditionRecord,
        uploaded: Dict[str, Tuple[str, str]],
        result: SyncResult,
    ) -> Any:
        """Swap a value naming a lesson file for the uploaded blob reference.

        Blob names are flattened, so two different files of the same lesson
        may not share one; the same file named twice reuses its reference.
        """

        path = resolve_lesson_file(lesson_dir, condition.value)
        if path is None:
            return condition.value
        relative_name = path.relative_to(lesson_dir.resolve()).as_posix()
        blob_name = sanitize_filename(relative_name)
        if blob_name in uploaded:
            previous_name, reference = uploaded[blob_name]
            if previous_name != relative_name:
                raise MalformedMetadata(
                    f"Condition files {previous_name!r} and {relative_name!r} both map to blob name {blob_name!r}",
                    path=path,
                )
            return reference
        with _at_path(path):
            reference = self.store.upload_condition_file(lesson_id, relative_name, read_file_artifact(path))
        uploaded[blob_name] = (relative_name, reference)
        result.files_uploaded += 1
        self.logger.debug("Condition value %s uploaded as %s", condition.value, reference)
        return reference

    def _log_stage(self, stage: str, message: str, payload: Dict[str, Any]) -> None:
        if self.provenance is None:
            return
        self.provenance.record(stage, message, agent=AGENT, **payload)


__all__ = ["SyncOrchestrator", "SyncResult"]
