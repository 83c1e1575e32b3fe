"""Typed operations over the five synchronized tables and the artifact buckets."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from content_tree.metadata import ConditionRecord, CourseRecord, TaskRecord
from content_tree.packager import MARKDOWN_CONTENT_TYPE, ZIP_CONTENT_TYPE, Artifact
from csync.core.config import BucketConfig
from csync.core.errors import StoreWriteError
from csync.utils.slugs import sanitize_filename

from .supabase import SupabaseClient

logger = logging.getLogger("coursesync.store")

COURSES = "courses"
CHAPTERS = "chapters"
LESSONS = "lessons"
TASKS = "tasks"
CONDITIONS = "conditions"

# Children before parents so foreign keys never dangle mid-purge.
PURGE_ORDER: tuple[str, ...] = (CONDITIONS, TASKS, LESSONS, CHAPTERS, COURSES)


class ContentStore:
    """Course-content view of a ``SupabaseClient``.

    Every insert returns the identifier the store assigned; callers thread it
    into the child rows explicitly.
    """

    def __init__(self, client: SupabaseClient, buckets: BucketConfig | None = None) -> None:
        self._client = client
        self.buckets = buckets or BucketConfig()

    # ------------------------------------------------------------------
    # Rows

    def purge(self) -> List[str]:
        for table in PURGE_ORDER:
            self._client.delete_all(table)
            logger.debug("Purged table %s", table)
        return list(PURGE_ORDER)

    def upsert_course(self, course: CourseRecord) -> str:
        row = {
            "id": course.id,
            "name": course.name,
            "description": course.description,
            "tags": list(course.tags),
            "authors": list(course.authors),
            "chapters": list(course.chapters),
        }
        stored = self._client.upsert(COURSES, row, on_conflict="id")
        return str(stored.get("id") or course.id)

    def insert_chapter(self, course_id: str, name: str, index: int) -> str:
        stored = self._client.upsert(CHAPTERS, {"course_id": course_id, "name": name, "index": index})
        return self._generated_id(stored, CHAPTERS)

    def insert_lesson(self, chapter_id: str, name: str, environment: Any, index: int) -> str:
        stored = self._client.upsert(
            LESSONS,
            {
                "chapter_id": chapter_id,
                "name": name,
                "environment": environment,
                "index": index,
            },
        )
        return self._generated_id(stored, LESSONS)

    def set_lesson_artifacts(
        self,
        lesson_id: str,
        *,
        guide: str,
        workspace: str | None = None,
        resources: Sequence[str] | None = None,
    ) -> Dict[str, Any]:
        values: Dict[str, Any] = {"guide": guide}
        if workspace is not None:
            values["workspace"] = workspace
        if resources:
            values["resources"] = list(resources)
        return self._client.update(LESSONS, lesson_id, values)

    def set_lesson_links(self, lesson_id: str, *, previous: str | None, next: str | None) -> Dict[str, Any]:
        return self._client.update(LESSONS, lesson_id, {"previous": previous, "next": next})

    def insert_task(self, lesson_id: str, task: TaskRecord, index: int) -> str:
        stored = self._client.upsert(
            TASKS,
            {
                "lesson_id": lesson_id,
                "instructions": task.instructions,
                "index": index,
                "completed_by_default": task.completed_by_default,
            },
        )
        return self._generated_id(stored, TASKS)

    def insert_condition(self, task_id: str, condition: ConditionRecord, value: Any) -> str:
        stored = self._client.upsert(
            CONDITIONS,
            {
                "task_id": task_id,
                "type": condition.type,
                "in": condition.in_,
                "is": condition.is_,
                "value": value,
            },
        )
        return self._generated_id(stored, CONDITIONS)

    def list_courses(self) -> List[Dict[str, Any]]:
        return self._client.select(COURSES, order=("id",))

    def list_chapters(self, course_id: str) -> List[Dict[str, Any]]:
        return self._client.select(CHAPTERS, filters={"course_id": course_id}, order=("index",))

    def list_lessons(self, chapter_id: str) -> List[Dict[str, Any]]:
        return self._client.select(LESSONS, filters={"chapter_id": chapter_id}, order=("index",))

    # ------------------------------------------------------------------
    # Blobs

    def upload_guide(self, lesson_id: str, body: str) -> str:
        return self._client.upload(
            self.buckets.guides,
            f"{lesson_id}.md",
            body.encode("utf-8"),
            content_type=MARKDOWN_CONTENT_TYPE,
        )

    def upload_workspace(self, lesson_id: str, archive: bytes) -> str:
        return self._client.upload(
            self.buckets.workspaces,
            f"{lesson_id}.zip",
            archive,
            content_type=ZIP_CONTENT_TYPE,
        )

    def upload_condition_file(self, lesson_id: str, relative_name: str, artifact: Artifact) -> str:
        return self._client.upload(
            self.buckets.files,
            f"{lesson_id}/{sanitize_filename(relative_name)}",
            artifact.data,
            content_type=artifact.content_type,
        )

    def upload_resource(self, lesson_id: str, relative_path: Path, artifact: Artifact) -> str:
        return self._client.upload(
            self.buckets.resources,
            f"{lesson_id}/{relative_path.as_posix()}",
            artifact.data,
            content_type=artifact.content_type,
        )

    def upload_course_descriptor(self, course_id: str, artifact: Artifact) -> str:
        filename = artifact.source.name if artifact.source is not None else "course.yaml"
        return self._client.upload(
            self.buckets.files,
            f"{course_id}/{filename}",
            artifact.data,
            content_type=artifact.content_type,
        )

    # ------------------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _generated_id(stored: Dict[str, Any], table: str) -> str:
        identifier = stored.get("id")
        if identifier in (None, ""):
            raise StoreWriteError(f"Store did not return a generated id for {table}", context=f"table={table}")
        return str(identifier)


__all__ = ["CHAPTERS", "CONDITIONS", "COURSES", "ContentStore", "LESSONS", "PURGE_ORDER", "TASKS"]
