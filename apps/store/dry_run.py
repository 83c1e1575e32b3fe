"""Store stand-in for ``--dry-run``: records intended writes, touches nothing."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Sequence

from content_tree.metadata import ConditionRecord, CourseRecord, TaskRecord
from content_tree.packager import Artifact
from csync.core.config import BucketConfig
from csync.utils.slugs import sanitize_filename

from .content_store import CHAPTERS, CONDITIONS, COURSES, LESSONS, PURGE_ORDER, TASKS


class DryRunStore:
    """Mirrors ``ContentStore``'s write surface and hands out placeholder ids."""

    def __init__(self, buckets: BucketConfig | None = None) -> None:
        self.buckets = buckets or BucketConfig()
        self.writes: Counter[str] = Counter()
        self.uploads: List[tuple[str, str, int]] = []

    def _next_id(self, table: str) -> str:
        self.writes[table] += 1
        return f"dry-run:{table}:{self.writes[table]}"

    def _record_upload(self, bucket: str, key: str, data: bytes) -> str:
        self.uploads.append((bucket, key, len(data)))
        return f"{bucket}/{key}"

    def purge(self) -> List[str]:
        return list(PURGE_ORDER)

    def upsert_course(self, course: CourseRecord) -> str:
        self.writes[COURSES] += 1
        return course.id

    def insert_chapter(self, course_id: str, name: str, index: int) -> str:
        return self._next_id(CHAPTERS)

    def insert_lesson(self, chapter_id: str, name: str, environment: Any, index: int) -> str:
        return self._next_id(LESSONS)

    def set_lesson_artifacts(
        self,
        lesson_id: str,
        *,
        guide: str,
        workspace: str | None = None,
        resources: Sequence[str] | None = None,
    ) -> Dict[str, Any]:
        return {"id": lesson_id, "guide": guide, "workspace": workspace, "resources": list(resources or [])}

    def insert_task(self, lesson_id: str, task: TaskRecord, index: int) -> str:
        return self._next_id(TASKS)

    def insert_condition(self, task_id: str, condition: ConditionRecord, value: Any) -> str:
        return self._next_id(CONDITIONS)

    def upload_guide(self, lesson_id: str, body: str) -> str:
        return self._record_upload(self.buckets.guides, f"{lesson_id}.md", body.encode("utf-8"))

    def upload_workspace(self, lesson_id: str, archive: bytes) -> str:
        return self._record_upload(self.buckets.workspaces, f"{lesson_id}.zip", archive)

    def upload_condition_file(self, lesson_id: str, relative_name: str, artifact: Artifact) -> str:
        return self._record_upload(
            self.buckets.files, f"{lesson_id}/{sanitize_filename(relative_name)}", artifact.data
        )

    def upload_resource(self, lesson_id: str, relative_path: Path, artifact: Artifact) -> str:
        return self._record_upload(self.buckets.resources, f"{lesson_id}/{relative_path.as_posix()}", artifact.data)

    def upload_course_descriptor(self, course_id: str, artifact: Artifact) -> str:
        filename = artifact.source.name if artifact.source is not None else "course.yaml"
        return self._record_upload(self.buckets.files, f"{course_id}/{filename}", artifact.data)

    def close(self) -> None:
        return None


__all__ = ["DryRunStore"]
