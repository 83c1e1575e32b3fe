"""Filesystem side of the sync: metadata extraction, packaging and walking."""

from .metadata import (
    ConditionRecord,
    CourseRecord,
    LessonRecord,
    TaskRecord,
    load_course,
    load_lesson,
)
from .packager import Artifact, package_workspace, read_file_artifact, resolve_lesson_file
from .walker import ChapterDir, discover_chapters, discover_courses, discover_lessons

__all__ = [
    "Artifact",
    "ChapterDir",
    "ConditionRecord",
    "CourseRecord",
    "LessonRecord",
    "TaskRecord",
    "discover_chapters",
    "discover_courses",
    "discover_lessons",
    "load_course",
    "load_lesson",
    "package_workspace",
    "read_file_artifact",
    "resolve_lesson_file",
]
