"""Typed records parsed from course descriptors and lesson guides."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import frontmatter
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from csync.core.errors import FilesystemError, MalformedMetadata
from csync.utils.slugs import slugify

COURSE_DESCRIPTORS: tuple[str, ...] = ("course.yaml", "course.json")


class ConditionRecord(BaseModel):
    """Grading condition; ``in``/``is``/``value`` are opaque to the pipeline."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    in_: Any = Field(default=None, alias="in")
    is_: Any = Field(default=None, alias="is")
    value: Any = None


class TaskRecord(BaseModel):
    instructions: str
    completed_by_default: bool = False
    conditions: List[ConditionRecord] = Field(default_factory=list)

    @field_validator("conditions", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class LessonRecord(BaseModel):
    """Front matter of a lesson guide plus its untouched body text."""

    name: str
    environment: Any = None
    tasks: List[TaskRecord] = Field(default_factory=list)
    body: str = ""

    @field_validator("tasks", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class CourseRecord(BaseModel):
    """Course descriptor; ``chapters`` declares the canonical chapter order."""

    id: str
    name: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    authors: List[str] = Field(default_factory=list)
    chapters: List[str]

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            value = value.strip()
        return value

    @field_validator("tags", "authors", "chapters", mode="before")
    @classmethod
    def strip_items(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [item.strip() if isinstance(item, str) else item for item in value]
        return value

    @field_validator("description", mode="before")
    @classmethod
    def none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    def chapter_slugs(self) -> List[str]:
        return [slugify(name) for name in self.chapters]


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "<root>"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


def find_course_descriptor(course_dir: Path) -> Path:
    """Return the course descriptor path, preferring YAML over JSON."""

    for name in COURSE_DESCRIPTORS:
        candidate = course_dir / name
        if candidate.is_file():
            return candidate
    raise MalformedMetadata(
        f"Course descriptor missing (expected one of {', '.join(COURSE_DESCRIPTORS)})",
        path=course_dir,
    )


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FilesystemError(f"Unable to read {path.name}: {exc}", path=path) from exc


def parse_course_descriptor(text: str, *, suffix: str = ".yaml") -> Dict[str, Any]:
    """Parse descriptor text into a mapping (pure; raises ``ValueError``)."""

    if suffix == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping at the root, received {type(data).__name__}")
    return data


def load_course(course_dir: Path) -> CourseRecord:
    """Parse ``course.yaml``/``course.json`` in ``course_dir``."""

    descriptor = find_course_descriptor(course_dir)
    text = _read_text(descriptor)
    try:
        data = parse_course_descriptor(text, suffix=descriptor.suffix)
    except (ValueError, yaml.YAMLError) as exc:
        raise MalformedMetadata(f"Course descriptor is not valid structured data: {exc}", path=descriptor) from exc
    try:
        record = CourseRecord.model_validate(data)
    except ValidationError as exc:
        raise MalformedMetadata(
            f"Course descriptor invalid: {_format_validation_error(exc)}", path=descriptor
        ) from exc
    if not record.id:
        raise MalformedMetadata("Course descriptor has an empty id", path=descriptor)
    _check_chapter_slugs(record, descriptor)
    return record


def _check_chapter_slugs(record: CourseRecord, descriptor: Path) -> None:
    seen: Dict[str, str] = {}
    for name, slug in zip(record.chapters, record.chapter_slugs()):
        if not slug.strip("-"):
            raise MalformedMetadata(f"Chapter name {name!r} has no usable slug", path=descriptor)
        if slug in seen:
            raise MalformedMetadata(
                f"Chapters {seen[slug]!r} and {name!r} both map to directory {slug!r}",
                path=descriptor,
            )
        seen[slug] = name


def parse_lesson_guide(text: str) -> LessonRecord:
    """Split a guide into front matter and body and validate the front matter."""

    post = frontmatter.loads(text)
    payload = dict(post.metadata)
    payload["body"] = post.content
    return LessonRecord.model_validate(payload)


def load_lesson(lesson_dir: Path, *, guide_filename: str = "guide.md") -> LessonRecord:
    """Parse the lesson guide in ``lesson_dir``."""

    guide = lesson_dir / guide_filename
    if not guide.is_file():
        raise MalformedMetadata(f"Lesson guide {guide_filename} missing", path=lesson_dir)
    text = _read_text(guide)
    try:
        return parse_lesson_guide(text)
    except yaml.YAMLError as exc:
        raise MalformedMetadata(f"Lesson front matter is not valid YAML: {exc}", path=guide) from exc
    except ValidationError as exc:
        raise MalformedMetadata(
            f"Lesson front matter invalid: {_format_validation_error(exc)}", path=guide
        ) from exc


__all__ = [
    "COURSE_DESCRIPTORS",
    "ConditionRecord",
    "CourseRecord",
    "LessonRecord",
    "TaskRecord",
    "find_course_descriptor",
    "load_course",
    "load_lesson",
    "parse_course_descriptor",
    "parse_lesson_guide",
]
