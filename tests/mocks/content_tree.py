"""Builders for small on-disk course content trees used across sync tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from csync.utils.slugs import slugify


def write_course_descriptor(course_dir: Path, payload: Dict[str, Any], *, fmt: str = "yaml") -> Path:
    course_dir.mkdir(parents=True, exist_ok=True)
    if fmt == "json":
        path = course_dir / "course.json"
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    else:
        path = course_dir / "course.yaml"
        path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    return path


def write_guide(
    lesson_dir: Path,
    *,
    name: str,
    environment: Any = "python",
    tasks: Optional[List[Dict[str, Any]]] = None,
    body: str = "# Lesson\n\nRead the instructions.\n",
) -> Path:
    lesson_dir.mkdir(parents=True, exist_ok=True)
    front: Dict[str, Any] = {"name": name, "environment": environment}
    if tasks is not None:
        front["tasks"] = tasks
    text = "---\n" + yaml.safe_dump(front, sort_keys=False) + "---\n" + body
    path = lesson_dir / "guide.md"
    path.write_text(text, encoding="utf-8")
    return path


def build_course(
    root: Path,
    *,
    course_id: str = "intro-python",
    dirname: str = "intro-python",
    name: str = "Intro to Python",
    chapters: Sequence[tuple[str, Sequence[str]]] = (("Getting Started", ("01-hello", "02-variables")), ("Control Flow", ("01-if",))),
    tags: Sequence[str] = ("python", "beginner"),
    authors: Sequence[str] = ("Ada",),
) -> Path:
    """Create a course with the given ``(chapter name, lesson dirs)`` layout."""

    course_dir = root / dirname
    write_course_descriptor(
        course_dir,
        {
            "id": course_id,
            "name": name,
            "description": f"{name} description",
            "tags": list(tags),
            "authors": list(authors),
            "chapters": [chapter for chapter, _ in chapters],
        },
    )
    for chapter_name, lessons in chapters:
        slug = slugify(chapter_name)
        for lesson_dirname in lessons:
            write_guide(course_dir / slug / lesson_dirname, name=f"{chapter_name} / {lesson_dirname}")
    return course_dir


__all__ = ["build_course", "write_course_descriptor", "write_guide"]
