"""Discover the course / chapter / lesson directory hierarchy.

Ordering rules:

* courses: immediate subdirectories of the content root, lexical by name;
* chapters: the order declared by the course descriptor (slugified names);
  undeclared directories are ignored;
* lessons: immediate subdirectories of a chapter, lexical by name. The
  lesson index stored for each row is its position in this order.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence

from csync.core.config import DEFAULT_EXCLUDED_DIRS
from csync.core.errors import FilesystemError, MissingChapterDirectory

from .metadata import CourseRecord


@dataclass(slots=True)
class ChapterDir:
    name: str
    index: int
    path: Path


def list_subdirectories(root: Path, *, excluded: Iterable[str] = DEFAULT_EXCLUDED_DIRS) -> List[Path]:
    """Immediate subdirectories of ``root`` in lexical order."""

    skip = set(excluded)
    try:
        children = list(root.iterdir())
    except OSError as exc:
        raise FilesystemError(f"Unable to list directory: {exc}", path=root) from exc
    return sorted(
        (child for child in children if child.is_dir() and child.name not in skip),
        key=lambda child: child.name,
    )


def discover_courses(content_root: Path, *, excluded: Sequence[str] = DEFAULT_EXCLUDED_DIRS) -> List[Path]:
    if not content_root.is_dir():
        raise FilesystemError("Content root is not a directory", path=content_root)
    return list_subdirectories(content_root, excluded=excluded)


def discover_chapters(course_dir: Path, course: CourseRecord) -> List[ChapterDir]:
    """Chapter directories in declared order; a missing one is fatal."""

    chapters: List[ChapterDir] = []
    for index, (name, slug) in enumerate(zip(course.chapters, course.chapter_slugs())):
        path = course_dir / slug
        if not path.is_dir():
            raise MissingChapterDirectory(
                f"Declared chapter {name!r} has no directory {slug!r}",
                path=path,
                context=f"course={course.id}",
            )
        chapters.append(ChapterDir(name=name, index=index, path=path))
    return chapters


def discover_lessons(chapter_dir: Path, *, excluded: Sequence[str] = DEFAULT_EXCLUDED_DIRS) -> List[Path]:
    return list_subdirectories(chapter_dir, excluded=excluded)


__all__ = [
    "ChapterDir",
    "discover_chapters",
    "discover_courses",
    "discover_lessons",
    "list_subdirectories",
]
