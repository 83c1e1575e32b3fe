"""Previous/next links across a whole course, computed from committed rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from apps.store.content_store import ContentStore
from csync.core.errors import StoreReadError

LOGGER = logging.getLogger("coursesync.navigation")


@dataclass(slots=True)
class LessonLink:
    lesson_id: str
    previous: str | None
    next: str | None


def compute_links(ordered_lesson_ids: Sequence[str]) -> List[LessonLink]:
    """Link each lesson to its neighbours in global course order."""

    links: List[LessonLink] = []
    last = len(ordered_lesson_ids) - 1
    for position, lesson_id in enumerate(ordered_lesson_ids):
        links.append(
            LessonLink(
                lesson_id=lesson_id,
                previous=ordered_lesson_ids[position - 1] if position > 0 else None,
                next=ordered_lesson_ids[position + 1] if position < last else None,
            )
        )
    return links


def _require_id(row: Dict[str, object], table: str) -> str:
    identifier = row.get("id")
    if identifier in (None, ""):
        raise StoreReadError(f"Row without id returned from {table}", context=f"table={table}")
    return str(identifier)


class NavigationLinker:
    """Re-reads a course's chapters and lessons ordered by index and writes links.

    The first lesson of a chapter points back at the last lesson of the prior
    chapter and the last lesson points forward to the next chapter's first.
    """

    def __init__(self, store: ContentStore, logger: logging.Logger | None = None) -> None:
        self.store = store
        self.logger = logger or LOGGER

    def ordered_lesson_ids(self, course_id: str) -> List[str]:
        ordered: List[str] = []
        for chapter in self.store.list_chapters(course_id):
            chapter_id = _require_id(chapter, "chapters")
            for lesson in self.store.list_lessons(chapter_id):
                ordered.append(_require_id(lesson, "lessons"))
        return ordered

    def link_course(self, course_id: str) -> List[LessonLink]:
        """Write previous/next on every lesson of ``course_id``; stops at the first failure."""

        links = compute_links(self.ordered_lesson_ids(course_id))
        for link in links:
            self.store.set_lesson_links(link.lesson_id, previous=link.previous, next=link.next)
        self.logger.info("Linked %d lessons for course %s", len(links), course_id)
        return links


__all__ = ["LessonLink", "NavigationLinker", "compute_links"]
