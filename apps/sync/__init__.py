"""Sync orchestration: destructive resync plus the navigation post-pass."""
from .navigation import LessonLink, NavigationLinker, compute_links
from .orchestrator import SyncOrchestrator, SyncResult

__all__ = [
    "LessonLink",
    "NavigationLinker",
    "SyncOrchestrator",
    "SyncResult",
    "compute_links",
]
