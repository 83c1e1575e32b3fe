"""Pipeline bootstrap utilities for content sync runs."""

from __future__ import annotations

from .bootstrap import bootstrap_sync
from .context import SyncContext, SyncPaths
from .runtime import build_store, run_sync

__all__ = [
    "SyncContext",
    "SyncPaths",
    "bootstrap_sync",
    "build_store",
    "run_sync",
]
