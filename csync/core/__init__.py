"""
Foundational configuration, error and logging utilities for content sync.

These modules are designed so the orchestrator and the operator scripts can
depend on them without importing the store client.
"""

from .config import BucketConfig, ContentConfig, StoreConfig, SyncConfig, load_sync_config
from .errors import (
    ArtifactUploadError,
    FilesystemError,
    MalformedMetadata,
    MissingChapterDirectory,
    StoreReadError,
    StoreWriteError,
    SyncError,
)
from .provenance import ProvenanceEvent, ProvenanceLogger

__all__ = [
    "ArtifactUploadError",
    "BucketConfig",
    "ContentConfig",
    "FilesystemError",
    "MalformedMetadata",
    "MissingChapterDirectory",
    "ProvenanceEvent",
    "ProvenanceLogger",
    "StoreConfig",
    "StoreReadError",
    "StoreWriteError",
    "SyncConfig",
    "SyncError",
    "load_sync_config",
]
