"""Error kinds raised by the content sync pipeline.

Every error is fatal to a run. Each carries the filesystem path (or entity
description) that triggered it so the CLI can report where the run halted.
"""

from __future__ import annotations

from pathlib import Path


class SyncError(Exception):
    """Base class for every failure that halts a sync run."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        context: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.context = context

    def with_path(self, path: Path | str) -> "SyncError":
        """Attach a path if none is recorded yet and return ``self``."""

        if self.path is None:
            self.path = Path(path)
        return self

    def __str__(self) -> str:
        details = []
        if self.context:
            details.append(self.context)
        if self.path is not None:
            details.append(f"path={self.path}")
        if not details:
            return self.message
        return f"{self.message} [{', '.join(details)}]"


class MalformedMetadata(SyncError):
    """Descriptor missing, unparsable, or missing a required field."""


class MissingChapterDirectory(SyncError):
    """A chapter declared by the course descriptor has no directory."""


class FilesystemError(SyncError):
    """A file or directory expected to exist could not be read."""


class StoreWriteError(SyncError):
    """A relational upsert, update or delete failed."""


class StoreReadError(SyncError):
    """A relational select failed."""


class ArtifactUploadError(SyncError):
    """A blob upload failed."""


__all__ = [
    "ArtifactUploadError",
    "FilesystemError",
    "MalformedMetadata",
    "MissingChapterDirectory",
    "StoreReadError",
    "StoreWriteError",
    "SyncError",
]
