"""Shared context objects for a content sync run."""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from csync.core.config import SyncConfig
from csync.core.provenance import ProvenanceLogger


class SyncPaths(BaseModel):
    """Canonical directories used during a sync run."""

    content_root: Path
    logs_dir: Path

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("content_root", "logs_dir", mode="before")
    @classmethod
    def _expand(cls, value: Path | str) -> Path:
        return Path(value).expanduser().resolve()

    def ensure_directories(self) -> None:
        """Create the log directory if it does not yet exist."""
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    @property
    def provenance_path(self) -> Path:
        return self.logs_dir / "sync_provenance.jsonl"


class SyncContext(BaseModel):
    """Aggregated runtime context for one sync run."""

    config: SyncConfig
    paths: SyncPaths
    env: Dict[str, str] = Field(default_factory=dict)
    provenance: ProvenanceLogger

    model_config = ConfigDict(arbitrary_types_allowed=True)
