"""
Typed configuration for the content sync pipeline.

The YAML file is optional; every section has defaults so a run can be driven
purely by ``SUPABASE_URL`` / ``SUPABASE_SECRET_KEY`` and a content root.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

DEFAULT_EXCLUDED_DIRS: tuple[str, ...] = (
    ".git",
    "node_modules",
    "__pycache__",
    ".venv",
    ".idea",
    ".vscode",
)


class StoreConfig(BaseModel):
    """Connection info for the Supabase-compatible backing store."""

    model_config = ConfigDict(extra="ignore")

    url: Optional[str] = Field(default=None, description="Base URL of the store, e.g. https://xyz.supabase.co")
    url_env: str = Field(default="SUPABASE_URL")
    api_key: Optional[str] = None
    api_key_env: str = Field(default="SUPABASE_SECRET_KEY")
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("url", mode="before")
    @classmethod
    def strip_url(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().rstrip("/")
            return value or None
        return value

    def resolved_url(self) -> str | None:
        if self.url:
            return self.url
        raw = os.getenv(self.url_env)
        return raw.strip().rstrip("/") if raw and raw.strip() else None

    def resolved_api_key(self) -> str | None:
        if self.api_key:
            return self.api_key
        raw = os.getenv(self.api_key_env)
        return raw.strip() if raw and raw.strip() else None


class BucketConfig(BaseModel):
    """Blob storage bucket names, one per artifact kind."""

    guides: str = "guides"
    workspaces: str = "workspaces"
    files: str = "files"
    resources: str = "resources"


class ContentConfig(BaseModel):
    """Filesystem conventions of the course content tree."""

    model_config = ConfigDict()

    root: Path = Field(default=Path("."))
    excluded_dirs: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_DIRS))
    guide_filename: str = "guide.md"
    workspace_dirname: str = "workspace"
    resources_dirname: str = "resources"

    @field_validator("root", mode="before")
    @classmethod
    def coerce_path(cls, value: Any) -> Path:
        return Path(value).expanduser().resolve()

    @field_validator("excluded_dirs", mode="before")
    @classmethod
    def strip_items(cls, value: Any) -> Any:
        if value is None:
            return list(DEFAULT_EXCLUDED_DIRS)
        if isinstance(value, list):
            return [item.strip() if isinstance(item, str) else item for item in value]
        return value


class SyncConfig(BaseModel):
    """Top-level configuration for a sync run."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    buckets: BucketConfig = Field(default_factory=BucketConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)
    log_dir: Path = Field(default=Path("logs"))

    @model_validator(mode="before")
    @classmethod
    def drop_empty_sections(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return {key: value for key, value in values.items() if value is not None}

    @field_validator("log_dir", mode="before")
    @classmethod
    def coerce_log_dir(cls, value: Any) -> Path:
        return Path(value).expanduser().resolve()


def read_yaml_file(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return a dictionary."""
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at root of {path}, received {type(data)}")
    return data


def _resolve_config_path(value: Any, base_dir: Path) -> str:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    else:
        path = path.resolve()
    return str(path)


def _absolutize_sync_paths(data: Dict[str, Any], base_dir: Path) -> None:
    content = data.get("content")
    if isinstance(content, dict) and content.get("root"):
        content["root"] = _resolve_config_path(content["root"], base_dir)
    if data.get("log_dir"):
        data["log_dir"] = _resolve_config_path(data["log_dir"], base_dir)


def load_sync_config(path: Path | None = None, *, base_dir: Path | None = None) -> SyncConfig:
    """Load the sync config; a missing ``path`` yields the defaults."""
    if path is None:
        data: Dict[str, Any] = {}
        anchor = (base_dir or Path.cwd()).resolve()
    else:
        path = path.expanduser().resolve()
        data = read_yaml_file(path)
        anchor = (base_dir or path.parent).resolve()
    _absolutize_sync_paths(data, base_dir=anchor)
    data.setdefault("content", {}).setdefault("root", str(anchor))
    data.setdefault("log_dir", str(anchor / "logs"))
    try:
        return SyncConfig.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid sync config in {path or anchor}") from exc


__all__ = [
    "BucketConfig",
    "ContentConfig",
    "DEFAULT_EXCLUDED_DIRS",
    "StoreConfig",
    "SyncConfig",
    "load_sync_config",
    "read_yaml_file",
]
