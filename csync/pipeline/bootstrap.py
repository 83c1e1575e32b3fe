"""Bootstrap helpers for a content sync run."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv

from csync.core.config import SyncConfig, load_sync_config
from csync.core.provenance import ProvenanceLogger

from .context import SyncContext, SyncPaths

LOGGER = logging.getLogger("coursesync.pipeline")
ENV_KEYS: tuple[str, ...] = ("SUPABASE_URL",)


def _capture_env(keys: tuple[str, ...]) -> Dict[str, str]:
    """Return a filtered snapshot of environment variables for provenance."""
    snapshot: Dict[str, str] = {}
    for key in keys:
        value = os.getenv(key)
        if value is not None:
            snapshot[key] = value
    return snapshot


def bootstrap_sync(
    config_path: Path | None = None,
    *,
    content_root: Path | None = None,
    store_url: str | None = None,
    log_dir: Path | None = None,
    env_keys: tuple[str, ...] = ENV_KEYS,
) -> SyncContext:
    """
    Load ``.env``, the optional YAML config and CLI overrides into a context.

    Parameters
    ----------
    config_path:
        Optional sync YAML. Relative paths inside it resolve against its folder.
    content_root:
        Directory holding the course directories. Overrides ``content.root``.
    store_url:
        Store base URL. Overrides ``store.url`` and ``SUPABASE_URL``.
    log_dir:
        Directory for the JSONL run log. Overrides ``log_dir``.
    env_keys:
        Environment variables to capture for provenance logging. Secrets are
        never captured.
    """

    anchor = (content_root or Path.cwd()).expanduser().resolve()
    load_dotenv(anchor / ".env")
    if config_path is not None:
        config_path = config_path.expanduser().resolve()
        load_dotenv(config_path.parent / ".env")

    config: SyncConfig = load_sync_config(config_path, base_dir=None if config_path else anchor)

    if content_root is not None:
        content_cfg = config.content.model_copy(update={"root": anchor})
        config = config.model_copy(update={"content": content_cfg})
    if store_url:
        store_cfg = config.store.model_copy(update={"url": store_url.strip().rstrip("/")})
        config = config.model_copy(update={"store": store_cfg})
    if log_dir is not None:
        config = config.model_copy(update={"log_dir": log_dir.expanduser().resolve()})

    paths = SyncPaths(content_root=config.content.root, logs_dir=config.log_dir)
    paths.ensure_directories()
    provenance = ProvenanceLogger(paths.provenance_path)

    ctx = SyncContext(
        config=config,
        paths=paths,
        env=_capture_env(env_keys),
        provenance=provenance,
    )
    ctx.provenance.record(
        "bootstrap",
        "Sync configuration loaded",
        agent="csync.pipeline",
        config_path=str(config_path) if config_path else None,
        content_root=str(paths.content_root),
        store_url=config.store.resolved_url(),
        api_key_provided=config.store.resolved_api_key() is not None,
        buckets=config.buckets.model_dump(),
    )
    LOGGER.debug("Bootstrapped sync for %s", paths.content_root)
    return ctx
