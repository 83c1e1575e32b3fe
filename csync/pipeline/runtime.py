"""Runtime entry point that wires the store client into the orchestrator."""

from __future__ import annotations

import logging

import httpx

from apps.store.content_store import ContentStore
from apps.store.dry_run import DryRunStore
from apps.store.supabase import SupabaseClient, SupabaseConfig
from apps.sync.orchestrator import SyncOrchestrator, SyncResult

from .context import SyncContext

LOGGER = logging.getLogger("coursesync.pipeline")


def build_store(ctx: SyncContext, *, http_client: httpx.Client | None = None) -> ContentStore:
    """Create the ``ContentStore`` for ``ctx``; raises ``ValueError`` without a URL."""

    store_cfg = ctx.config.store
    base_url = store_cfg.resolved_url()
    if not base_url:
        raise ValueError(
            f"Store URL required (set {store_cfg.url_env}, store.url in the config, or pass --store-url)"
        )
    client = SupabaseClient(
        SupabaseConfig(base_url=base_url, api_key=store_cfg.resolved_api_key()),
        client=http_client,
        timeout=store_cfg.timeout,
    )
    return ContentStore(client, ctx.config.buckets)


def run_sync(
    ctx: SyncContext,
    *,
    dry_run: bool = False,
    http_client: httpx.Client | None = None,
) -> SyncResult:
    """Run one full resync (or a dry walk) and return its result."""

    if dry_run:
        store: ContentStore | DryRunStore = DryRunStore(ctx.config.buckets)
    else:
        store = build_store(ctx, http_client=http_client)
    LOGGER.info(
        "Starting %s of %s (run %s)",
        "dry run" if dry_run else "sync",
        ctx.paths.content_root,
        ctx.provenance.run_id,
    )
    orchestrator = SyncOrchestrator(ctx.config, store, provenance=ctx.provenance)
    try:
        return orchestrator.run()
    finally:
        store.close()
