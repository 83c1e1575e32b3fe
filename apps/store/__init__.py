"""Backing-store access for the content sync pipeline."""
from .content_store import PURGE_ORDER, ContentStore
from .supabase import MATCH_ALL_SENTINEL, SupabaseClient, SupabaseConfig

__all__ = [
    "ContentStore",
    "MATCH_ALL_SENTINEL",
    "PURGE_ORDER",
    "SupabaseClient",
    "SupabaseConfig",
]
