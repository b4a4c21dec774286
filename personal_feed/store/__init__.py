"""Document store access for candidate retrieval."""

from personal_feed.store.errors import StoreError, is_transient_store_error
from personal_feed.store.protocols import StoryStore
from personal_feed.store.supabase import SupabaseStoryStore


__all__ = [
    "StoreError",
    "StoryStore",
    "SupabaseStoryStore",
    "is_transient_store_error",
]
