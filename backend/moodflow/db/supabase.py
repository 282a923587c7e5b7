"""
Supabase Client
===============
Configured Supabase client shared by the key-value state store.

The service_role key is used because the store reads and writes the
``app_state`` table directly; the mobile client never talks to that
table itself.
"""

from functools import lru_cache

from supabase import Client, create_client

from moodflow.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_service_key)
