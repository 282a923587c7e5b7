"""
Key-Value State Store
=====================
Every record MoodFlow persists (mood entries, correlation days, goals,
saved analyses, notification settings) is a JSON document under a string
key, e.g. ``mood_2026-03-01_0`` or ``correlation_2026-03-01``.

Backed by a single Supabase table::

    app_state(key text primary key, value jsonb, updated_at timestamptz)

Reads and writes never raise. A failed read returns ``None`` and a failed
write returns ``False``, which is what the screens expect from local
storage: show nothing, or show a "could not save" message.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from supabase import Client

from moodflow.config import get_settings
from moodflow.db.supabase import get_supabase_client

logger = logging.getLogger(__name__)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class KeyValueStore:
    """JSON documents by key in the ``app_state`` table."""

    def __init__(self, client: Client | None = None, table: str | None = None) -> None:
        self._db = client or get_supabase_client()
        self._table = table or get_settings().state_table

    def get(self, key: str) -> Optional[Any]:
        try:
            result = (
                self._db.table(self._table)
                .select("value")
                .eq("key", key)
                .maybe_single()
                .execute()
            )
        except Exception:
            logger.exception("Failed to read key %s", key)
            return None

        if not result or not result.data:
            return None
        return result.data.get("value")

    def set(self, key: str, value: Any) -> bool:
        try:
            self._db.table(self._table).upsert(
                {
                    "key": key,
                    "value": value,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                on_conflict="key",
            ).execute()
        except Exception:
            logger.exception("Failed to write key %s", key)
            return False
        return True

    def delete(self, key: str) -> bool:
        try:
            self._db.table(self._table).delete().eq("key", key).execute()
        except Exception:
            logger.exception("Failed to delete key %s", key)
            return False
        return True

    def keys(self, prefix: str = "") -> list[str]:
        try:
            result = (
                self._db.table(self._table)
                .select("key")
                .like("key", f"{_escape_like(prefix)}%")
                .execute()
            )
        except Exception:
            logger.exception("Failed to list keys with prefix %r", prefix)
            return []
        # the LIKE only narrows the scan; startswith is the actual match
        return sorted(row["key"] for row in (result.data or []) if row["key"].startswith(prefix))


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_default_store: KeyValueStore | None = None


def get_store() -> KeyValueStore:
    global _default_store
    if _default_store is None:
        _default_store = KeyValueStore()
    return _default_store
