"""
Tests for KeyValueStore
=======================
Covers:
- get: returns the stored value, None when missing, None on error
- set: upserts {key, value, updated_at} on key; False on error
- delete: deletes by key; False on error
- keys: escaped prefix LIKE query, exact prefix match, sorted; empty list on error

Run: pytest backend/tests/test_store.py -v
"""

from __future__ import annotations

from unittest.mock import MagicMock

from moodflow.db.store import KeyValueStore


def _store(mock_db: MagicMock) -> KeyValueStore:
    return KeyValueStore(client=mock_db, table="app_state")


class TestGet:

    def test_returns_value_column(self):
        mock_db = MagicMock()
        chain = mock_db.table.return_value.select.return_value.eq.return_value.maybe_single.return_value
        chain.execute.return_value.data = {"value": {"rating": 7.0}}

        assert _store(mock_db).get("mood_2026-03-01_0") == {"rating": 7.0}
        mock_db.table.assert_called_with("app_state")
        mock_db.table.return_value.select.assert_called_with("value")
        mock_db.table.return_value.select.return_value.eq.assert_called_with("key", "mood_2026-03-01_0")

    def test_missing_key_returns_none(self):
        mock_db = MagicMock()
        chain = mock_db.table.return_value.select.return_value.eq.return_value.maybe_single.return_value
        chain.execute.return_value = None

        assert _store(mock_db).get("nope") is None

    def test_error_returns_none(self):
        mock_db = MagicMock()
        mock_db.table.side_effect = Exception("connection refused")

        assert _store(mock_db).get("mood_2026-03-01_0") is None


class TestSet:

    def test_upserts_on_key(self):
        mock_db = MagicMock()

        assert _store(mock_db).set("mood_goals", [{"id": "1"}]) is True

        args, kwargs = mock_db.table.return_value.upsert.call_args
        row = args[0]
        assert row["key"] == "mood_goals"
        assert row["value"] == [{"id": "1"}]
        assert "updated_at" in row
        assert kwargs == {"on_conflict": "key"}

    def test_error_returns_false(self):
        mock_db = MagicMock()
        mock_db.table.return_value.upsert.return_value.execute.side_effect = Exception("boom")

        assert _store(mock_db).set("k", {"a": 1}) is False


class TestDelete:

    def test_deletes_by_key(self):
        mock_db = MagicMock()

        assert _store(mock_db).delete("saved_analysis_1") is True
        mock_db.table.return_value.delete.return_value.eq.assert_called_with("key", "saved_analysis_1")

    def test_error_returns_false(self):
        mock_db = MagicMock()
        mock_db.table.return_value.delete.return_value.eq.return_value.execute.side_effect = Exception("boom")

        assert _store(mock_db).delete("k") is False


class TestKeys:

    def test_prefix_query_sorted(self):
        mock_db = MagicMock()
        chain = mock_db.table.return_value.select.return_value.like.return_value
        chain.execute.return_value.data = [
            {"key": "saved_analysis_2"},
            {"key": "saved_analysis_1"},
        ]

        keys = _store(mock_db).keys("saved_analysis_")

        assert keys == ["saved_analysis_1", "saved_analysis_2"]
        mock_db.table.return_value.select.return_value.like.assert_called_with("key", "saved\\_analysis\\_%")

    def test_underscore_is_not_a_wildcard(self):
        mock_db = MagicMock()
        chain = mock_db.table.return_value.select.return_value.like.return_value
        chain.execute.return_value.data = [
            {"key": "saved_analysis_1"},
            {"key": "savedXanalysisY2"},
        ]

        assert _store(mock_db).keys("saved_analysis_") == ["saved_analysis_1"]

    def test_error_returns_empty(self):
        mock_db = MagicMock()
        mock_db.table.return_value.select.return_value.like.return_value.execute.side_effect = Exception("x")

        assert _store(mock_db).keys("mood_") == []
