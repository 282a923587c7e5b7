"""Shared fixtures: an in-memory stand-in for the Supabase key-value store."""

from __future__ import annotations

import copy
from typing import Any, Optional

import pytest


class FakeStore:
    """Same interface as ``KeyValueStore``, backed by a dict.

    Values are deep-copied on the way in and out so tests see exactly what
    a JSON round trip through the database would give them.
    """

    def __init__(self, data: Optional[dict[str, Any]] = None) -> None:
        self.data: dict[str, Any] = copy.deepcopy(data) if data else {}
        self.fail_writes = False

    def get(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self.data.get(key))

    def set(self, key: str, value: Any) -> bool:
        if self.fail_writes:
            return False
        self.data[key] = copy.deepcopy(value)
        return True

    def delete(self, key: str) -> bool:
        if self.fail_writes:
            return False
        self.data.pop(key, None)
        return True

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self.data if k.startswith(prefix))


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
