"""Shared fixtures for the Residency Pulse test suite."""

from __future__ import annotations

import pytest

from pulse.store import FileStore, MemoryStore, RemoteListStore


class FakeListClient:
    """In-process stand-in for the KV REST client. items[0] is the list head."""

    def __init__(self, items=None) -> None:
        self.items = list(items or [])
        self.rewrites = 0

    def lpush(self, key, *values):
        for value in values:
            self.items.insert(0, value)
        return len(self.items)

    def lrange(self, key, start=0, stop=-1):
        return list(self.items)

    def replace_list(self, key, values):
        self.rewrites += 1
        self.items = list(values)


@pytest.fixture
def fake_kv() -> FakeListClient:
    return FakeListClient()


@pytest.fixture
def payload() -> dict:
    """A complete, valid pulse as the capture form posts it."""
    return {
        "name": "Anna",
        "date": "2026-10-19T09:30",
        "narrative": 'Paired with Kirill on the "hard" proof, finally clicked.',
        "valueTriad": {"x": 250, "y": 250},
        "identityTriad": {"x": 250, "y": 100},
        "universityStartupSlider": 40,
    }


@pytest.fixture(params=["file", "kv", "memory"])
def any_store(request, tmp_path, fake_kv):
    """Each backend in turn, freshly constructed and empty."""
    if request.param == "file":
        return FileStore(tmp_path / "submissions.json")
    if request.param == "kv":
        return RemoteListStore(fake_kv, "submissions")
    return MemoryStore()
