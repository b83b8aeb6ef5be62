"""Shared test fixtures."""

import copy
import json
from datetime import datetime, timezone

import pytest

from repo_snapshot import SnapshotStorageError
from service_session import SessionStore


class MemoryRepo:
    """Snapshot slot kept in memory.

    Saved data goes through a JSON encode/decode so tests see what a text
    store (file, JSONB column, localStorage) would give back.
    """

    def __init__(self):
        self.data = None
        self.saves = 0
        self.fail_load = False
        self.fail_save = False
        self.fail_clear = False

    def load(self):
        if self.fail_load:
            raise SnapshotStorageError("load failed")
        return copy.deepcopy(self.data)

    def save(self, data):
        if self.fail_save:
            raise SnapshotStorageError("quota exceeded")
        self.data = json.loads(json.dumps(data))
        self.saves += 1

    def clear(self):
        if self.fail_clear:
            raise SnapshotStorageError("clear failed")
        self.data = None

    def ping(self):
        if self.fail_load:
            raise SnapshotStorageError("unreachable")


MARCH = datetime(2024, 3, 10, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def repo() -> MemoryRepo:
    return MemoryRepo()


@pytest.fixture
def store(repo: MemoryRepo) -> SessionStore:
    return SessionStore(repo)


@pytest.fixture
def march_store(repo: MemoryRepo) -> SessionStore:
    """Store whose clock is pinned to 10 March 2024."""
    return SessionStore(repo, clock=lambda: MARCH)
