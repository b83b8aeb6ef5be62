"""
Repository: the single durable snapshot slot for workouts.

This file contains only storage code. The snapshot is an ordered list of
plain JSON dicts (see `models.py` for the field names); repositories never
interpret it. Keep business rules out of this module.

Two backends share the same four methods (`load`, `save`, `clear`, `ping`):
- `SnapshotRepo` keeps the list in one JSONB row of the `snapshots` table
  (see `scripts/create_snapshot_table.py`).
- `FileSnapshotRepo` keeps it in a JSON file, the server-side stand-in for
  the browser's localStorage slot.

Every backend failure is re-raised as `SnapshotStorageError` so callers
only have to handle one exception type.
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import psycopg
from psycopg.types.json import Jsonb

from db import get_conn
from settings import settings


class SnapshotStorageError(RuntimeError):
    """The durable snapshot could not be read, written or cleared."""


class SnapshotRepo:
    """Postgres-backed slot. No business logic here.

    Responsibilities:
    - upsert the full list under `key` (full replace, never a delta)
    - return the stored list, or None when the row is absent
    - keep transaction/commit boundaries local and explicit
    """

    def __init__(self, key: str = settings.snapshot_key):
        self.key = key

    def load(self) -> Optional[List[Dict[str, Any]]]:
        try:
            with get_conn() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT value FROM snapshots WHERE key=%s", (self.key,))
                    row = cur.fetchone()
        except psycopg.Error as e:
            raise SnapshotStorageError(f"Snapshot read failed: {e}") from e
        return None if row is None else row[0]

    def save(self, data: List[Dict[str, Any]]) -> None:
        """Replace the stored snapshot with `data` and commit."""

        try:
            with get_conn() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "INSERT INTO snapshots (key, value, updated_at) VALUES (%s, %s, now()) "
                        "ON CONFLICT (key) DO UPDATE SET value=EXCLUDED.value, updated_at=now()",
                        (self.key, Jsonb(data)),
                    )
                conn.commit()
        except psycopg.Error as e:
            raise SnapshotStorageError(f"Snapshot write failed: {e}") from e

    def clear(self) -> None:
        try:
            with get_conn() as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM snapshots WHERE key=%s", (self.key,))
                conn.commit()
        except psycopg.Error as e:
            raise SnapshotStorageError(f"Snapshot clear failed: {e}") from e

    def ping(self) -> None:
        """Lightweight DB health check. Raises SnapshotStorageError on error."""

        try:
            with get_conn() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1;")
        except psycopg.Error as e:
            raise SnapshotStorageError(f"Database unreachable: {e}") from e


class FileSnapshotRepo:
    """JSON-file slot. The whole file is rewritten on every save."""

    def __init__(self, path: Union[str, Path] = settings.snapshot_path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> Optional[List[Dict[str, Any]]]:
        with self._lock:
            if not self.path.exists():
                return None
            try:
                return json.loads(self.path.read_text(encoding="utf-8"))
            # ValueError covers both bad JSON and bytes that are not UTF-8
            except (OSError, ValueError) as e:
                raise SnapshotStorageError(f"Snapshot read failed: {e}") from e

    def save(self, data: List[Dict[str, Any]]) -> None:
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            except (OSError, TypeError) as e:
                raise SnapshotStorageError(f"Snapshot write failed: {e}") from e

    def clear(self) -> None:
        with self._lock:
            try:
                self.path.unlink(missing_ok=True)
            except OSError as e:
                raise SnapshotStorageError(f"Snapshot clear failed: {e}") from e

    def ping(self) -> None:
        if not self.path.parent.exists():
            return
        if not self.path.parent.is_dir():
            raise SnapshotStorageError(f"{self.path.parent} is not a directory")


def build_repo():
    """Return the repository selected by `settings.snapshot_backend`."""

    if settings.snapshot_backend == "postgres":
        return SnapshotRepo(settings.snapshot_key)
    return FileSnapshotRepo(settings.snapshot_path)
