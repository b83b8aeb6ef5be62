"""
Postgres connection helper for the `postgres` snapshot backend.

`SnapshotRepo` opens one short-lived connection per load/save/clear; the
`file` backend never imports a connection. Connections are tagged with
`application_name` so snapshot traffic is easy to spot in `pg_stat_activity`.

Usage:
    from db import get_conn
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT value FROM snapshots WHERE key=%s", ("workouts",))
"""

from typing import Optional

import psycopg
from settings import settings

APPLICATION_NAME = "mapty-snapshots"
CONNECT_TIMEOUT_SECONDS = 5


def get_conn(url: Optional[str] = None) -> psycopg.Connection:
    """Open a connection to `url` (default `settings.db_url`).

    A saved workout is written while the HTTP request waits, so the
    connect timeout is kept short.
    """

    return psycopg.connect(
        url or settings.db_url,
        connect_timeout=CONNECT_TIMEOUT_SECONDS,
        application_name=APPLICATION_NAME,
    )
