"""SQLite-backed persistence for requests and integration settings.

Single WAL-mode database with two tables: requests (one row per user request)
and settings (flat key/value, holds the Lidarr connection and defaults).
Thread-safe via per-thread connections and SQLite's built-in locking.
"""

from __future__ import annotations

import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from .errors import DuplicateRequestError, RequestNotFoundError
from .models import MediaRequest, RequestStatus, RequestType

log = logger.bind(component="db")

_SCHEMA = """\
PRAGMA journal_mode=WAL;
PRAGMA busy_timeout=5000;

CREATE TABLE IF NOT EXISTS requests (
    id               TEXT PRIMARY KEY,
    music_brainz_id  TEXT NOT NULL,
    type             TEXT NOT NULL,
    title            TEXT NOT NULL,
    artist_name      TEXT,
    cover_url        TEXT,
    status           TEXT NOT NULL DEFAULT 'PENDING',
    admin_note       TEXT,
    lidarr_id        INTEGER,
    user_id          TEXT NOT NULL,
    created_at       TEXT NOT NULL,
    updated_at       TEXT NOT NULL,
    UNIQUE (music_brainz_id, user_id)
);

CREATE TABLE IF NOT EXISTS settings (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_requests_status ON requests(status);
CREATE INDEX IF NOT EXISTS idx_requests_user ON requests(user_id);
"""


def _utcnow() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _row_to_request(row: sqlite3.Row) -> MediaRequest:
    return MediaRequest(
        id=row["id"],
        music_brainz_id=row["music_brainz_id"],
        type=RequestType(row["type"]),
        title=row["title"],
        artist_name=row["artist_name"],
        cover_url=row["cover_url"],
        status=RequestStatus(row["status"]),
        admin_note=row["admin_note"],
        lidarr_id=row["lidarr_id"],
        user_id=row["user_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class RecordStoreDB:
    """SQLite-backed store.

    Thread-safe: each thread gets its own connection via threading.local().
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._local = threading.local()
        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create a per-thread SQLite connection."""
        conn = getattr(self._local, "conn", None)
        if conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), timeout=10.0)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
            self._local.conn = conn
        return conn

    def _init_schema(self) -> None:
        conn = self._get_conn()
        conn.executescript(_SCHEMA)
        conn.commit()

    def close(self) -> None:
        """Close the current thread's connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None

    # -- Request API --

    def find_request(self, music_brainz_id: str, user_id: str) -> MediaRequest | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM requests WHERE music_brainz_id = ? AND user_id = ?",
            (music_brainz_id, user_id),
        ).fetchone()
        return _row_to_request(row) if row else None

    def create_request(
        self,
        music_brainz_id: str,
        type: RequestType,
        title: str,
        user_id: str,
        artist_name: str | None = None,
        cover_url: str | None = None,
    ) -> MediaRequest:
        """Insert a PENDING request. Raises DuplicateRequestError on (mbid, user) clash."""
        now = _utcnow()
        request_id = uuid.uuid4().hex
        conn = self._get_conn()
        try:
            conn.execute(
                """INSERT INTO requests
                   (id, music_brainz_id, type, title, artist_name, cover_url,
                    status, user_id, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    request_id,
                    music_brainz_id,
                    str(type),
                    title,
                    artist_name,
                    cover_url,
                    str(RequestStatus.PENDING),
                    user_id,
                    now,
                    now,
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise DuplicateRequestError(
                "You have already requested this item"
            ) from e
        log.info(f"Created request {request_id} mbid={music_brainz_id} user={user_id}")
        return self.get_request(request_id)

    def get_request(self, request_id: str) -> MediaRequest:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM requests WHERE id = ?", (request_id,)
        ).fetchone()
        if row is None:
            raise RequestNotFoundError(f"Request not found: {request_id}")
        return _row_to_request(row)

    def list_requests(
        self,
        user_id: str | None = None,
        status: RequestStatus | None = None,
    ) -> list[MediaRequest]:
        """List requests newest first, optionally filtered by user and/or status."""
        query = "SELECT * FROM requests"
        params: list[str] = []
        clauses: list[str] = []
        if user_id:
            clauses.append("user_id = ?")
            params.append(user_id)
        if status:
            clauses.append("status = ?")
            params.append(str(status))
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY created_at DESC"
        rows = self._get_conn().execute(query, params).fetchall()
        return [_row_to_request(r) for r in rows]

    def list_unlinked_approved(self) -> list[MediaRequest]:
        """APPROVED requests with no Lidarr id attached, oldest first."""
        rows = self._get_conn().execute(
            """SELECT * FROM requests
               WHERE status = ? AND lidarr_id IS NULL
               ORDER BY created_at""",
            (str(RequestStatus.APPROVED),),
        ).fetchall()
        return [_row_to_request(r) for r in rows]

    def update_request(
        self,
        request_id: str,
        status: RequestStatus,
        admin_note: str | None = None,
        lidarr_id: int | None = None,
    ) -> MediaRequest:
        """Set status, and note / Lidarr id when given (None leaves them unchanged)."""
        conn = self._get_conn()
        cur = conn.execute(
            """UPDATE requests SET
               status = ?,
               admin_note = COALESCE(?, admin_note),
               lidarr_id = COALESCE(?, lidarr_id),
               updated_at = ?
               WHERE id = ?""",
            (str(status), admin_note, lidarr_id, _utcnow(), request_id),
        )
        conn.commit()
        if cur.rowcount == 0:
            raise RequestNotFoundError(f"Request not found: {request_id}")
        log.info(
            f"Updated request {request_id} status={status}"
            + (f" lidarr_id={lidarr_id}" if lidarr_id is not None else "")
        )
        return self.get_request(request_id)

    def set_lidarr_id(self, request_id: str, lidarr_id: int) -> None:
        conn = self._get_conn()
        conn.execute(
            "UPDATE requests SET lidarr_id = ?, updated_at = ? WHERE id = ?",
            (lidarr_id, _utcnow(), request_id),
        )
        conn.commit()

    def delete_request(self, request_id: str) -> None:
        conn = self._get_conn()
        cur = conn.execute("DELETE FROM requests WHERE id = ?", (request_id,))
        conn.commit()
        if cur.rowcount == 0:
            raise RequestNotFoundError(f"Request not found: {request_id}")
        log.info(f"Deleted request {request_id}")

    # -- Settings API --

    def get_setting(self, key: str) -> str | None:
        row = self._get_conn().execute(
            "SELECT value FROM settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set_setting(self, key: str, value: str) -> None:
        """Insert or replace a setting."""
        conn = self._get_conn()
        conn.execute(
            """INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET
               value = excluded.value, updated_at = excluded.updated_at""",
            (key, value, _utcnow()),
        )
        conn.commit()
        log.debug(f"Setting saved: {key}")

    def list_settings(self, prefix: str = "") -> dict[str, str]:
        rows = self._get_conn().execute(
            "SELECT key, value FROM settings WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        ).fetchall()
        return {r["key"]: r["value"] for r in rows}
