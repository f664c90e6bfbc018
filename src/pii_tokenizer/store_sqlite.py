"""Persistent token store backed by SQLite; survives process restarts.

Drop-in replacement for MemoryTokenStore when you need durability.

Usage:
    store = SqliteTokenStore(db_path="~/.pii-tokenizer/tokens.db")
    store.upsert("EMAIL_5d41402abc4b", "juan@example.com")
    store.get("EMAIL_5d41402abc4b")   # "juan@example.com"
"""

from __future__ import annotations
import logging
import sqlite3
import threading
from pathlib import Path

from .errors import StoreUnavailableError

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS tokens (
    token TEXT PRIMARY KEY,
    original_value TEXT NOT NULL,
    updated_at REAL NOT NULL DEFAULT (julianday('now'))
);
"""


class SqliteTokenStore:
    """Durable token → original value store."""

    __slots__ = ("_db_path", "_db", "_lock")

    def __init__(self, *, db_path: str | Path = "tokens.db") -> None:
        db_path = Path(db_path).expanduser() if str(db_path) != ":memory:" else db_path
        self._db_path = db_path
        self._lock = threading.Lock()
        try:
            if isinstance(db_path, Path):
                db_path.parent.mkdir(parents=True, exist_ok=True)
            self._db = sqlite3.connect(str(db_path), check_same_thread=False)
            self._db.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailableError(f"cannot open token store at {db_path}: {e}") from e

    def upsert(self, token: str, original_value: str) -> None:
        try:
            with self._lock:
                row = self._db.execute(
                    "SELECT original_value FROM tokens WHERE token = ?", (token,),
                ).fetchone()
                self._db.execute(
                    "INSERT INTO tokens (token, original_value) VALUES (?, ?) "
                    "ON CONFLICT(token) DO UPDATE SET "
                    "original_value = excluded.original_value, "
                    "updated_at = julianday('now')",
                    (token, original_value),
                )
                self._db.commit()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"token store write failed: {e}") from e

        if row is not None and row[0] != original_value:
            # Two distinct values share a fingerprint; the newer one wins
            logger.warning("token collision on %s: previous value overwritten", token)

    def get(self, token: str) -> str | None:
        try:
            with self._lock:
                row = self._db.execute(
                    "SELECT original_value FROM tokens WHERE token = ?", (token,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"token store read failed: {e}") from e
        return row[0] if row else None

    @property
    def size(self) -> int:
        with self._lock:
            return self._db.execute("SELECT COUNT(*) FROM tokens").fetchone()[0]

    def dump(self) -> dict[str, str]:
        with self._lock:
            rows = self._db.execute(
                "SELECT token, original_value FROM tokens ORDER BY token"
            ).fetchall()
        return dict(rows)

    def clear(self) -> None:
        with self._lock:
            self._db.execute("DELETE FROM tokens")
            self._db.commit()

    def close(self) -> None:
        with self._lock:
            self._db.close()
