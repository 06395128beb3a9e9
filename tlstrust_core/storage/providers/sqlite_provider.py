from __future__ import annotations
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional
import os, sqlite3

from tlstrust_core.constants import DEFAULT_DB_PATH, TABLE_NAME
from tlstrust_core.errors import StoreUnavailable
from tlstrust_core.logger import get_logger
from tlstrust_core.storage.models import TrustDecision
from tlstrust_core.storage.provider import TrustStoreProvider
from tlstrust_core.utils import to_ts

log = get_logger("TLSTrust.Store.SQLite")

_COLUMNS = "hostname, certificate_hash, user_decision, created_at, expires_at"


class SQLiteStorage(TrustStoreProvider):
    """
    SQLite-backed trust store.

    A connection is opened per operation and closed afterwards, so any number
    of browser views (or processes) can share one database file without
    coordinating a long-lived handle.
    """

    def __init__(self, path=DEFAULT_DB_PATH, timeout: float = 5.0):
        # If no directory, default to current working directory
        dir_path = os.path.dirname(path) or "."
        os.makedirs(dir_path, exist_ok=True)
        self.path = path
        self.timeout = timeout

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            db = sqlite3.connect(self.path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"cannot open trust store: {e}", self.path) from e
        try:
            # the file may have been removed or replaced since the last operation
            self._init(db)
            yield db
            db.commit()
        except sqlite3.Error as e:
            db.rollback()
            raise StoreUnavailable(f"trust store query failed: {e}", self.path) from e
        finally:
            db.close()

    def _init(self, db: sqlite3.Connection) -> None:
        db.execute(f"""CREATE TABLE IF NOT EXISTS {TABLE_NAME}(
            hostname TEXT PRIMARY KEY,
            certificate_hash TEXT NOT NULL DEFAULT '',
            user_decision TEXT NOT NULL CHECK(user_decision IN ('accepted', 'rejected')),
            created_at TEXT NOT NULL,
            expires_at TEXT
        )""")
        db.execute(
            f"CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_expires_at ON {TABLE_NAME}(expires_at)"
        )

    def upsert_decision(self, rec: TrustDecision) -> None:
        with self._connect() as db:
            db.execute(
                f"INSERT INTO {TABLE_NAME}({_COLUMNS}) VALUES(?,?,?,?,?) "
                "ON CONFLICT(hostname) DO UPDATE SET certificate_hash=excluded.certificate_hash, "
                "user_decision=excluded.user_decision, created_at=excluded.created_at, "
                "expires_at=excluded.expires_at",
                rec.to_row(),
            )
        log.debug(f"[store] upsert hostname={rec.hostname} decision={rec.decision.value}")

    def get_decision(self, hostname: str, now: datetime) -> Optional[TrustDecision]:
        with self._connect() as db:
            cur = db.execute(
                f"SELECT {_COLUMNS} FROM {TABLE_NAME} "
                "WHERE hostname=? AND (expires_at IS NULL OR expires_at > ?)",
                (hostname, to_ts(now)),
            )
            row = cur.fetchone()
        if not row:
            return None
        return self._decode(row)

    def list_decisions(self) -> List[TrustDecision]:
        with self._connect() as db:
            rows = db.execute(f"SELECT {_COLUMNS} FROM {TABLE_NAME} ORDER BY hostname").fetchall()
        return [self._decode(r) for r in rows]

    def _decode(self, row) -> TrustDecision:
        try:
            return TrustDecision.from_row(row)
        except (TypeError, ValueError) as e:
            raise StoreUnavailable(f"undecodable trust store row for {row[0]!r}: {e}", self.path) from e

    def delete_decision(self, hostname: str) -> bool:
        with self._connect() as db:
            cur = db.execute(f"DELETE FROM {TABLE_NAME} WHERE hostname=?", (hostname,))
            return cur.rowcount > 0

    def delete_expired(self, now: datetime) -> int:
        with self._connect() as db:
            cur = db.execute(
                f"DELETE FROM {TABLE_NAME} WHERE expires_at IS NOT NULL AND expires_at <= ?",
                (to_ts(now),),
            )
            return cur.rowcount

    def purge(self) -> int:
        with self._connect() as db:
            cur = db.execute(f"DELETE FROM {TABLE_NAME}")
            return cur.rowcount
