"""SQLite-backed authorization code store."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from authserver.models.authorization_code import AuthorizationCodeRecord

_COLUMNS = (
    "code",
    "client_id",
    "user_id",
    "redirect_uri",
    "expires",
    "scope",
    "acr",
    "code_challenge",
    "code_challenge_method",
)


def _to_utc_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


class SQLiteCodeStore:
    """Authorization codes kept in a single table keyed by the code value.

    Consumption is recorded in ``consumed_at`` rather than by deleting the row,
    and the conditional ``UPDATE`` doubles as the compare-and-invalidate step.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS authorization_codes (
                    code TEXT PRIMARY KEY,
                    client_id TEXT NOT NULL,
                    user_id TEXT,
                    redirect_uri TEXT,
                    expires TEXT,
                    scope TEXT,
                    acr TEXT,
                    code_challenge TEXT,
                    code_challenge_method TEXT,
                    consumed_at TEXT
                )
                """
            )

    def save(self, record: AuthorizationCodeRecord) -> None:
        if not record.code:
            raise ValueError("Authorization code records must carry their code to be saved.")
        row: Dict[str, Any] = record.model_dump()
        if record.expires is not None:
            row["expires"] = _to_utc_text(record.expires)
        placeholders = ", ".join("?" for _ in _COLUMNS)
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT OR REPLACE INTO authorization_codes ({", ".join(_COLUMNS)}, consumed_at)
                VALUES ({placeholders}, NULL)
                """,
                tuple(row[column] for column in _COLUMNS),
            )

    def fetch(self, code: str) -> Optional[AuthorizationCodeRecord]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM authorization_codes "
                "WHERE code = ? AND consumed_at IS NULL",
                (code,),
            ).fetchone()
        if not row:
            return None
        return AuthorizationCodeRecord.model_validate(dict(row))

    def invalidate(self, code: str) -> bool:
        consumed_at = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE authorization_codes SET consumed_at = ? "
                "WHERE code = ? AND consumed_at IS NULL",
                (consumed_at, code),
            )
        return cursor.rowcount == 1

    def purge_expired(self, now: datetime) -> int:
        """Delete codes whose expiry has passed.

        Rows written by other tools may hold epoch seconds instead of ISO text,
        so expiries are parsed the same way ``fetch`` parses them rather than
        compared as strings.
        """
        removed = 0
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT code, client_id, expires FROM authorization_codes "
                "WHERE expires IS NOT NULL"
            ).fetchall()
            for row in rows:
                expires = AuthorizationCodeRecord.model_validate(dict(row)).expires
                if expires is None or expires > now:
                    continue
                # Only the row that was inspected; a concurrent save may have replaced it.
                cursor = conn.execute(
                    "DELETE FROM authorization_codes WHERE code = ? AND expires = ?",
                    (row["code"], row["expires"]),
                )
                removed += cursor.rowcount
        return removed


__all__ = ["SQLiteCodeStore"]
