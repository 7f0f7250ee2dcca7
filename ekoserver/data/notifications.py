"""Queries on the last message each user has read in each source."""

from __future__ import annotations

import sqlite3

_COLUMNS = "(user_id, source_id, last_read)"
_VALUES = "(:user_id, :source_id, :last_read)"

_INSERT_IF_ABSENT = f"INSERT OR IGNORE INTO last_read_messages {_COLUMNS} VALUES {_VALUES}"

_UPSERT = (
    f"INSERT INTO last_read_messages {_COLUMNS} VALUES {_VALUES} "
    "ON CONFLICT DO UPDATE SET last_read = excluded.last_read "
    "WHERE last_read_messages.user_id = excluded.user_id "
    "AND last_read_messages.source_id = excluded.source_id"
)


def _params(user_id: int, source_id: int, last_read: int) -> dict[str, int]:
    return {"user_id": int(user_id), "source_id": int(source_id), "last_read": int(last_read)}


def insert_last_read_message(
    conn: sqlite3.Connection, user_id: int, source_id: int, last_read: int
) -> None:
    """Record a last-read marker unless one already exists."""
    conn.execute(_INSERT_IF_ABSENT, _params(user_id, source_id, last_read))


def set_last_read_message(
    conn: sqlite3.Connection, user_id: int, source_id: int, last_read: int
) -> None:
    """Record or overwrite a last-read marker."""
    conn.execute(_UPSERT, _params(user_id, source_id, last_read))