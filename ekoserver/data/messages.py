"""Queries on messages, both in frequencies and direct between users."""

from __future__ import annotations

import sqlite3
from typing import Any, Optional, Sequence

from ekoserver.data.models import Message, NotFound
from ekoserver.snowflake import ID

_COLUMNS = "id, sender_id, content, edited, frequency_id, receiver_id, ping"

_CREATE = f"""
INSERT INTO messages (
  id, content, sender_id, frequency_id, receiver_id, ping
) VALUES (
  ?, ?, ?, ?, ?, ?
)
RETURNING {_COLUMNS}
"""

_DELETE = "DELETE FROM messages WHERE id = ?"

_EDIT = f"""
UPDATE messages SET
  edited = true,
  content = ?
WHERE id = ?
RETURNING {_COLUMNS}
"""

_DIRECT = f"""
SELECT {_COLUMNS} FROM messages
WHERE
  (sender_id = ?1 AND receiver_id = ?2) OR
  (sender_id = ?2 AND receiver_id = ?1)
ORDER BY id
"""

_FREQUENCY = f"""
SELECT {_COLUMNS} FROM messages
WHERE frequency_id = ?
ORDER BY id
"""

_GET_BY_ID = f"SELECT {_COLUMNS} FROM messages WHERE id = ?"


def _optional_id(value: Optional[int]) -> Optional[ID]:
    return None if value is None else ID(value)


def _message(row: Sequence[Any]) -> Message:
    return Message(
        id=ID(row[0]),
        sender_id=ID(row[1]),
        content=row[2],
        edited=bool(row[3]),
        frequency_id=_optional_id(row[4]),
        receiver_id=_optional_id(row[5]),
        ping=_optional_id(row[6]),
    )


def _one(conn: sqlite3.Connection, query: str, params: Sequence[Any]) -> Message:
    rows = conn.execute(query, params).fetchall()
    if not rows:
        raise NotFound("message not found")
    return _message(rows[0])


def create_message(
    conn: sqlite3.Connection,
    message_id: int,
    content: str,
    sender_id: int,
    frequency_id: Optional[int],
    receiver_id: Optional[int],
    ping: Optional[int],
) -> Message:
    """Insert a message and return it."""
    return _one(
        conn, _CREATE, (message_id, content, sender_id, frequency_id, receiver_id, ping)
    )


def delete_message(conn: sqlite3.Connection, message_id: int) -> None:
    """Delete a message; deleting a missing one does nothing."""
    conn.execute(_DELETE, (message_id,))


def edit_message(conn: sqlite3.Connection, content: str, message_id: int) -> Message:
    """Replace a message's content and mark it edited; raises NotFound if missing."""
    return _one(conn, _EDIT, (content, message_id))


def get_direct_messages(
    conn: sqlite3.Connection, user1: int, user2: Optional[int]
) -> list[Message]:
    """Return the messages between two users in either direction, ordered by id."""
    return [_message(row) for row in conn.execute(_DIRECT, (user1, user2))]


def get_frequency_messages(
    conn: sqlite3.Connection, frequency_id: Optional[int]
) -> list[Message]:
    """Return the messages of a frequency ordered by id."""
    return [_message(row) for row in conn.execute(_FREQUENCY, (frequency_id,))]


def get_message_by_id(conn: sqlite3.Connection, message_id: int) -> Message:
    """Return a message; raises NotFound if there is none."""
    return _one(conn, _GET_BY_ID, (message_id,))