"""Queries on users and the opaque data each user stores on the server."""

from __future__ import annotations

import sqlite3
from typing import Any, Iterable, Sequence

from ekoserver.data.models import NotFound, User, UserData
from ekoserver.snowflake import ID

_COLUMNS = "id, name, public_key, description, is_public_dm, is_deleted"

_CREATE = f"""
INSERT INTO users (
  id, name, public_key
) VALUES (
  ?, ?, ?
)
RETURNING {_COLUMNS}
"""

_DELETE = """
UPDATE users SET
  is_deleted = true
WHERE id = ? AND is_deleted = false
"""

_GET_BY_ID = f"""
SELECT {_COLUMNS} FROM users
WHERE id = ? AND is_deleted = false
"""

_GET_BY_PUBLIC_KEY = f"""
SELECT {_COLUMNS} FROM users
WHERE public_key = ?
"""

_GET_DATA = """
SELECT data FROM user_data
WHERE user_id = ?
"""

_GET_BY_IDS = f"""
SELECT {_COLUMNS} FROM users
WHERE id IN ({{ids}})
"""

_SET_DATA = """
INSERT INTO user_data (
  user_id, data
) VALUES (
  ?1, ?2
)
ON CONFLICT DO
UPDATE SET
  user_id = EXCLUDED.user_id, data = EXCLUDED.data
WHERE user_id = EXCLUDED.user_id
RETURNING user_id, data
"""

_UPDATE = f"""
UPDATE users SET
  name = ?, description = ?, is_public_dm = ?
WHERE id = ?
RETURNING {_COLUMNS}
"""


def user_from_row(row: Sequence[Any]) -> User:
    """Build a User from a row in the standard column order."""
    return User(
        id=ID(row[0]),
        name=row[1],
        public_key=bytes(row[2]),
        description=row[3],
        is_public_dm=bool(row[4]),
        is_deleted=bool(row[5]),
    )


def _one(conn: sqlite3.Connection, query: str, params: Sequence[Any]) -> User:
    rows = conn.execute(query, params).fetchall()
    if not rows:
        raise NotFound("user not found")
    return user_from_row(rows[0])


def create_user(
    conn: sqlite3.Connection, user_id: int, name: str, public_key: bytes
) -> User:
    """Insert a user and return it."""
    return _one(conn, _CREATE, (user_id, name, bytes(public_key)))


def delete_user(conn: sqlite3.Connection, user_id: int) -> None:
    """Mark a user as deleted; the row itself is kept."""
    conn.execute(_DELETE, (user_id,))


def get_user_by_id(conn: sqlite3.Connection, user_id: int) -> User:
    """Return a user that is not deleted; raises NotFound otherwise."""
    return _one(conn, _GET_BY_ID, (user_id,))


def get_user_by_public_key(conn: sqlite3.Connection, public_key: bytes) -> User:
    """Return the user owning a public key, deleted or not; raises NotFound if none."""
    return _one(conn, _GET_BY_PUBLIC_KEY, (bytes(public_key),))


def get_user_data(conn: sqlite3.Connection, user_id: int) -> str:
    """Return the stored data of a user; raises NotFound if none was stored."""
    row = conn.execute(_GET_DATA, (user_id,)).fetchone()
    if row is None:
        raise NotFound("user data not found")
    return row[0]


def get_users_by_ids(conn: sqlite3.Connection, user_ids: Iterable[int]) -> list[User]:
    """Return the users among ``user_ids`` that exist, deleted ones included."""
    ids = list(user_ids)
    placeholders = ",".join("?" * len(ids)) if ids else "NULL"
    query = _GET_BY_IDS.format(ids=placeholders)
    return [user_from_row(row) for row in conn.execute(query, ids)]


def set_user_data(conn: sqlite3.Connection, user_id: int, data: str) -> UserData:
    """Store or replace the data of a user and return it."""
    row = conn.execute(_SET_DATA, (user_id, data)).fetchone()
    if row is None:
        raise NotFound("user data was not stored")
    return UserData(user_id=ID(row[0]), data=row[1])


def update_user(
    conn: sqlite3.Connection,
    name: str,
    description: str,
    is_public_dm: bool,
    user_id: int,
) -> User:
    """Change a user's profile; raises NotFound if the user is missing."""
    return _one(conn, _UPDATE, (name, description, bool(is_public_dm), user_id))