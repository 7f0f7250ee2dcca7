"""Queries on the users each user trusts and the users each user has blocked."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from ekoserver.data.models import NotFound
from ekoserver.snowflake import ID

_BLOCK = """
INSERT OR IGNORE INTO blocked_users (
  blocking_user_id, blocked_user_id
) VALUES (?, ?)
"""

_GET_BLOCKED = """
SELECT blocked_user_id FROM blocked_users
WHERE blocking_user_id = ?
"""

_GET_BLOCKING = """
SELECT blocking_user_id FROM blocked_users
WHERE blocked_user_id = ?
"""

_GET_TRUSTED_KEY = """
SELECT trusted_public_key FROM trusted_users
WHERE trusting_user_id = ? AND trusted_user_id = ?
"""

_GET_TRUSTED = """
SELECT trusted_user_id, trusted_public_key FROM trusted_users
WHERE trusting_user_id = ?
"""

_IS_BLOCKED = """
SELECT blocked_user_id FROM blocked_users
WHERE blocking_user_id = ? AND blocked_user_id = ?
"""

_TRUST = """
INSERT OR IGNORE INTO trusted_users (
  trusting_user_id, trusted_user_id, trusted_public_key
) VALUES (?, ?, ?)
"""

_UNBLOCK = """
DELETE FROM blocked_users
WHERE blocking_user_id = ? AND blocked_user_id = ?
"""

_UNTRUST = """
DELETE FROM trusted_users
WHERE trusting_user_id = ? AND trusted_user_id = ?
"""


@dataclass
class TrustedUserRow:
    """A trusted user together with the public key it was trusted under."""

    trusted_user_id: ID = ID(0)
    trusted_public_key: bytes = b""


def block_user(conn: sqlite3.Connection, blocking_user_id: int, blocked_user_id: int) -> None:
    """Record that one user blocks another; blocking twice does nothing."""
    conn.execute(_BLOCK, (blocking_user_id, blocked_user_id))


def get_blocked_users(conn: sqlite3.Connection, blocking_user_id: int) -> list[ID]:
    """Return the users blocked by ``blocking_user_id``."""
    return [ID(row[0]) for row in conn.execute(_GET_BLOCKED, (blocking_user_id,))]


def get_blocking_users(conn: sqlite3.Connection, blocked_user_id: int) -> list[ID]:
    """Return the users that block ``blocked_user_id``."""
    return [ID(row[0]) for row in conn.execute(_GET_BLOCKING, (blocked_user_id,))]


def get_trusted_public_key(
    conn: sqlite3.Connection, trusting_user_id: int, trusted_user_id: int
) -> bytes:
    """Return the key a user was trusted under; raises NotFound if not trusted."""
    row = conn.execute(_GET_TRUSTED_KEY, (trusting_user_id, trusted_user_id)).fetchone()
    if row is None:
        raise NotFound("user is not trusted")
    return bytes(row[0])


def get_trusted_users(conn: sqlite3.Connection, trusting_user_id: int) -> list[TrustedUserRow]:
    """Return every user trusted by ``trusting_user_id`` with its trusted key."""
    return [
        TrustedUserRow(trusted_user_id=ID(row[0]), trusted_public_key=bytes(row[1]))
        for row in conn.execute(_GET_TRUSTED, (trusting_user_id,))
    ]


def is_user_blocked(
    conn: sqlite3.Connection, blocking_user_id: int, blocked_user_id: int
) -> ID:
    """Return the blocked user's id if the block exists; raises NotFound otherwise."""
    row = conn.execute(_IS_BLOCKED, (blocking_user_id, blocked_user_id)).fetchone()
    if row is None:
        raise NotFound("user is not blocked")
    return ID(row[0])


def trust_user(
    conn: sqlite3.Connection,
    trusting_user_id: int,
    trusted_user_id: int,
    trusted_public_key: bytes,
) -> None:
    """Record trust in a user under a key; an existing trust is left unchanged."""
    conn.execute(_TRUST, (trusting_user_id, trusted_user_id, bytes(trusted_public_key)))


def unblock_user(conn: sqlite3.Connection, blocking_user_id: int, blocked_user_id: int) -> None:
    """Remove a block; removing a missing one does nothing."""
    conn.execute(_UNBLOCK, (blocking_user_id, blocked_user_id))


def untrust_user(conn: sqlite3.Connection, trusting_user_id: int, trusted_user_id: int) -> None:
    """Remove a trust; removing a missing one does nothing."""
    conn.execute(_UNTRUST, (trusting_user_id, trusted_user_id))