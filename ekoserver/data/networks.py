"""Queries on networks (servers)."""

from __future__ import annotations

import sqlite3
from typing import Any, Sequence

from ekoserver.data.models import Network, NotFound
from ekoserver.snowflake import ID

_COLUMNS = "id, owner_id, name, icon, bg_hex_color, fg_hex_color, is_public"

_CREATE = f"""
INSERT INTO networks (
  id, owner_id, name, is_public,
  icon, bg_hex_color, fg_hex_color
) VALUES (
  ?, ?, ?, ?,
  ?, ?, ?
)
RETURNING {_COLUMNS}
"""

_DELETE = "DELETE FROM networks WHERE id = ?"

_GET_BY_ID = f"SELECT {_COLUMNS} FROM networks WHERE id = ?"

_TRANSFER = f"""
UPDATE networks SET
  owner_id = ?
WHERE id = ?
RETURNING {_COLUMNS}
"""

_UPDATE = f"""
UPDATE networks SET
  name = ?, icon = ?,
  bg_hex_color = ?, fg_hex_color = ?,
  is_public = ?
WHERE id = ?
RETURNING {_COLUMNS}
"""


def network_from_row(row: Sequence[Any]) -> Network:
    """Build a Network from a row in the standard column order."""
    return Network(
        id=ID(row[0]),
        owner_id=ID(row[1]),
        name=row[2],
        icon=row[3],
        bg_hex_color=row[4],
        fg_hex_color=row[5],
        is_public=bool(row[6]),
    )


def _one(conn: sqlite3.Connection, query: str, params: Sequence[Any]) -> Network:
    rows = conn.execute(query, params).fetchall()
    if not rows:
        raise NotFound("network not found")
    return network_from_row(rows[0])


def create_network(
    conn: sqlite3.Connection,
    network_id: int,
    owner_id: int,
    name: str,
    is_public: bool,
    icon: str,
    bg_hex_color: str,
    fg_hex_color: str,
) -> Network:
    """Insert a network and return it."""
    return _one(
        conn,
        _CREATE,
        (network_id, owner_id, name, bool(is_public), icon, bg_hex_color, fg_hex_color),
    )


def delete_network(conn: sqlite3.Connection, network_id: int) -> None:
    """Delete a network; deleting a missing one does nothing."""
    conn.execute(_DELETE, (network_id,))


def get_network_by_id(conn: sqlite3.Connection, network_id: int) -> Network:
    """Return a network; raises NotFound if there is none."""
    return _one(conn, _GET_BY_ID, (network_id,))


def transfer_network(conn: sqlite3.Connection, owner_id: int, network_id: int) -> Network:
    """Give a network a new owner; raises NotFound if it is missing."""
    return _one(conn, _TRANSFER, (owner_id, network_id))


def update_network(
    conn: sqlite3.Connection,
    name: str,
    icon: str,
    bg_hex_color: str,
    fg_hex_color: str,
    is_public: bool,
    network_id: int,
) -> Network:
    """Change a network's settings; raises NotFound if it is missing."""
    return _one(
        conn,
        _UPDATE,
        (name, icon, bg_hex_color, fg_hex_color, bool(is_public), network_id),
    )