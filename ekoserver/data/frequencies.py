"""Queries on the frequencies (channels) of a network."""

from __future__ import annotations

import sqlite3
from typing import Any, Sequence

from ekoserver.data.models import Frequency, NotFound
from ekoserver.snowflake import ID

_COLUMNS = "id, network_id, name, hex_color, perms, position"

_CREATE = f"""
INSERT INTO frequencies (
  id, network_id,
  name, hex_color,
  perms, position
) VALUES (
  ?1, ?2, ?3, ?4, ?5,
  (SELECT COUNT(*) FROM frequencies WHERE network_id = ?2)
)
RETURNING {_COLUMNS}
"""

_DELETE = "DELETE FROM frequencies WHERE id = ?"

_GET_BY_ID = f"SELECT {_COLUMNS} FROM frequencies WHERE id = ?"

_GET_NETWORK = f"""
SELECT {_COLUMNS} FROM frequencies
WHERE network_id = ?
ORDER BY position
"""

_SWAP = """
UPDATE frequencies SET
  position = CASE
    WHEN position = ?1 THEN ?2
    WHEN position = ?2 THEN ?1
  END
WHERE network_id = ?3 AND position IN (?1, ?2)
"""

_UPDATE = f"""
UPDATE frequencies SET
  name = ?, hex_color = ?, perms = ?
WHERE id = ?
RETURNING {_COLUMNS}
"""


def _frequency(row: Sequence[Any]) -> Frequency:
    return Frequency(
        id=ID(row[0]),
        network_id=ID(row[1]),
        name=row[2],
        hex_color=row[3],
        perms=row[4],
        position=row[5],
    )


def _one(conn: sqlite3.Connection, query: str, params: Sequence[Any]) -> Frequency:
    rows = conn.execute(query, params).fetchall()
    if not rows:
        raise NotFound("frequency not found")
    return _frequency(rows[0])


def create_frequency(
    conn: sqlite3.Connection,
    frequency_id: int,
    network_id: int,
    name: str,
    hex_color: str,
    perms: int,
) -> Frequency:
    """Insert a frequency at the end of its network's list and return it."""
    return _one(conn, _CREATE, (frequency_id, network_id, name, hex_color, perms))


def delete_frequency(conn: sqlite3.Connection, frequency_id: int) -> None:
    """Delete a frequency; deleting a missing one does nothing."""
    conn.execute(_DELETE, (frequency_id,))


def get_frequency_by_id(conn: sqlite3.Connection, frequency_id: int) -> Frequency:
    """Return a frequency; raises NotFound if there is none."""
    return _one(conn, _GET_BY_ID, (frequency_id,))


def get_network_frequencies(conn: sqlite3.Connection, network_id: int) -> list[Frequency]:
    """Return the frequencies of a network ordered by position."""
    return [_frequency(row) for row in conn.execute(_GET_NETWORK, (network_id,))]


def swap_frequencies(conn: sqlite3.Connection, pos1: int, pos2: int, network_id: int) -> None:
    """Exchange the positions of two frequencies of a network."""
    conn.execute(_SWAP, (pos1, pos2, network_id))


def update_frequency(
    conn: sqlite3.Connection,
    name: str,
    hex_color: str,
    perms: int,
    frequency_id: int,
) -> Frequency:
    """Change a frequency's name, colour and perms; raises NotFound if missing."""
    return _one(conn, _UPDATE, (name, hex_color, perms, frequency_id))