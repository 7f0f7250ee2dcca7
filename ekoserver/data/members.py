"""Queries on the membership of users in networks."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from ekoserver.data.models import Member, Network, NotFound, User
from ekoserver.data.networks import network_from_row
from ekoserver.data.users import user_from_row
from ekoserver.snowflake import ID

_MEMBER_COLUMNS = (
    "user_id, network_id, joined_at, is_member, is_admin, is_muted, is_banned, ban_reason"
)

_JOINED_COLUMNS = """
  users.id, users.name, users.public_key, users.description, users.is_public_dm,
  users.is_deleted,
  members.user_id, members.network_id, members.joined_at, members.is_member,
  members.is_admin, members.is_muted, members.is_banned, members.ban_reason
"""

_FILTER_USERS = """
SELECT user_id FROM members
WHERE network_id = ? AND user_id IN ({users})
"""

_BANNED = f"""
SELECT {_JOINED_COLUMNS}
FROM members
JOIN users ON users.id = members.user_id
WHERE network_id = ? AND is_banned = true
"""

_GET_BY_ID = f"""
SELECT {_MEMBER_COLUMNS} FROM members
WHERE network_id = ? AND user_id = ?
"""

_NETWORK_MEMBERS = f"""
SELECT {_JOINED_COLUMNS}
FROM members
JOIN users ON users.id = members.user_id
WHERE network_id = ? AND is_member = true
"""

_USER_NETWORKS = """
SELECT networks.id, networks.owner_id, networks.name, networks.icon,
  networks.bg_hex_color, networks.fg_hex_color, networks.is_public
FROM networks
JOIN members ON networks.id = members.network_id
WHERE members.user_id = ? AND members.is_member = true
"""

_SET = f"""
INSERT INTO members (
  user_id, network_id,
  is_member, is_admin, is_muted,
  is_banned, ban_reason
) VALUES (
  ?1, ?2,
  ?3, ?4, ?5,
  ?6, ?7
)
ON CONFLICT DO
UPDATE SET
  is_member = EXCLUDED.is_member, is_admin = EXCLUDED.is_admin,
  is_muted = EXCLUDED.is_muted,
  is_banned = EXCLUDED.is_banned, ban_reason = EXCLUDED.ban_reason
WHERE user_id = EXCLUDED.user_id AND network_id = EXCLUDED.network_id
RETURNING {_MEMBER_COLUMNS}
"""


@dataclass
class MemberWithUser:
    """A membership row joined with the user it belongs to."""

    user: User = field(default_factory=User)
    member: Member = field(default_factory=Member)


def _member(row: Sequence[Any]) -> Member:
    return Member(
        user_id=ID(row[0]),
        network_id=ID(row[1]),
        joined_at=row[2],
        is_member=bool(row[3]),
        is_admin=bool(row[4]),
        is_muted=bool(row[5]),
        is_banned=bool(row[6]),
        ban_reason=row[7],
    )


def _member_with_user(row: Sequence[Any]) -> MemberWithUser:
    return MemberWithUser(user=user_from_row(row[:6]), member=_member(row[6:]))


def filter_users_in_network(
    conn: sqlite3.Connection, network_id: int, users: Iterable[int]
) -> list[ID]:
    """Return those of ``users`` that have a membership row in the network."""
    ids = list(users)
    placeholders = ",".join("?" * len(ids)) if ids else "NULL"
    query = _FILTER_USERS.format(users=placeholders)
    return [ID(row[0]) for row in conn.execute(query, [network_id, *ids])]


def get_banned_members(conn: sqlite3.Connection, network_id: int) -> list[MemberWithUser]:
    """Return the banned members of a network with their users."""
    return [_member_with_user(row) for row in conn.execute(_BANNED, (network_id,))]


def get_member_by_id(conn: sqlite3.Connection, network_id: int, user_id: int) -> Member:
    """Return the membership of a user in a network; raises NotFound if none."""
    row = conn.execute(_GET_BY_ID, (network_id, user_id)).fetchone()
    if row is None:
        raise NotFound("member not found")
    return _member(row)


def get_network_members(conn: sqlite3.Connection, network_id: int) -> list[MemberWithUser]:
    """Return the current members of a network with their users."""
    return [_member_with_user(row) for row in conn.execute(_NETWORK_MEMBERS, (network_id,))]


def get_user_networks(conn: sqlite3.Connection, user_id: int) -> list[Network]:
    """Return the networks a user is currently a member of."""
    return [network_from_row(row) for row in conn.execute(_USER_NETWORKS, (user_id,))]


def set_member(
    conn: sqlite3.Connection,
    user_id: int,
    network_id: int,
    is_member: bool,
    is_admin: bool,
    is_muted: bool,
    is_banned: bool,
    ban_reason: Optional[str],
) -> Member:
    """Insert or update the membership of a user in a network and return it."""
    row = conn.execute(
        _SET,
        (
            user_id,
            network_id,
            bool(is_member),
            bool(is_admin),
            bool(is_muted),
            bool(is_banned),
            ban_reason,
        ),
    ).fetchone()
    if row is None:
        raise NotFound("member was not stored")
    return _member(row)