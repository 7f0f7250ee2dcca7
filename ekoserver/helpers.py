"""Request helpers: colour validation, admin checks, propagation and notifications."""

from __future__ import annotations

import logging
import sqlite3
import threading
from typing import Any, Callable, Iterable, Mapping

from ekoserver.data.members import MemberWithUser, filter_users_in_network, get_member_by_id
from ekoserver.data.models import Member, User
from ekoserver.payloads import NotificationsInfo, Payload
from ekoserver.snowflake import ID

logger = logging.getLogger(__name__)

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
PROPAGATION_TIMEOUT = 1.0

_NOTIFICATIONS = """
WITH
entries AS (
  SELECT source_id, last_read
  FROM last_read_messages
  WHERE user_id = ?
),
permitted_frequencies AS (
  SELECT f.id, m.is_admin
  FROM frequencies f
  JOIN entries e ON f.id = e.source_id
  LEFT JOIN members m
    ON m.user_id = ?
    AND m.network_id = f.network_id
  WHERE m.is_member = true AND (f.perms != 0 OR m.is_admin = true)
)
SELECT
  e.source_id, e.last_read,
  CASE
    WHEN COUNT(m.id) = 0 THEN NULL
    ELSE SUM(CASE WHEN (m.frequency_id IS NULL OR
      m.ping = 0 OR (m.ping = 1 AND pf.is_admin = true) OR m.ping = ?) THEN 1 ELSE 0 END)
  END AS pings
FROM entries e
LEFT JOIN permitted_frequencies pf ON e.source_id = pf.id
LEFT JOIN messages m ON m.id > e.last_read
  AND ((m.frequency_id = e.source_id AND pf.id IS NOT NULL) OR
    (m.receiver_id = e.source_id AND m.sender_id = ?) OR
    (m.sender_id = e.source_id AND m.receiver_id = ?))
GROUP BY e.source_id, e.last_read
"""


def validate_hex_color(color: str) -> str:
    """Return ``color`` if it is ``#`` followed by six hex digits; ValueError otherwise."""
    if len(color.encode("utf-8")) != 7:
        raise ValueError("color must be hex with length of 7")
    if not color.startswith("#"):
        raise ValueError("color must start with '#'")
    if not set(color[1:]) <= _HEX_DIGITS:
        raise ValueError("color must start with '#' and contain exactly 6 digits 0-9, a-f, A-F")
    return color


def is_network_admin(conn: sqlite3.Connection, user_id: int, network_id: int) -> bool:
    """Whether a user is a current, unbanned admin; raises NotFound for non-members."""
    member = get_member_by_id(conn, network_id, user_id)
    return member.is_admin and member.is_member and not member.is_banned


def _deliver(sess: Any, target: Any, payload: Payload) -> None:
    def run() -> None:
        if not target.write(payload, PROPAGATION_TIMEOUT):
            logger.warning("%s propagation to %s failed", sess.addr, target.addr)

    threading.Thread(target=run, name="propagate", daemon=True).start()


def network_propagate_with_filter(
    conn: sqlite3.Connection,
    sess: Any,
    network_id: int,
    payload: Payload,
    predicate: Callable[[ID], bool],
) -> Payload:
    """Send ``payload`` to the other connected users of a network that pass ``predicate``.

    Delivery happens in the background; ``payload`` is returned for the requester.
    """
    own_id = sess.id()
    candidates: list[ID] = []

    def collect(sessions: Mapping[ID, Any]) -> None:
        candidates.extend(uid for uid in sessions if uid != own_id and predicate(uid))

    sess.manager.use_sessions(collect)

    for user_id in filter_users_in_network(conn, network_id, candidates):
        target = sess.manager.session(user_id)
        if target is None:
            continue
        _deliver(sess, target, payload)
    return payload


def network_propagate(
    conn: sqlite3.Connection, sess: Any, network_id: int, payload: Payload
) -> Payload:
    """Send ``payload`` to every other connected user of a network."""
    return network_propagate_with_filter(conn, sess, network_id, payload, lambda _: True)


def split_members_and_users(
    rows: Iterable[MemberWithUser],
) -> tuple[list[Member], list[User]]:
    """Split joined rows into a list of members and a parallel list of users."""
    members: list[Member] = []
    users: list[User] = []
    for row in rows:
        members.append(row.member)
        users.append(row.user)
    return members, users


def user_propagate(sess: Any, user_id: int, payload: Payload) -> Payload:
    """Send ``payload`` to one user if connected; ``payload`` is returned either way."""
    target = sess.manager.session(user_id)
    if target is None:
        logger.info("%s propagation to user %s skipped: not connected", sess.addr, user_id)
        return payload
    _deliver(sess, target, payload)
    return payload


def get_notifications(conn: sqlite3.Connection, user_id: int) -> NotificationsInfo:
    """Return each read marker of a user with the number of unread pings since it.

    Pings are None when nothing new arrived in that source.
    """
    info = NotificationsInfo()
    for source, last_read, pings in conn.execute(_NOTIFICATIONS, (user_id,) * 5):
        info.source.append(ID(source))
        info.last_read.append(last_read)
        info.pings.append(pings)
    return info