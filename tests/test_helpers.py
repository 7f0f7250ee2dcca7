import sqlite3
import threading

import pytest

from ekoserver import helpers
from ekoserver.data.frequencies import create_frequency
from ekoserver.data.members import MemberWithUser, set_member
from ekoserver.data.messages import create_message
from ekoserver.data.models import Member, NotFound, User
from ekoserver.data.networks import create_network
from ekoserver.data.notifications import insert_last_read_message, set_last_read_message
from ekoserver.data.users import create_user
from ekoserver.database import apply_schema
from ekoserver.payloads import Error, PERM_NO_ACCESS, PERM_READ_WRITE
from ekoserver.session import Session
from ekoserver.snowflake import ID

OWNER = ID(10)
MEMBER = ID(11)
OUTSIDER = ID(12)
NETWORK = ID(100)


class FakeSession:
    def __init__(self, addr, accept=True):
        self.addr = addr
        self.accept = accept
        self.received = []
        self.delivered = threading.Event()

    def write(self, payload, timeout=None):
        self.received.append(payload)
        self.delivered.set()
        return self.accept


class FakeManager:
    def __init__(self):
        self.sessions = {}

    def session(self, user_id):
        return self.sessions.get(user_id)

    def use_sessions(self, func):
        func(self.sessions)


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:", isolation_level=None)
    apply_schema(connection)
    create_user(connection, OWNER, "owner", b"\x01" * 32)
    create_user(connection, MEMBER, "member", b"\x02" * 32)
    create_user(connection, OUTSIDER, "outsider", b"\x03" * 32)
    create_network(connection, NETWORK, OWNER, "net", True, "", "#000000", "#FFFFFF")
    set_member(connection, OWNER, NETWORK, True, True, False, False, None)
    set_member(connection, MEMBER, NETWORK, True, False, False, False, None)
    yield connection
    connection.close()


@pytest.fixture
def setup():
    manager = FakeManager()
    sender = Session(manager, ("127.0.0.1", 4000), lambda: None)
    sender.promote(OWNER, b"\x01" * 32)
    member = FakeSession(("127.0.0.1", 4001))
    outsider = FakeSession(("127.0.0.1", 4002))
    manager.sessions = {OWNER: sender, MEMBER: member, OUTSIDER: outsider}
    return sender, member, outsider


@pytest.mark.parametrize("color", ["#1a2B3c", "#FFFFFF", "#000000"])
def test_valid_hex_colors(color):
    assert helpers.validate_hex_color(color) == color


@pytest.mark.parametrize(
    "color, message",
    [
        ("#12345", "length of 7"),
        ("#1234567", "length of 7"),
        ("1234567", "must start with '#'"),
        ("#12345g", "exactly 6 digits"),
    ],
)
def test_invalid_hex_colors(color, message):
    with pytest.raises(ValueError, match=message):
        helpers.validate_hex_color(color)


def test_is_network_admin(conn):
    assert helpers.is_network_admin(conn, OWNER, NETWORK) is True
    assert helpers.is_network_admin(conn, MEMBER, NETWORK) is False


def test_banned_admin_is_not_admin(conn):
    set_member(conn, MEMBER, NETWORK, False, True, False, True, "")
    assert helpers.is_network_admin(conn, MEMBER, NETWORK) is False


def test_is_network_admin_for_non_member_raises(conn):
    with pytest.raises(NotFound):
        helpers.is_network_admin(conn, OUTSIDER, NETWORK)


def test_network_propagate_reaches_members_only(conn, setup):
    sender, member, outsider = setup
    payload = Error(error="hello")
    assert helpers.network_propagate(conn, sender, NETWORK, payload) is payload
    assert member.delivered.wait(2)
    assert member.received == [payload]
    assert outsider.received == []
    sender.close_write_queue()
    assert list(sender.read()) == []


def test_network_propagate_with_filter_skips_rejected(conn, setup):
    sender, member, _ = setup
    payload = Error(error="filtered")
    result = helpers.network_propagate_with_filter(
        conn, sender, NETWORK, payload, lambda uid: uid != MEMBER
    )
    assert result is payload
    assert not member.delivered.wait(0.1)
    assert member.received == []


def test_user_propagate_delivers(setup):
    sender, member, _ = setup
    payload = Error(error="direct")
    assert helpers.user_propagate(sender, MEMBER, payload) is payload
    assert member.delivered.wait(2)
    assert member.received == [payload]


def test_user_propagate_to_missing_user_returns_payload(setup):
    sender, _, _ = setup
    payload = Error(error="nobody")
    assert helpers.user_propagate(sender, ID(999), payload) is payload


def test_split_members_and_users():
    rows = [
        MemberWithUser(user=User(id=ID(1), name="a"), member=Member(user_id=ID(1))),
        MemberWithUser(user=User(id=ID(2), name="b"), member=Member(user_id=ID(2))),
    ]
    members, users = helpers.split_members_and_users(rows)
    assert [m.user_id for m in members] == [1, 2]
    assert [u.name for u in users] == ["a", "b"]


def test_split_members_and_users_empty():
    assert helpers.split_members_and_users([]) == ([], [])


def test_notifications_direct_messages(conn):
    create_message(conn, 500, "hi", OWNER, None, MEMBER, None)
    insert_last_read_message(conn, MEMBER, OWNER, 0)
    info = helpers.get_notifications(conn, MEMBER)
    assert info.source == [OWNER]
    assert info.last_read == [0]
    assert info.pings == [1]


def test_notifications_nothing_new_is_none(conn):
    create_message(conn, 500, "hi", OWNER, None, MEMBER, None)
    set_last_read_message(conn, MEMBER, OWNER, 500)
    info = helpers.get_notifications(conn, MEMBER)
    assert info.source == [OWNER]
    assert info.last_read == [500]
    assert info.pings == [None]


def test_notifications_frequency_pings(conn):
    create_frequency(conn, 200, NETWORK, "main", "#FFFFFF", PERM_READ_WRITE)
    create_frequency(conn, 201, NETWORK, "hidden", "#FFFFFF", PERM_NO_ACCESS)
    create_message(conn, 501, "plain", OWNER, 200, None, None)
    create_message(conn, 502, "everyone", OWNER, 200, None, 0)
    create_message(conn, 503, "you", OWNER, 200, None, MEMBER)
    create_message(conn, 504, "admins", OWNER, 200, None, 1)
    create_message(conn, 505, "secret", OWNER, 201, None, 0)
    insert_last_read_message(conn, MEMBER, 200, 0)
    insert_last_read_message(conn, MEMBER, 201, 0)
    info = helpers.get_notifications(conn, MEMBER)
    pings = dict(zip(info.source, info.pings))
    assert pings == {200: 2, 201: None}


def test_notifications_without_markers(conn):
    info = helpers.get_notifications(conn, OUTSIDER)
    assert (info.source, info.last_read, info.pings) == ([], [], [])