import sqlite3

import pytest

from ekoserver.data import social
from ekoserver.data.models import NotFound
from ekoserver.data.users import create_user
from ekoserver.database import apply_schema

ALICE = 10
BOB = 11
CAROL = 12
ALICE_KEY = b"\x01" * 32
BOB_KEY = b"\x02" * 32
CAROL_KEY = b"\x03" * 32


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:", isolation_level=None)
    apply_schema(connection)
    create_user(connection, ALICE, "alice", ALICE_KEY)
    create_user(connection, BOB, "bob", BOB_KEY)
    create_user(connection, CAROL, "carol", CAROL_KEY)
    yield connection
    connection.close()


def test_block_and_query(conn):
    social.block_user(conn, ALICE, BOB)
    social.block_user(conn, CAROL, BOB)
    assert social.get_blocked_users(conn, ALICE) == [BOB]
    assert sorted(social.get_blocking_users(conn, BOB)) == [ALICE, CAROL]
    assert social.get_blocked_users(conn, BOB) == []


def test_block_twice_is_idempotent(conn):
    social.block_user(conn, ALICE, BOB)
    social.block_user(conn, ALICE, BOB)
    assert social.get_blocked_users(conn, ALICE) == [BOB]


def test_is_user_blocked_returns_blocked_id(conn):
    social.block_user(conn, ALICE, BOB)
    assert social.is_user_blocked(conn, ALICE, BOB) == BOB


def test_is_user_blocked_is_directional(conn):
    social.block_user(conn, ALICE, BOB)
    with pytest.raises(NotFound):
        social.is_user_blocked(conn, BOB, ALICE)


def test_unblock_removes_block(conn):
    social.block_user(conn, ALICE, BOB)
    social.unblock_user(conn, ALICE, BOB)
    with pytest.raises(NotFound):
        social.is_user_blocked(conn, ALICE, BOB)
    assert social.get_blocking_users(conn, BOB) == []


def test_trust_and_get_key(conn):
    social.trust_user(conn, ALICE, BOB, BOB_KEY)
    assert social.get_trusted_public_key(conn, ALICE, BOB) == BOB_KEY


def test_trust_keeps_first_key(conn):
    social.trust_user(conn, ALICE, BOB, BOB_KEY)
    social.trust_user(conn, ALICE, BOB, CAROL_KEY)
    assert social.get_trusted_public_key(conn, ALICE, BOB) == BOB_KEY


def test_get_trusted_users(conn):
    social.trust_user(conn, ALICE, BOB, BOB_KEY)
    social.trust_user(conn, ALICE, CAROL, CAROL_KEY)
    rows = sorted(social.get_trusted_users(conn, ALICE), key=lambda r: r.trusted_user_id)
    assert rows == [
        social.TrustedUserRow(trusted_user_id=BOB, trusted_public_key=BOB_KEY),
        social.TrustedUserRow(trusted_user_id=CAROL, trusted_public_key=CAROL_KEY),
    ]
    assert social.get_trusted_users(conn, BOB) == []


def test_untrust_removes_trust(conn):
    social.trust_user(conn, ALICE, BOB, BOB_KEY)
    social.untrust_user(conn, ALICE, BOB)
    with pytest.raises(NotFound):
        social.get_trusted_public_key(conn, ALICE, BOB)


def test_missing_trust_raises(conn):
    with pytest.raises(NotFound):
        social.get_trusted_public_key(conn, BOB, ALICE)