import sqlite3

import pytest

from ekoserver.data.frequencies import (
    create_frequency,
    delete_frequency,
    get_frequency_by_id,
    get_network_frequencies,
    swap_frequencies,
    update_frequency,
)
from ekoserver.data.models import NotFound
from ekoserver.database import apply_schema


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:", isolation_level=None)
    apply_schema(connection)
    yield connection
    connection.close()


def test_create_returns_fields(conn):
    freq = create_frequency(conn, 11, 100, "main", "#FFFFFF", 2)
    assert (freq.id, freq.network_id, freq.name, freq.hex_color, freq.perms) == (
        11,
        100,
        "main",
        "#FFFFFF",
        2,
    )


def test_positions_increase_per_network(conn):
    created = [create_frequency(conn, i, 100, f"f{i}", "#000000", 1) for i in (1, 2, 3)]
    assert [f.position for f in created] == [0, 1, 2]
    other = create_frequency(conn, 9, 200, "other", "#000000", 1)
    assert other.position == created[0].position


def test_get_by_id_round_trip(conn):
    freq = create_frequency(conn, 5, 100, "talk", "#abcdef", 1)
    assert get_frequency_by_id(conn, 5) == freq


def test_get_missing_raises(conn):
    with pytest.raises(NotFound):
        get_frequency_by_id(conn, 404)


def test_network_frequencies_only_that_network(conn):
    a = create_frequency(conn, 1, 100, "a", "#000000", 1)
    create_frequency(conn, 2, 200, "x", "#000000", 1)
    b = create_frequency(conn, 3, 100, "b", "#000000", 1)
    assert get_network_frequencies(conn, 100) == [a, b]
    assert get_network_frequencies(conn, 300) == []


def test_swap_frequencies(conn):
    a = create_frequency(conn, 1, 100, "a", "#000000", 1)
    create_frequency(conn, 2, 100, "b", "#000000", 1)
    c = create_frequency(conn, 3, 100, "c", "#000000", 1)
    swap_frequencies(conn, a.position, c.position, 100)
    assert [f.name for f in get_network_frequencies(conn, 100)] == ["c", "b", "a"]
    assert get_frequency_by_id(conn, 1).position == c.position


def test_swap_leaves_other_network(conn):
    x = create_frequency(conn, 1, 200, "x", "#000000", 1)
    create_frequency(conn, 2, 100, "a", "#000000", 1)
    create_frequency(conn, 3, 100, "b", "#000000", 1)
    swap_frequencies(conn, 0, 1, 100)
    assert get_frequency_by_id(conn, 1) == x


def test_update_frequency(conn):
    freq = create_frequency(conn, 7, 100, "old", "#000000", 1)
    updated = update_frequency(conn, "new", "#123456", 0, 7)
    assert (updated.name, updated.hex_color, updated.perms) == ("new", "#123456", 0)
    assert updated.position == freq.position
    assert get_frequency_by_id(conn, 7) == updated


def test_update_missing_raises(conn):
    with pytest.raises(NotFound):
        update_frequency(conn, "n", "#000000", 1, 404)


def test_delete_frequency(conn):
    create_frequency(conn, 8, 100, "gone", "#000000", 1)
    delete_frequency(conn, 8)
    with pytest.raises(NotFound):
        get_frequency_by_id(conn, 8)