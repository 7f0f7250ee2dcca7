import time

import pytest

from ekoserver.snowflake import (
    EPOCH,
    NODE_MAX,
    NODE_SHIFT,
    TIME_SHIFT,
    Node,
    id_node,
    id_step,
    id_time,
)


def test_components_of_composed_id():
    snowflake_id = (5 << TIME_SHIFT) | (3 << NODE_SHIFT) | 7
    assert id_time(snowflake_id) == 5 + EPOCH
    assert id_node(snowflake_id) == 3
    assert id_step(snowflake_id) == 7


def test_generated_ids_are_unique_and_increasing():
    node = Node(1)
    ids = [node.generate() for _ in range(5000)]
    assert len(set(ids)) == len(ids)
    assert ids == sorted(ids)


def test_generated_id_carries_node_number():
    node = Node(NODE_MAX)
    assert id_node(node.generate()) == NODE_MAX


def test_generated_id_time_is_current():
    before = int(time.time() * 1000)
    generated = Node(0).generate()
    after = int(time.time() * 1000)
    assert before - 50 <= id_time(generated) <= after + 50


@pytest.mark.parametrize("bad_node", [-1, NODE_MAX + 1])
def test_node_out_of_range_rejected(bad_node):
    with pytest.raises(ValueError):
        Node(bad_node)


def test_step_restarts_in_new_millisecond():
    node = Node(2)
    first = node.generate()
    time.sleep(0.005)
    second = node.generate()
    assert id_step(second) == 0
    assert id_time(second) > id_time(first)