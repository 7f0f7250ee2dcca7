"""Snowflake identifiers: 64-bit ids made of a timestamp, a node number and a step."""

from __future__ import annotations

import threading
import time
from typing import NewType

ID = NewType("ID", int)

# Milliseconds since the Unix epoch at which snowflake time starts.
EPOCH = 1288834974657
NODE_BITS = 10
STEP_BITS = 12
NODE_MAX = (1 << NODE_BITS) - 1
NODE_MASK = NODE_MAX << STEP_BITS
STEP_MASK = (1 << STEP_BITS) - 1
TIME_SHIFT = NODE_BITS + STEP_BITS
NODE_SHIFT = STEP_BITS

INVALID_ID = ID(0)


def id_time(snowflake_id: int) -> int:
    """Return the creation time of an id in milliseconds since the Unix epoch."""
    return (int(snowflake_id) >> TIME_SHIFT) + EPOCH


def id_node(snowflake_id: int) -> int:
    """Return the node number that generated an id."""
    return (int(snowflake_id) & NODE_MASK) >> NODE_SHIFT


def id_step(snowflake_id: int) -> int:
    """Return the per-millisecond sequence number of an id."""
    return int(snowflake_id) & STEP_MASK


class Node:
    """Generates unique ids; each node number must be unique to guarantee that."""

    def __init__(self, node: int) -> None:
        if not 0 <= node <= NODE_MAX:
            raise ValueError(f"node must be within 0 and {NODE_MAX}, got {node}")
        self._node = node
        self._lock = threading.Lock()
        # Anchor wall-clock time once and advance with the monotonic clock.
        self._origin_ms = time.time_ns() // 1_000_000 - EPOCH
        self._origin_mono = time.monotonic_ns()
        self._time = 0
        self._step = 0

    def _now(self) -> int:
        return self._origin_ms + (time.monotonic_ns() - self._origin_mono) // 1_000_000

    def generate(self) -> ID:
        """Return a new id, unique for this node."""
        with self._lock:
            now = self._now()
            if now == self._time:
                self._step = (self._step + 1) & STEP_MASK
                while self._step == 0 and now <= self._time:
                    now = self._now()
            else:
                self._step = 0
            self._time = now
            return ID((now << TIME_SHIFT) | (self._node << NODE_SHIFT) | self._step)

    def __repr__(self) -> str:
        return f"Node{self._node}(step: {self._step}, time: {self._time})"