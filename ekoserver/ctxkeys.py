"""Request-scoped values (user id, peer address) and a log filter that reports them."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from enum import IntEnum
from typing import Any, Iterator


class ContextKey(IntEnum):
    """Keys of values carried through the handling of a connection."""

    USER_ID = 0
    IP_ADDR = 1

    def __str__(self) -> str:
        return self.name.lower()


_VARS: dict[ContextKey, ContextVar[Any]] = {
    key: ContextVar(f"ekoserver_{key}", default=None) for key in ContextKey
}


@contextmanager
def with_value(key: ContextKey, value: Any) -> Iterator[Any]:
    """Bind ``value`` to ``key`` for the duration of the ``with`` block."""
    var = _VARS[ContextKey(key)]
    token = var.set(value)
    try:
        yield value
    finally:
        var.reset(token)


def value(key: ContextKey) -> Any:
    """Return the value bound to ``key``, or None."""
    return _VARS[ContextKey(key)].get()


class ContextFilter(logging.Filter):
    """Adds every bound context value to log records as an attribute."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key in ContextKey:
            bound = value(key)
            if bound is not None:
                setattr(record, str(key), bound)
        return True


def wrap_log_handler(handler: logging.Handler) -> logging.Handler:
    """Attach a :class:`ContextFilter` to ``handler`` and return it."""
    handler.addFilter(ContextFilter())
    return handler