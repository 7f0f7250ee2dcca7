"""Per-connection session state: authentication, challenge nonce and write queue."""

from __future__ import annotations

import secrets
import threading
import time
from collections import deque
from typing import Any, Callable, Iterator, Mapping, Optional, Protocol

from ekoserver.snowflake import ID, INVALID_ID, Node

WRITE_QUEUE_SIZE = 10
NONCE_SIZE = 32
CHALLENGE_LIFETIME = 60.0


class SessionManager(Protocol):
    """What a session needs from the server that owns it."""

    def add_session(self, session: Session, user_id: ID, pub_key: bytes) -> None:
        """Register an authenticated session, evicting any older one for the user."""

    def remove_session(self, user_id: ID) -> None:
        """Forget the session of a user."""

    def session(self, user_id: ID) -> Optional[Session]:
        """Return the session of a user, if connected."""

    def use_sessions(self, func: Callable[[Mapping[ID, Session]], Any]) -> None:
        """Call ``func`` with the mapping of connected sessions while it is locked."""

    def node(self) -> Node:
        """Return the id generator of the server."""


class Session:
    """State of one client connection."""

    def __init__(self, manager: SessionManager, addr: Any, cancel: Callable[[], None]) -> None:
        if manager is None:
            raise ValueError("session manager should be valid")
        if addr is None:
            raise ValueError("address should be valid")
        self.manager = manager
        self.addr = addr
        self._cancel = cancel

        self._queue: deque[Any] = deque()
        self._cond = threading.Condition()
        self._closed = False

        self._challenge_lock = threading.Lock()
        self._challenge = bytes(NONCE_SIZE)
        self._issued: Optional[float] = None

        self._tos_accepted = False
        self._pub_key = b""
        self._id: ID = INVALID_ID

    def is_tos_accepted(self) -> bool:
        return self._tos_accepted

    def receive_tos_acceptance(self) -> None:
        self._tos_accepted = True

    def is_authenticated(self) -> bool:
        return self._id != INVALID_ID

    def id(self) -> ID:
        """Return the user id; the session must be authenticated."""
        if not self.is_authenticated():
            raise RuntimeError(f"use of id in an unauthenticated session ({self.addr})")
        return self._id

    def pub_key(self) -> bytes:
        """Return the user's public key; the session must be authenticated."""
        if not self.is_authenticated():
            raise RuntimeError(f"use of pub_key in an unauthenticated session ({self.addr})")
        return self._pub_key

    def promote(self, user_id: ID, pub_key: bytes) -> None:
        """Mark the session as authenticated as ``user_id``."""
        self._id = user_id
        self._pub_key = bytes(pub_key)

    def challenge(self) -> bytes:
        """Return the current nonce, issuing a fresh one once the old one is a minute old."""
        with self._challenge_lock:
            now = time.monotonic()
            if self._issued is None or now - self._issued > CHALLENGE_LIFETIME:
                self._issued = now
                self._challenge = secrets.token_bytes(NONCE_SIZE)
            return self._challenge

    def write(self, payload: Any, timeout: Optional[float] = None) -> bool:
        """Queue ``payload`` for sending; False if the queue stayed full or is closed."""
        with self._cond:
            ready = self._cond.wait_for(
                lambda: self._closed or len(self._queue) < WRITE_QUEUE_SIZE, timeout
            )
            if not ready or self._closed:
                return False
            self._queue.append(payload)
            self._cond.notify_all()
            return True

    def read(self) -> Iterator[Any]:
        """Yield queued payloads until the queue is closed and drained."""
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._queue or self._closed)
                if not self._queue:
                    return
                payload = self._queue.popleft()
                self._cond.notify_all()
            yield payload

    def close_write_queue(self) -> None:
        """Stop accepting writes; readers finish after draining what is queued."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def close(self) -> None:
        """Cancel the connection this session belongs to."""
        self._cancel()