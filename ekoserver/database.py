"""The server's SQLite database: connection, pragmas and schema."""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_PATH = "server.db"

_PRAGMAS = (
    "PRAGMA journal_mode = WAL;",
    "PRAGMA synchronous = NORMAL;",
    "PRAGMA temp_store = MEMORY;",
    "PRAGMA mmap_size = 30000000000;",
)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  public_key BLOB NOT NULL UNIQUE,
  description TEXT NOT NULL DEFAULT '',
  is_public_dm BOOLEAN NOT NULL DEFAULT true,
  is_deleted BOOLEAN NOT NULL DEFAULT false
);

CREATE TABLE IF NOT EXISTS networks (
  id INTEGER PRIMARY KEY,
  owner_id INTEGER NOT NULL REFERENCES users(id),
  name TEXT NOT NULL,
  icon TEXT NOT NULL DEFAULT '',
  bg_hex_color TEXT NOT NULL DEFAULT '#000000',
  fg_hex_color TEXT NOT NULL DEFAULT '#FFFFFF',
  is_public BOOLEAN NOT NULL DEFAULT false
);

CREATE TABLE IF NOT EXISTS frequencies (
  id INTEGER PRIMARY KEY,
  network_id INTEGER NOT NULL REFERENCES networks(id) ON DELETE CASCADE,
  name TEXT NOT NULL,
  hex_color TEXT NOT NULL,
  perms INTEGER NOT NULL,
  position INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS frequencies_network ON frequencies(network_id, position);

CREATE TABLE IF NOT EXISTS members (
  user_id INTEGER NOT NULL REFERENCES users(id),
  network_id INTEGER NOT NULL REFERENCES networks(id) ON DELETE CASCADE,
  joined_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
  is_member BOOLEAN NOT NULL DEFAULT false,
  is_admin BOOLEAN NOT NULL DEFAULT false,
  is_muted BOOLEAN NOT NULL DEFAULT false,
  is_banned BOOLEAN NOT NULL DEFAULT false,
  ban_reason TEXT,
  PRIMARY KEY (user_id, network_id)
);
CREATE INDEX IF NOT EXISTS members_network ON members(network_id);

CREATE TABLE IF NOT EXISTS messages (
  id INTEGER PRIMARY KEY,
  sender_id INTEGER NOT NULL REFERENCES users(id),
  content TEXT NOT NULL,
  edited BOOLEAN NOT NULL DEFAULT false,
  frequency_id INTEGER REFERENCES frequencies(id) ON DELETE CASCADE,
  receiver_id INTEGER REFERENCES users(id),
  ping INTEGER
);
CREATE INDEX IF NOT EXISTS messages_frequency ON messages(frequency_id);
CREATE INDEX IF NOT EXISTS messages_direct ON messages(sender_id, receiver_id);

CREATE TABLE IF NOT EXISTS last_read_messages (
  user_id INTEGER NOT NULL,
  source_id INTEGER NOT NULL,
  last_read INTEGER NOT NULL,
  PRIMARY KEY (user_id, source_id)
);

CREATE TABLE IF NOT EXISTS trusted_users (
  trusting_user_id INTEGER NOT NULL REFERENCES users(id),
  trusted_user_id INTEGER NOT NULL REFERENCES users(id),
  trusted_public_key BLOB NOT NULL,
  PRIMARY KEY (trusting_user_id, trusted_user_id)
);

CREATE TABLE IF NOT EXISTS blocked_users (
  blocking_user_id INTEGER NOT NULL REFERENCES users(id),
  blocked_user_id INTEGER NOT NULL REFERENCES users(id),
  PRIMARY KEY (blocking_user_id, blocked_user_id)
);

CREATE TABLE IF NOT EXISTS user_data (
  user_id INTEGER PRIMARY KEY REFERENCES users(id),
  data TEXT NOT NULL
);
"""

_db: Optional[sqlite3.Connection] = None


def apply_schema(conn: sqlite3.Connection) -> None:
    """Create the tables on ``conn`` unless its schema is already current."""
    current = conn.execute("PRAGMA user_version").fetchone()[0]
    if current >= SCHEMA_VERSION:
        return
    try:
        conn.executescript(
            "BEGIN;" + _SCHEMA + f"PRAGMA user_version = {SCHEMA_VERSION};COMMIT;"
        )
    except sqlite3.Error:
        if conn.in_transaction:
            conn.rollback()
        raise


def connect_to_database(path: str = DEFAULT_PATH) -> sqlite3.Connection:
    """Open the database at ``path``, tune it, apply the schema and make it current."""
    global _db
    conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
    logger.info("established connection with the database")
    try:
        for pragma in _PRAGMAS:
            conn.execute(pragma).fetchall()
        logger.info("opened database, applying schema...")
        apply_schema(conn)
    except sqlite3.Error:
        conn.close()
        logger.exception("error preparing the database")
        raise
    _db = conn
    logger.info("database connection ready to be used")
    return conn


def db() -> sqlite3.Connection:
    """Return the connection opened by :func:`connect_to_database`."""
    if _db is None:
        raise RuntimeError("database is not connected")
    return _db