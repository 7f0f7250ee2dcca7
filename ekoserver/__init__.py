"""Chat server core: snowflake IDs, wire packets and payloads, sessions and SQLite storage."""

__version__ = "0.1.0"