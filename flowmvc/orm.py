"""A thin SQLite database adapter with explicit lifecycle management."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from urllib.parse import parse_qs

_TRUTHY = {"1", "true", "on", "yes"}


@dataclass
class DatabaseAdapter:
    """Holds an open SQLite connection; close it with ``close`` or ``with``."""

    connection: sqlite3.Connection | None
    dsn: str = ""

    def close(self) -> None:
        """Close the connection; closing twice does nothing."""
        if self.connection is None:
            return
        self.connection.close()
        self.connection = None

    def ping(self) -> None:
        """Check that the database answers a query."""
        if self.connection is None:
            raise ConnectionError("database adapter: not connected")
        self.connection.execute("SELECT 1").fetchone()

    def __enter__(self) -> DatabaseAdapter:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def connect(dsn: str) -> DatabaseAdapter:
    """Open a SQLite database; ``file:`` DSNs are treated as SQLite URIs.

    A ``_foreign_keys`` query parameter with a true value turns on
    foreign-key enforcement.
    """
    uri = dsn.startswith("file:")
    try:
        conn = sqlite3.connect(dsn, uri=uri)
    except sqlite3.Error as exc:
        raise ConnectionError(f"open sql: {exc}") from exc
    if uri:
        query = parse_qs(dsn.partition("?")[2])
        if any(v.lower() in _TRUTHY for v in query.get("_foreign_keys", [])):
            conn.execute("PRAGMA foreign_keys = ON")
    return DatabaseAdapter(connection=conn, dsn=dsn)