"""Timestamped SQL migrations tracked in a ``flow_migrations`` table.

Migration files live in one directory and are named like::

    20260108120000_create_users.up.sql
    20260108120000_create_users.down.sql

Up migrations are applied in ascending file-name order; the base name (the
file name without ``.up.sql``) is recorded once a migration has run.
"""

from __future__ import annotations

import os
import sqlite3
from pathlib import Path

UP_SUFFIX = ".up.sql"
DOWN_SUFFIX = ".down.sql"


class MigrationError(Exception):
    """Raised when migrations cannot be found, applied or rolled back."""


class MigrationRunner:
    """Applies and rolls back the SQL migrations of a directory."""

    def apply_all(self, directory: str | os.PathLike, db: sqlite3.Connection) -> None:
        """Apply every up migration not yet recorded as applied."""
        self._ensure_table(db)
        for path in self._collect(directory, UP_SUFFIX):
            base = path.name[: -len(UP_SUFFIX)]
            if self._is_applied(db, base):
                continue
            try:
                self._exec_file(db, path)
            except (sqlite3.Error, OSError) as exc:
                raise MigrationError(f"apply {path.name}: {exc}") from exc
            try:
                self._mark_applied(db, base)
            except sqlite3.Error as exc:
                raise MigrationError(f"mark applied {base}: {exc}") from exc

    def rollback_last(self, directory: str | os.PathLike, db: sqlite3.Connection) -> None:
        """Run the down migration of the most recently applied migration."""
        self._ensure_table(db)
        row = db.execute(
            "SELECT name FROM flow_migrations ORDER BY applied_at DESC, rowid DESC LIMIT 1"
        ).fetchone()
        if row is None:
            raise MigrationError(f"no applied migrations found in {directory}")
        base = row[0]

        down_path = Path(directory) / (base + DOWN_SUFFIX)
        if not down_path.exists():
            raise MigrationError(f"down migration not found for {base}: {down_path}")
        try:
            self._exec_file(db, down_path)
        except (sqlite3.Error, OSError) as exc:
            raise MigrationError(f"rollback {down_path.name}: {exc}") from exc
        try:
            self._unmark_applied(db, base)
        except sqlite3.Error as exc:
            raise MigrationError(f"unmark applied {base}: {exc}") from exc

    def apply_single(self, path: str | os.PathLike, db: sqlite3.Connection) -> None:
        """Run one migration file, recording it when it is an up migration."""
        file_path = Path(path)
        file_path.stat()
        if file_path.is_dir():
            raise MigrationError(f"path is a directory: {path}")
        self._exec_file(db, file_path)
        if file_path.name.endswith(UP_SUFFIX):
            self._ensure_table(db)
            self._mark_applied(db, file_path.name[: -len(UP_SUFFIX)])

    def list_migrations(self, directory: str | os.PathLike) -> list[str]:
        """Return the sorted paths of all up and down migrations below ``directory``."""
        root = os.fspath(directory)
        if not os.path.exists(root):
            raise FileNotFoundError(f"no such directory: {root}")
        suffixes = (UP_SUFFIX, DOWN_SUFFIX)
        if not os.path.isdir(root):
            return [root] if os.path.basename(root).endswith(suffixes) else []
        found = [
            os.path.join(dirpath, name)
            for dirpath, _, filenames in os.walk(root)
            for name in filenames
            if name.endswith(suffixes)
        ]
        return sorted(found)

    def applied_migrations(self, db: sqlite3.Connection) -> list[str]:
        """Return the names of applied migrations in the order they were applied."""
        self._ensure_table(db)
        rows = db.execute(
            "SELECT name FROM flow_migrations ORDER BY applied_at ASC, rowid ASC"
        ).fetchall()
        return [name for (name,) in rows]

    def pending_migrations(
        self, directory: str | os.PathLike, db: sqlite3.Connection
    ) -> list[str]:
        """Return the base names of up migrations that have not been applied."""
        self._ensure_table(db)
        bases = (path.name[: -len(UP_SUFFIX)] for path in self._collect(directory, UP_SUFFIX))
        return [base for base in bases if not self._is_applied(db, base)]

    @staticmethod
    def _collect(directory: str | os.PathLike, suffix: str) -> list[Path]:
        root = Path(directory)
        if not root.exists():
            raise MigrationError(f"migrations directory not found: {directory}")
        return sorted(
            (entry for entry in root.iterdir() if not entry.is_dir() and entry.name.endswith(suffix)),
            key=str,
        )

    @staticmethod
    def _exec_file(db: sqlite3.Connection, path: Path) -> None:
        sql_text = path.read_text(encoding="utf-8")
        try:
            db.executescript(f"BEGIN;\n{sql_text}\n;\nCOMMIT;")
        except sqlite3.Error:
            if db.in_transaction:
                db.rollback()
            raise

    @staticmethod
    def _ensure_table(db: sqlite3.Connection) -> None:
        db.execute(
            """CREATE TABLE IF NOT EXISTS flow_migrations (
        name TEXT PRIMARY KEY,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )"""
        )
        db.commit()

    @staticmethod
    def _is_applied(db: sqlite3.Connection, base: str) -> bool:
        (count,) = db.execute(
            "SELECT count(1) FROM flow_migrations WHERE name = ?", (base,)
        ).fetchone()
        return count > 0

    @staticmethod
    def _mark_applied(db: sqlite3.Connection, base: str) -> None:
        db.execute("INSERT INTO flow_migrations(name) VALUES (?)", (base,))
        db.commit()

    @staticmethod
    def _unmark_applied(db: sqlite3.Connection, base: str) -> None:
        db.execute("DELETE FROM flow_migrations WHERE name = ?", (base,))
        db.commit()