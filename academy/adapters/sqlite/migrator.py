"""
Schema migrations for the academy database.

Each ``migrations/NNNN_name.sql`` file holds an ``-- Up`` section and an
optional ``-- Down`` section; only the Up part is ever executed. Applied
files are recorded in ``_migrations`` together with a checksum of the Up
script, so an edited migration shows up in the logs instead of silently
diverging from the schema it produced.
"""

import hashlib
import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DOWN_MARKER = "-- Down"


@dataclass(frozen=True)
class Migration:
    filename: str
    up_sql: str

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.up_sql.encode("utf-8")).hexdigest()

    @classmethod
    def from_file(cls, path: Path) -> "Migration":
        text = path.read_text(encoding="utf-8")
        return cls(filename=path.name, up_sql=text.split(DOWN_MARKER, 1)[0])


class SQLiteMigrator:
    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = Path(db_path)
        self.migrations_dir = Path(migrations_dir)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute(
            "CREATE TABLE IF NOT EXISTS _migrations ("
            " filename TEXT PRIMARY KEY,"
            " checksum TEXT NOT NULL,"
            " applied_at TEXT NOT NULL DEFAULT (datetime('now'))"
            ")"
        )
        return conn

    def discover(self) -> list[Migration]:
        if not self.migrations_dir.is_dir():
            raise FileNotFoundError(f"Migrations directory not found: {self.migrations_dir}")
        return [Migration.from_file(p) for p in sorted(self.migrations_dir.glob("*.sql"))]

    def applied(self) -> dict[str, str]:
        """filename -> checksum for every recorded migration."""
        conn = self._connect()
        try:
            return dict(conn.execute("SELECT filename, checksum FROM _migrations").fetchall())
        finally:
            conn.close()

    def pending(self) -> list[str]:
        done = self.applied()
        pending = []
        for migration in self.discover():
            recorded = done.get(migration.filename)
            if recorded is None:
                pending.append(migration.filename)
            elif recorded != migration.checksum:
                logger.warning("Migration %s changed after it was applied", migration.filename)
        return pending

    def run_migrations(self) -> list[str]:
        """Apply every pending migration in filename order; returns the filenames applied."""
        wanted = set(self.pending())
        todo = [m for m in self.discover() if m.filename in wanted]
        if not todo:
            return []

        conn = self._connect()
        try:
            for migration in todo:
                logger.info("Applying migration %s", migration.filename)
                try:
                    conn.executescript(migration.up_sql)
                    conn.execute(
                        "INSERT INTO _migrations (filename, checksum) VALUES (?, ?)",
                        (migration.filename, migration.checksum),
                    )
                    conn.commit()
                except sqlite3.Error as e:
                    conn.rollback()
                    raise RuntimeError(f"Migration {migration.filename} failed: {e}") from e
        finally:
            conn.close()
        return [m.filename for m in todo]
