"""SQLite storage for layout positions and collapse state."""

import json
import logging
import sqlite3
from pathlib import Path

from kinship_atlas.models import Position

logger = logging.getLogger(__name__)


def create_database(db_path: Path | str) -> sqlite3.Connection:
    """Open (creating if needed) a database with the layout and collapse tables."""
    conn = sqlite3.connect(str(db_path))
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS layout_position (
            person_id TEXT PRIMARY KEY,
            x REAL NOT NULL,
            y REAL NOT NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS collapse_state (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)

    conn.commit()
    return conn


class SQLiteLayoutStore:
    """Cache of computed positions keyed by person id."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    def open(cls, db_path: Path | str) -> "SQLiteLayoutStore":
        return cls(create_database(db_path))

    def save_layout(self, positions: dict[str, Position]) -> None:
        """Replace the stored layout with `positions`."""
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM layout_position")
        cursor.executemany(
            """
            INSERT INTO layout_position (person_id, x, y)
            VALUES (?, ?, ?)
            """,
            [(person_id, pos.x, pos.y) for person_id, pos in sorted(positions.items())],
        )
        self.conn.commit()
        logger.debug("Stored %d layout positions", len(positions))

    def load_layout(self) -> dict[str, Position]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT person_id, x, y FROM layout_position ORDER BY person_id")
        return {row[0]: Position(row[1], row[2]) for row in cursor.fetchall()}

    def clear(self) -> None:
        self.conn.execute("DELETE FROM layout_position")
        self.conn.commit()


class SQLiteCollapseStore:
    """Collapse state stored as one JSON document under a key."""

    def __init__(self, conn: sqlite3.Connection, key: str = "kinship-atlas-tree-collapse-state"):
        self.conn = conn
        self.key = key

    def load(self) -> dict | None:
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM collapse_state WHERE key = ?", (self.key,))
        row = cursor.fetchone()
        return json.loads(row[0]) if row else None

    def save(self, state: dict) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO collapse_state (key, value) VALUES (?, ?)",
            (self.key, json.dumps(state, sort_keys=True)),
        )
        self.conn.commit()
