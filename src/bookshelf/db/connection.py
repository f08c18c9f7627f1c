# ABOUTME: Opens the SQLite file that backs the import catalog and brings its schema up to date.
# ABOUTME: First open creates the v1 tables with seeded statuses and formats; later opens migrate.

import logging
import sqlite3
from pathlib import Path

from bookshelf.db.schema import MIGRATIONS, SCHEMA_V1

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".bookshelf" / "library.db"


def _get_schema_version(conn: sqlite3.Connection) -> int:
    """Latest recorded schema version; 0 for a file with no catalog tables yet."""
    has_table = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name='schema_version'"
    ).fetchone()
    if not has_table:
        return 0
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] or 0


def _apply_migrations(conn: sqlite3.Connection) -> None:
    """Run every migration newer than the stored version, oldest first.

    Each migration script records its own version row, so a second call is a no-op.
    """
    current = _get_schema_version(conn)
    latest = MIGRATIONS[-1][0] if MIGRATIONS else 1
    if current > latest:
        logger.warning(
            "Library schema v%d is newer than this release understands (v%d)", current, latest
        )
        return
    for version, sql in MIGRATIONS:
        if version <= current:
            continue
        logger.info("Migrating library schema v%d -> v%d", current, version)
        conn.executescript(sql)
        current = version


def open_library(path: Path | None = None) -> sqlite3.Connection:
    """Open the catalog database, creating and seeding it on first use.

    The import service relies on the default statuses (READ, CURRENT, NEXT,
    DNF) and formats (including Audiobook) seeded by the v1 script, and on
    the narrator and genre tables added by migration v2.

    Args:
        path: Database file; parent directories are created. Defaults to
            ~/.bookshelf/library.db.

    Returns:
        A connection with sqlite3.Row rows, WAL journaling, and foreign keys on.
    """
    db_path = path or DEFAULT_DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    if _get_schema_version(conn) == 0:
        logger.debug("Creating library schema at %s", db_path)
        conn.executescript(SCHEMA_V1)
    _apply_migrations(conn)
    return conn
