"""
SQLite row source.

Reads module and import rows from a local SQLite database laid out like the
analyzer's store. The package filter is always passed as a bound parameter.
Batch writers exist so fixtures and the analyzer can populate a database in
a single transaction.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..rows import ImportRow, ModuleRow
from .base import RowSource

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

MODULE_COLUMNS = "id, package_id, name, directory, relative_path, is_barrel, line_count"
IMPORT_COLUMNS = "id, package_id, module_id, source, is_type_only"


class SQLiteRowSource(RowSource):
    """
    Module/import rows from a local SQLite file.

    Features:
    - Schema creation on first use (idempotent)
    - Optional package filter as a bound `?` parameter on both queries
    - Batch inserts with executemany in a single transaction
    """

    def __init__(self, db_path: Path, create: bool = True):
        self.db_path = Path(db_path)
        if create:
            self._init_db()

    @contextmanager
    def _connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS modules (
                    id TEXT PRIMARY KEY,
                    package_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    directory TEXT NOT NULL DEFAULT '',
                    relative_path TEXT NOT NULL,
                    is_barrel BOOLEAN NOT NULL DEFAULT 0,
                    line_count INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS imports (
                    id TEXT PRIMARY KEY,
                    package_id TEXT NOT NULL,
                    module_id TEXT NOT NULL,
                    source TEXT NOT NULL,
                    is_type_only BOOLEAN NOT NULL DEFAULT 0
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_modules_package_id ON modules(package_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_imports_package_id ON imports(package_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_imports_module_id ON imports(module_id)")
            conn.execute(
                "INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, ?)",
                (SCHEMA_VERSION, datetime.now(timezone.utc).isoformat()),
            )

    def _select(self, table: str, columns: str, package_id: Optional[str]) -> List[Dict[str, Any]]:
        query = f"SELECT {columns} FROM {table}"
        params: tuple = ()
        if package_id is not None:
            query += " WHERE package_id = ?"
            params = (package_id,)
        with self._connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def fetch_modules(self, package_id: Optional[str] = None) -> List[ModuleRow]:
        rows = self._select("modules", MODULE_COLUMNS, package_id)
        logger.debug(f"Fetched {len(rows)} module rows from {self.db_path}")
        return rows  # type: ignore[return-value]

    def fetch_imports(self, package_id: Optional[str] = None) -> List[ImportRow]:
        rows = self._select("imports", IMPORT_COLUMNS, package_id)
        logger.debug(f"Fetched {len(rows)} import rows from {self.db_path}")
        return rows  # type: ignore[return-value]

    def save_modules_batch(self, rows: Iterable[ModuleRow]) -> int:
        """Persist module rows in a single transaction."""
        batch = [
            (
                r["id"], r["package_id"], r["name"], r.get("directory", ""),
                r["relative_path"], r.get("is_barrel", False), r.get("line_count", 0),
            )
            for r in rows
        ]
        if not batch:
            return 0
        with self._connection() as conn:
            conn.executemany(f"""
                INSERT OR REPLACE INTO modules ({MODULE_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, batch)
        return len(batch)

    def save_imports_batch(self, rows: Iterable[ImportRow], package_id: Optional[str] = None) -> int:
        """
        Persist import rows in a single transaction.

        Rows without a package_id take `package_id`, or the importing
        module's package when that is None.
        """
        rows = list(rows)
        if not rows:
            return 0
        with self._connection() as conn:
            owners = {
                row["id"]: row["package_id"]
                for row in conn.execute("SELECT id, package_id FROM modules").fetchall()
            }
            batch = [
                (
                    r["id"],
                    r.get("package_id") or package_id or owners.get(r["module_id"], ""),
                    r["module_id"], r["source"], r.get("is_type_only", False),
                )
                for r in rows
            ]
            conn.executemany(f"""
                INSERT OR REPLACE INTO imports ({IMPORT_COLUMNS})
                VALUES (?, ?, ?, ?, ?)
            """, batch)
        return len(batch)

    def get_stats(self) -> Dict[str, Any]:
        with self._connection() as conn:
            module_count = conn.execute("SELECT COUNT(*) as c FROM modules").fetchone()["c"]
            import_count = conn.execute("SELECT COUNT(*) as c FROM imports").fetchone()["c"]
            package_rows = conn.execute(
                "SELECT package_id, COUNT(*) as c FROM modules GROUP BY package_id"
            ).fetchall()
        return {
            "total_modules": module_count,
            "total_imports": import_count,
            "modules_by_package": {row["package_id"]: row["c"] for row in package_rows},
        }

    def describe(self) -> str:
        return f"sqlite:{self.db_path}"
