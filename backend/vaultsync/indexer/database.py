"""SQLite metadata store recording which vault files have been embedded"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Mapping

from ..config import get_settings
from ..errors import MetadataStoreError
from ..models import VaultMetadata

logger = logging.getLogger(__name__)


CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS vaults (
    vault_id TEXT PRIMARY KEY,
    last_indexed_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS vault_files (
    vault_id TEXT NOT NULL,
    path TEXT NOT NULL,
    content_hash TEXT NOT NULL,
    PRIMARY KEY (vault_id, path),
    FOREIGN KEY(vault_id) REFERENCES vaults(vault_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_vault_files_vault ON vault_files(vault_id);
"""


def normalize_vault_id(vault_path: str) -> str:
    """Normalize a vault path into a stable key"""
    normalized = str(vault_path).replace("\\", "/")
    if len(normalized) > 1:
        normalized = normalized.rstrip("/")
    return normalized


class MetadataStore:
    """Durable map of vault id -> {file path: content hash}"""

    def __init__(self, db_path: Path | None = None):
        settings = get_settings()
        self.db_path = db_path or settings.sqlite_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database tables"""
        with self.connection() as conn:
            conn.executescript(CREATE_TABLES_SQL)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Get database connection with auto-commit"""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_vault_metadata(self, vault_id: str) -> VaultMetadata | None:
        """Read the indexed-file record for a vault, or None if never indexed"""
        key = normalize_vault_id(vault_id)
        with self.connection() as conn:
            vault = conn.execute(
                "SELECT * FROM vaults WHERE vault_id = ?", (key,)
            ).fetchone()
            if vault is None:
                return None
            rows = conn.execute(
                "SELECT path, content_hash FROM vault_files WHERE vault_id = ?",
                (key,),
            ).fetchall()
        return VaultMetadata(
            vault_id=vault_id,
            indexed_file_hashes={row["path"]: row["content_hash"] for row in rows},
            last_indexed_at=datetime.fromisoformat(vault["last_indexed_at"]),
        )

    def update_vault_metadata(self, vault_id: str, hashes: Mapping[str, str]):
        """
        Replace the indexed-file record for a vault.

        The whole map is written in one transaction; readers see either the
        previous map or the new one.
        """
        key = normalize_vault_id(vault_id)
        now = datetime.now().isoformat()
        try:
            with self.connection() as conn:
                conn.execute(
                    """
                    INSERT INTO vaults (vault_id, last_indexed_at) VALUES (?, ?)
                    ON CONFLICT(vault_id) DO UPDATE SET
                        last_indexed_at = excluded.last_indexed_at
                    """,
                    (key, now),
                )
                conn.execute("DELETE FROM vault_files WHERE vault_id = ?", (key,))
                conn.executemany(
                    "INSERT INTO vault_files (vault_id, path, content_hash) VALUES (?, ?, ?)",
                    [(key, path, content_hash) for path, content_hash in hashes.items()],
                )
        except sqlite3.Error as e:
            raise MetadataStoreError(
                f"Failed to update vault metadata for {vault_id}: {e}"
            ) from e
        logger.debug("Updated metadata for vault %s (%d files)", vault_id, len(hashes))

    def clear_vault_metadata(self, vault_id: str):
        """Hard-delete the record for a vault"""
        with self.connection() as conn:
            conn.execute(
                "DELETE FROM vaults WHERE vault_id = ?", (normalize_vault_id(vault_id),)
            )
        logger.debug("Cleared metadata for vault %s", vault_id)

    def has_vault_entries(self, vault_id: str) -> bool:
        """Whether any file hash is recorded for the vault"""
        with self.connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM vault_files WHERE vault_id = ? LIMIT 1",
                (normalize_vault_id(vault_id),),
            ).fetchone()
            return row is not None

    def list_vaults(self) -> list[dict]:
        """All known vaults with file counts, most recently indexed first"""
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT v.vault_id, v.last_indexed_at, COUNT(f.path) AS file_count
                FROM vaults v LEFT JOIN vault_files f ON f.vault_id = v.vault_id
                GROUP BY v.vault_id
                ORDER BY v.last_indexed_at DESC
                """
            ).fetchall()
            return [dict(row) for row in rows]
