"""SQLite storage for lyric fragments and their analyses."""

from __future__ import annotations

import json
import os
import queue
import sqlite3
import threading
from contextlib import contextmanager
from typing import Any, Generator, List, Optional

from lyric_vault.core.models import Lyric, LyricAnalysis, SearchQuery, VaultStats
from lyric_vault.utils.observability import get_logger


def _ensure_parent_directory(path: str) -> None:
    directory = os.path.dirname(os.path.abspath(path))
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


def _decode_list(value: Optional[str]) -> List[Any]:
    if not value:
        return []
    try:
        decoded = json.loads(value)
    except ValueError:
        return []
    return decoded if isinstance(decoded, list) else []


_SELECT_COLUMNS = (
    "id, lyric_text, created_at, themes, rhyme_patterns, mood, imagery_tags, raw_analysis"
)
_NEWEST_FIRST = "ORDER BY created_at DESC, id DESC"


class SQLiteLyricRepository:
    """Repository encapsulating all SQLite access for the lyric vault."""

    def __init__(
        self,
        db_path: str,
        *,
        pool_size: int = 4,
        pool_timeout: float = 5.0,
    ) -> None:
        self.db_path = db_path
        self._pool_size = max(1, int(pool_size))
        self._pool_timeout = max(0.0, float(pool_timeout))
        self._pool: queue.Queue = queue.Queue(maxsize=self._pool_size)
        self._pool_semaphore = threading.BoundedSemaphore(self._pool_size)
        self._logger = get_logger(__name__).bind(
            component="sqlite_repository",
            db_path=db_path,
        )

    # Connection management -------------------------------------------------
    def _create_connection(self) -> sqlite3.Connection:
        _ensure_parent_directory(self.db_path)
        connection = sqlite3.connect(self.db_path, check_same_thread=False)
        connection.row_factory = sqlite3.Row
        return connection

    def _acquire_connection(self) -> sqlite3.Connection:
        if not self._pool_semaphore.acquire(timeout=self._pool_timeout or None):
            self._logger.error(
                "Database connection pool exhausted",
                context={"pool_size": self._pool_size, "timeout": self._pool_timeout},
            )
            raise TimeoutError("Database connection pool exhausted")

        try:
            return self._pool.get_nowait()
        except queue.Empty:
            try:
                return self._create_connection()
            except Exception:
                self._pool_semaphore.release()
                raise

    def _release_connection(self, connection: sqlite3.Connection) -> None:
        try:
            self._pool.put_nowait(connection)
        except queue.Full:
            connection.close()
        finally:
            self._pool_semaphore.release()

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        connection = self._acquire_connection()
        try:
            yield connection
            if connection.in_transaction:
                connection.commit()
        except Exception as exc:
            if connection.in_transaction:
                connection.rollback()
            self._logger.error(
                "SQLite operation failed",
                context={"error": str(exc)},
            )
            raise
        finally:
            self._release_connection(connection)

    def close(self) -> None:
        """Close every pooled connection."""

        while True:
            try:
                connection = self._pool.get_nowait()
            except queue.Empty:
                break
            connection.close()

    # Schema -----------------------------------------------------------------
    def ensure_database(self) -> int:
        """Create the schema if needed and return the number of stored lyrics."""

        with self._connect() as conn:
            self._initialise_schema(conn)
            (count,) = conn.execute("SELECT COUNT(*) FROM lyrics").fetchone()
        row_count = int(count)
        self._logger.info("Database schema verified", context={"row_count": row_count})
        return row_count

    def _initialise_schema(self, connection: sqlite3.Connection) -> None:
        connection.execute(
            """
            CREATE TABLE IF NOT EXISTS lyrics (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                lyric_text TEXT NOT NULL,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                themes TEXT,
                rhyme_patterns TEXT,
                mood TEXT,
                imagery_tags TEXT,
                raw_analysis TEXT
            )
            """
        )
        connection.execute(
            "CREATE INDEX IF NOT EXISTS idx_created_at ON lyrics(created_at)"
        )

    # Row mapping -------------------------------------------------------------
    @staticmethod
    def _row_to_lyric(row: sqlite3.Row) -> Lyric:
        analysis = LyricAnalysis.from_mapping(
            {
                "themes": _decode_list(row["themes"]),
                "rhyme_patterns": _decode_list(row["rhyme_patterns"]),
                "mood": row["mood"] or "",
                "imagery_tags": _decode_list(row["imagery_tags"]),
            }
        )
        return Lyric(
            id=int(row["id"]),
            lyric_text=row["lyric_text"],
            created_at=row["created_at"] or "",
            analysis=analysis,
            raw_analysis=row["raw_analysis"] or "",
        )

    # Queries -----------------------------------------------------------------
    def insert_lyric(
        self,
        lyric_text: str,
        analysis: LyricAnalysis,
        raw_analysis: str = "",
    ) -> int:
        text = (lyric_text or "").strip()
        if not text:
            raise ValueError("Lyric text must not be empty")

        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO lyrics (lyric_text, themes, rhyme_patterns, mood, imagery_tags, raw_analysis)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    text,
                    json.dumps(analysis.themes),
                    json.dumps(analysis.rhyme_patterns),
                    analysis.mood,
                    json.dumps(analysis.imagery_tags),
                    raw_analysis,
                ),
            )
            lyric_id = int(cursor.lastrowid)

        self._logger.info("Lyric stored", context={"lyric_id": lyric_id})
        return lyric_id

    def get_lyric(self, lyric_id: int) -> Optional[Lyric]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM lyrics WHERE id = ?",
                (int(lyric_id),),
            ).fetchone()
        return self._row_to_lyric(row) if row else None

    def get_recent_lyrics(self, limit: int = 10) -> List[Lyric]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM lyrics {_NEWEST_FIRST} LIMIT ?",
                (max(0, int(limit)),),
            ).fetchall()
        return [self._row_to_lyric(row) for row in rows]

    def get_all_lyrics(self) -> List[Lyric]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM lyrics {_NEWEST_FIRST}"
            ).fetchall()
        return [self._row_to_lyric(row) for row in rows]

    def search_lyrics(self, query: SearchQuery) -> List[Lyric]:
        """Return lyrics whose stored metadata contains every active filter."""

        clauses: List[str] = []
        params: List[str] = []
        for column, value in (
            ("themes", query.theme),
            ("rhyme_patterns", query.rhyme),
            ("mood", query.mood),
        ):
            if value:
                clauses.append(f"{column} LIKE ?")
                params.append(f"%{value}%")

        sql = f"SELECT {_SELECT_COLUMNS} FROM lyrics"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += f" {_NEWEST_FIRST}"

        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()

        self._logger.debug(
            "Lyric search executed",
            context={"filters": query.active_filters(), "results": len(rows)},
        )
        return [self._row_to_lyric(row) for row in rows]

    def delete_lyric(self, lyric_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM lyrics WHERE id = ?", (int(lyric_id),))
            deleted = cursor.rowcount > 0
        if deleted:
            self._logger.info("Lyric deleted", context={"lyric_id": lyric_id})
        return deleted

    def get_stats(self) -> VaultStats:
        with self._connect() as conn:
            (count,) = conn.execute("SELECT COUNT(*) FROM lyrics").fetchone()
            oldest = conn.execute(
                "SELECT created_at FROM lyrics ORDER BY created_at ASC, id ASC LIMIT 1"
            ).fetchone()
        return VaultStats(total=int(count), oldest_date=oldest[0] if oldest else None)


__all__ = ["SQLiteLyricRepository"]
