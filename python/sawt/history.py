"""SQLite persistence of analysis results."""

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional

from .exceptions import InvalidInput
from .types import AnalysisRecord, AnalysisReport, Verdict

logger = logging.getLogger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS audio_analyses (
        id TEXT PRIMARY KEY,
        user_id TEXT,
        file_name TEXT NOT NULL,
        content_hash TEXT NOT NULL,
        authenticity_score REAL NOT NULL,
        verdict TEXT NOT NULL,
        duration REAL,
        sample_rate INTEGER,
        mfcc_data TEXT,
        created_at TEXT NOT NULL
    )
"""


class AnalysisHistory:
    """Stores one row per analysed file in ``audio_analyses``."""

    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        self._init_db()

    @contextmanager
    def _get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_db(self):
        with self._get_connection() as conn:
            conn.execute(SCHEMA)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_audio_analyses_user "
                "ON audio_analyses (user_id, created_at)"
            )

    def record(self, report: AnalysisReport, user_id: Optional[str] = None) -> str:
        """Persist a report and return the new record id."""
        record_id = uuid.uuid4().hex
        created_at = datetime.now(timezone.utc).isoformat()
        params = (
            record_id,
            user_id,
            report.file_name,
            report.content_hash,
            float(report.verdict.authenticity_score),
            report.verdict.verdict.value,
            float(report.duration),
            int(report.sample_rate),
            json.dumps(report.features.to_list()),
            created_at,
        )
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO audio_analyses (
                    id, user_id, file_name, content_hash, authenticity_score,
                    verdict, duration, sample_rate, mfcc_data, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                params,
            )
        logger.debug(f"Recorded analysis {record_id} for {report.file_name!r}")
        return record_id

    def list_analyses(self, user_id: Optional[str] = None, limit: int = 50) -> List[AnalysisRecord]:
        """Most recent analyses first, optionally restricted to one user."""
        if limit < 1:
            raise InvalidInput(f"limit must be a positive integer, got {limit}")
        query = "SELECT * FROM audio_analyses"
        params: tuple = ()
        if user_id is not None:
            query += " WHERE user_id = ?"
            params = (user_id,)
        query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params += (int(limit),)

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._to_record(row) for row in rows]

    def get(self, record_id: str) -> Optional[AnalysisRecord]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM audio_analyses WHERE id = ?", (record_id,)
            ).fetchone()
        return self._to_record(row) if row else None

    @staticmethod
    def _to_record(row: sqlite3.Row) -> AnalysisRecord:
        return AnalysisRecord(
            id=row["id"],
            user_id=row["user_id"],
            file_name=row["file_name"],
            content_hash=row["content_hash"],
            authenticity_score=row["authenticity_score"],
            verdict=Verdict(row["verdict"]),
            duration=row["duration"],
            sample_rate=row["sample_rate"],
            mfcc_data=json.loads(row["mfcc_data"]) if row["mfcc_data"] else [],
            created_at=row["created_at"],
        )
