"""Historial de cargas de CSV en SQLite: una fila por carga y una por cada fila del archivo."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

_SCHEMA = """
CREATE TABLE IF NOT EXISTS import_runs (
    run_uuid      TEXT PRIMARY KEY,
    file_name     TEXT,
    started_at    TEXT NOT NULL,
    finished_at   TEXT,
    status        TEXT NOT NULL,
    total_rows    INTEGER DEFAULT 0,
    added         INTEGER DEFAULT 0,
    updated       INTEGER DEFAULT 0,
    skipped       INTEGER DEFAULT 0,
    errors        INTEGER DEFAULT 0,
    cancelled     INTEGER DEFAULT 0,
    message       TEXT
);

CREATE TABLE IF NOT EXISTS import_row_log (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    run_uuid      TEXT NOT NULL REFERENCES import_runs(run_uuid),
    row_index     INTEGER NOT NULL,
    sn            TEXT,
    action        TEXT NOT NULL,
    error_message TEXT
);

CREATE INDEX IF NOT EXISTS idx_import_row_log_run ON import_row_log(run_uuid, row_index);
"""

_COUNTER_COLUMNS = ("total_rows", "added", "updated", "skipped", "errors")


class SqliteTracker:
    def __init__(self, db_path: str) -> None:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON")
        with self._conn:
            self._conn.executescript(_SCHEMA)
        logger.info("import_tracker_initialized", db_path=db_path)

    def start_run(self, run_uuid: str, file_name: str) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO import_runs (run_uuid, file_name, started_at, status) "
                "VALUES (?, ?, ?, 'RUNNING')",
                (run_uuid, file_name, _utc_now()),
            )
        logger.info("import_run_started", run_uuid=run_uuid, file_name=file_name)

    def finish_run(self, run_uuid: str, status: str, counters: dict[str, Any]) -> None:
        """Cierra la carga con su estado final y los contadores del reporte."""
        assignments = ", ".join(f"{name}=?" for name in _COUNTER_COLUMNS)
        values = [int(counters.get(name, 0)) for name in _COUNTER_COLUMNS]
        with self._conn:
            self._conn.execute(
                f"UPDATE import_runs SET finished_at=?, status=?, {assignments}, cancelled=?, message=? "
                "WHERE run_uuid=?",
                (
                    _utc_now(),
                    status,
                    *values,
                    int(bool(counters.get("cancelled"))),
                    counters.get("message", ""),
                    run_uuid,
                ),
            )
        logger.info("import_run_finished", run_uuid=run_uuid, status=status)

    def log_rows_batch(self, rows: list[dict[str, Any]]) -> None:
        """Cada dict trae run_uuid, row_index, sn, action y error_message."""
        with self._conn:
            self._conn.executemany(
                "INSERT INTO import_row_log (run_uuid, row_index, sn, action, error_message) "
                "VALUES (:run_uuid, :row_index, :sn, :action, :error_message)",
                rows,
            )
        logger.debug("import_rows_logged", count=len(rows))

    def get_run_summary(self, run_uuid: str) -> dict[str, Any]:
        row = self._conn.execute("SELECT * FROM import_runs WHERE run_uuid=?", (run_uuid,)).fetchone()
        return dict(row) if row else {}

    def get_row_actions(self, run_uuid: str) -> list[dict[str, Any]]:
        rows = self._conn.execute(
            "SELECT row_index, sn, action, error_message FROM import_row_log "
            "WHERE run_uuid=? ORDER BY row_index",
            (run_uuid,),
        ).fetchall()
        return [dict(row) for row in rows]

    def close(self) -> None:
        self._conn.close()


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
