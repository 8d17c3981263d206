"""Repositorio de casos sobre SQLite: un documento JSON por caso, por colección."""

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog

from pqr_seguimiento.application.dtos import WriteKind, WriteOperation
from pqr_seguimiento.domain.entities import CaseRecord
from pqr_seguimiento.domain.exceptions import (
    BatchWriteError,
    CaseNotFoundError,
    CollectionUnavailableError,
    StoreError,
)

logger = structlog.get_logger()

_SCHEMA = """
CREATE TABLE IF NOT EXISTS case_documents (
    doc_id          TEXT PRIMARY KEY,
    collection      TEXT NOT NULL,
    sn              TEXT,
    data            TEXT NOT NULL,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_case_documents_collection ON case_documents(collection);
CREATE INDEX IF NOT EXISTS idx_case_documents_sn ON case_documents(collection, sn);
"""


class SqliteCaseRepository:
    """Colección de casos con escrituras en lote atómicas (todo o nada)."""

    def __init__(self, db_path: str, collection: str) -> None:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(db_path)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise CollectionUnavailableError(f"No se pudo abrir la colección: {e}") from e
        self._collection = collection
        logger.info("case_repository_initialized", db_path=db_path, collection=collection)

    @property
    def collection(self) -> str:
        return self._collection

    def list_cases(self) -> list[CaseRecord]:
        rows = self._query(
            "SELECT doc_id, data FROM case_documents WHERE collection=? ORDER BY created_at, rowid",
            (self._collection,),
        )
        return [self._to_record(doc_id, data) for doc_id, data in rows]

    def get(self, doc_id: str) -> CaseRecord:
        rows = self._query(
            "SELECT doc_id, data FROM case_documents WHERE collection=? AND doc_id=?",
            (self._collection, doc_id),
        )
        if not rows:
            raise CaseNotFoundError(f"Caso no encontrado: {doc_id}")
        return self._to_record(*rows[0])

    def find_by_sn(self, sn: str) -> CaseRecord | None:
        rows = self._query(
            "SELECT doc_id, data FROM case_documents WHERE collection=? AND sn=? LIMIT 1",
            (self._collection, sn.strip()),
        )
        return self._to_record(*rows[0]) if rows else None

    def add(self, case: CaseRecord) -> CaseRecord:
        return self.commit_batch([WriteOperation.add(case)])[0]

    def update(self, case: CaseRecord) -> CaseRecord:
        return self.commit_batch([WriteOperation.update(case)])[0]

    def delete(self, doc_id: str) -> None:
        self.commit_batch([WriteOperation.delete(self.get(doc_id))])

    def commit_batch(self, operations: list[WriteOperation]) -> list[CaseRecord]:
        if not operations:
            return []
        now = datetime.now(UTC).isoformat()
        written: list[CaseRecord] = []
        try:
            with self._conn:
                for op in operations:
                    written.append(self._apply(op, now))
        except (sqlite3.Error, CaseNotFoundError, TypeError, ValueError) as e:
            logger.error("case_batch_failed", operations=len(operations), error=str(e))
            raise BatchWriteError(len(operations), str(e)) from e
        logger.debug("case_batch_applied", operations=len(operations))
        return written

    def close(self) -> None:
        self._conn.close()

    def _apply(self, op: WriteOperation, now: str) -> CaseRecord:
        case = op.case
        if op.kind is WriteKind.ADD:
            doc_id = case.doc_id or uuid.uuid4().hex
            self._conn.execute(
                """INSERT INTO case_documents (doc_id, collection, sn, data, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (doc_id, self._collection, case.sn, self._dump(case.fields), now, now),
            )
            return case.with_doc_id(doc_id)

        if op.kind is WriteKind.UPDATE:
            cursor = self._conn.execute(
                """UPDATE case_documents SET sn=?, data=?, updated_at=?
                   WHERE collection=? AND doc_id=?""",
                (case.sn, self._dump(case.fields), now, self._collection, case.doc_id),
            )
        else:
            cursor = self._conn.execute(
                "DELETE FROM case_documents WHERE collection=? AND doc_id=?",
                (self._collection, case.doc_id),
            )
        if cursor.rowcount == 0:
            raise CaseNotFoundError(f"Caso no encontrado: {case.doc_id}")
        return case

    def _query(self, sql: str, params: tuple[Any, ...]) -> list[tuple[Any, ...]]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Error leyendo la colección: {e}") from e

    @staticmethod
    def _dump(fields: dict[str, Any]) -> str:
        return json.dumps(fields, ensure_ascii=False, default=str)

    @staticmethod
    def _to_record(doc_id: str, data: str) -> CaseRecord:
        return CaseRecord(fields=json.loads(data), doc_id=doc_id)
