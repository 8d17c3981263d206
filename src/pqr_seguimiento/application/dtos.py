from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Optional

from pqr_seguimiento.domain.entities import CaseRecord
from pqr_seguimiento.domain.exceptions import CaseNotFoundError


@dataclass
class ParsedCsv:
    headers: list[str] = field(default_factory=list)
    data: list[dict[str, str]] = field(default_factory=list)


class WriteKind(Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class WriteOperation:
    """Una escritura dentro de un lote atómico."""

    kind: WriteKind
    case: CaseRecord

    @classmethod
    def add(cls, case: CaseRecord) -> WriteOperation:
        return cls(WriteKind.ADD, case)

    @classmethod
    def update(cls, case: CaseRecord) -> WriteOperation:
        if case.doc_id is None:
            raise CaseNotFoundError(f"No se puede actualizar el caso {case.sn!r} sin doc_id")
        return cls(WriteKind.UPDATE, case)

    @classmethod
    def delete(cls, case: CaseRecord) -> WriteOperation:
        if case.doc_id is None:
            raise CaseNotFoundError(f"No se puede eliminar el caso {case.sn!r} sin doc_id")
        return cls(WriteKind.DELETE, case)


@dataclass
class TransitionResult:
    applied: bool
    cases: list[CaseRecord] = field(default_factory=list)
    message: str = ""

    @property
    def case(self) -> Optional[CaseRecord]:
        return self.cases[0] if self.cases else None


class CancellationToken:
    """Cancelación cooperativa: el proceso la consulta una vez por fila."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class ImportReport:
    run_id: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: str = "PENDING"  # SUCCESS | PARTIAL | CANCELLED | ERROR | EMPTY

    total_rows: int = 0
    added_count: int = 0
    updated_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    cancelled: bool = False

    errors: list[dict] = field(default_factory=list)

    @property
    def processed_count(self) -> int:
        return self.added_count + self.updated_count + self.skipped_count + self.error_count

    @property
    def has_errors(self) -> bool:
        return self.status not in ("SUCCESS", "EMPTY", "CANCELLED")

    def summary(self) -> str:
        prefix = "Carga cancelada" if self.cancelled else "Carga completada"
        text = (
            f"{prefix}. Agregados: {self.added_count}, "
            f"actualizados: {self.updated_count}, omitidos: {self.skipped_count}"
        )
        if self.error_count:
            text += f", con error: {self.error_count}"
        return text + "."


@dataclass
class CaseDetails:
    case: CaseRecord
    age: int | str
    duplicates: list[CaseRecord] = field(default_factory=list)
