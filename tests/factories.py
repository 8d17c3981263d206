"""Dobles de prueba y constructores de casos compartidos por las pruebas."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from pqr_seguimiento.application.dtos import WriteKind, WriteOperation
from pqr_seguimiento.domain.entities import CaseRecord
from pqr_seguimiento.domain.exceptions import BatchWriteError, CaseNotFoundError

BOGOTA = ZoneInfo("America/Bogota")
FIXED_NOW = datetime(2025, 3, 10, 9, 0, tzinfo=BOGOTA)


class FakeCaseRepository:
    """Colección en memoria con lotes todo-o-nada."""

    def __init__(self, cases: list[CaseRecord] = ()) -> None:
        self.docs: dict[str, CaseRecord] = {}
        self.batches: list[list[WriteOperation]] = []
        self.fail_next_batch = False
        self._seq = 0
        for case in cases:
            self.seed(case)

    def seed(self, case: CaseRecord) -> CaseRecord:
        stored = case.with_doc_id(case.doc_id or self._next_id())
        self.docs[stored.doc_id] = stored
        return stored

    def list_cases(self) -> list[CaseRecord]:
        return list(self.docs.values())

    def get(self, doc_id: str) -> CaseRecord:
        if doc_id not in self.docs:
            raise CaseNotFoundError(doc_id)
        return self.docs[doc_id]

    def find_by_sn(self, sn: str) -> CaseRecord | None:
        return next((c for c in self.docs.values() if c.sn == sn), None)

    def add(self, case: CaseRecord) -> CaseRecord:
        return self.commit_batch([WriteOperation.add(case)])[0]

    def update(self, case: CaseRecord) -> CaseRecord:
        return self.commit_batch([WriteOperation.update(case)])[0]

    def delete(self, doc_id: str) -> None:
        self.commit_batch([WriteOperation.delete(self.get(doc_id))])

    def commit_batch(self, operations: list[WriteOperation]) -> list[CaseRecord]:
        if self.fail_next_batch:
            self.fail_next_batch = False
            raise BatchWriteError(len(operations), "fallo simulado")
        staged = dict(self.docs)
        written = []
        for op in operations:
            if op.kind is WriteKind.ADD:
                case = op.case.with_doc_id(op.case.doc_id or self._next_id())
                staged[case.doc_id] = case
            elif op.case.doc_id not in staged:
                raise BatchWriteError(len(operations), f"no existe {op.case.doc_id}")
            elif op.kind is WriteKind.UPDATE:
                case = op.case
                staged[case.doc_id] = case
            else:
                case = staged.pop(op.case.doc_id)
            written.append(case)
        self.docs = staged
        self.batches.append(list(operations))
        return written

    def _next_id(self) -> str:
        self._seq += 1
        return f"doc-{self._seq}"


def make_case(sn: str = "100", doc_id: str | None = None, **fields) -> CaseRecord:
    base = {
        "SN": sn,
        "CUN": f"CUN-{sn}",
        "Fecha Radicado": "2025-03-01",
        "Dia": "9",
        "Nombre_Cliente": "ANA PEREZ",
        "Nro_Nuip_Cliente": f"1{sn}",
        "Estado_Gestion": "Pendiente",
        "Prioridad": "Media",
        "Observaciones_Historial": [],
        "Escalamiento_Historial": [],
        "Aseguramiento_Historial": [],
        "SNAcumulados_Historial": [],
        "Despacho_Respuesta_Checked": False,
        "Requiere_Aseguramiento_Facturas": False,
        "requiereBaja": False,
        "requiereAjuste": False,
        "requiereDevolucionDinero": False,
    }
    base.update(fields)
    return CaseRecord(fields=base, doc_id=doc_id)


