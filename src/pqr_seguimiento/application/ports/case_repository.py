from typing import Protocol

from pqr_seguimiento.application.dtos import WriteOperation
from pqr_seguimiento.domain.entities import CaseRecord


class CaseRepository(Protocol):
    def list_cases(self) -> list[CaseRecord]:
        """Todos los casos de la colección del usuario."""
        ...

    def get(self, doc_id: str) -> CaseRecord: ...

    def find_by_sn(self, sn: str) -> CaseRecord | None: ...

    def add(self, case: CaseRecord) -> CaseRecord:
        """Crea el documento y retorna el caso con su doc_id asignado."""
        ...

    def update(self, case: CaseRecord) -> CaseRecord: ...

    def delete(self, doc_id: str) -> None: ...

    def commit_batch(self, operations: list[WriteOperation]) -> list[CaseRecord]:
        """Aplica todas las operaciones o ninguna. Retorna los casos escritos."""
        ...
