"""Acciones del operador sobre casos: detalle, edición, transiciones y acciones masivas.

Los errores de validación, de almacén y del backend de IA se informan al
operador por el notificador y la operación se aborta sin cambios parciales.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import structlog

from pqr_seguimiento.application.ai_analysis import CaseAnalysisService
from pqr_seguimiento.application.case_queries import calculate_case_age, find_duplicates
from pqr_seguimiento.application.dtos import CaseDetails, TransitionResult, WriteOperation
from pqr_seguimiento.application.lifecycle import CaseLifecycleController, as_status
from pqr_seguimiento.application.transformers import RowTransformer
from pqr_seguimiento.application.validators import (
    has_resolution_evidence,
    validate_ancillary_requests,
)
from pqr_seguimiento.domain.entities import CaseRecord, CaseStatus
from pqr_seguimiento.domain.exceptions import (
    AIBackendError,
    CaseValidationError,
    InvalidTransitionError,
    PQRError,
    StoreError,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class ManageCasesUseCase:
    controller: CaseLifecycleController
    analysis: CaseAnalysisService | None = None
    transformer: RowTransformer = field(default_factory=RowTransformer)

    @property
    def _repository(self):
        return self.controller.ctx.repository

    @property
    def _notifier(self):
        return self.controller.ctx.notifier

    # === Lectura ===

    def refresh(self) -> list[CaseRecord]:
        """Carga la colección y aplica el barrido de finalización automática."""
        try:
            cases = self._repository.list_cases()
        except StoreError as e:
            self._fail(e)
            return []
        try:
            finalized = {c.doc_id: c for c in self.controller.finalize_resolved(cases)}
        except PQRError as e:
            logger.error("auto_finalize_failed", error=str(e))
            self._notifier.notify(f"Error al finalizar casos resueltos: {e}")
            return cases
        return [finalized.get(c.doc_id, c) for c in cases]

    def case_details(self, doc_id: str) -> CaseDetails | None:
        """Detalle con antigüedad y duplicados; None si el caso no se pudo leer."""
        try:
            cases = self._repository.list_cases()
            case = next((c for c in cases if c.doc_id == doc_id), None)
            if case is None:
                case = self._repository.get(doc_id)
        except StoreError as e:
            self._fail(e)
            return None
        duplicates = find_duplicates(case, cases)
        if duplicates:
            logger.info("duplicate_cases_found", sn=case.sn, duplicates=[d.sn for d in duplicates])
        return CaseDetails(
            case=case,
            age=calculate_case_age(case, self.controller.ctx.today()),
            duplicates=duplicates,
        )

    # === Acciones sobre un caso ===

    def change_status(self, case: CaseRecord, new_status: CaseStatus | str) -> TransitionResult:
        return self._guarded(
            lambda: self.controller.change_status(case, new_status, self._repository.list_cases()),
            case,
        )

    def reopen(self, case: CaseRecord) -> TransitionResult:
        return self._guarded(lambda: self.controller.reopen(case), case)

    def update_fields(self, case: CaseRecord, changes: dict[str, Any]) -> TransitionResult:
        return self._guarded(lambda: self.controller.update_fields(case, changes), case)

    def add_observation(self, case: CaseRecord, text: str) -> TransitionResult:
        return self._guarded(lambda: self.controller.add_observation(case, text), case)

    def save_escalation(self, case: CaseRecord, **escalation: str) -> TransitionResult:
        return self._guarded(lambda: self.controller.save_escalation(case, **escalation), case)

    def save_assurance(self, case: CaseRecord, observation: str = "") -> TransitionResult:
        return self._guarded(lambda: self.controller.save_assurance(case, observation), case)

    def set_accumulated_sns(self, case: CaseRecord, entries: list[dict[str, str]]) -> TransitionResult:
        return self._guarded(lambda: self.controller.set_accumulated_sns(case, entries), case)

    def create_manual_case(self, form: dict[str, Any]) -> TransitionResult:
        sn = str(form.get("SN", "")).strip()
        if not sn:
            return self._fail(CaseValidationError(["SN es requerido"], "el ingreso manual"))
        record = self.transformer.transform_manual_entry(form)

        def create() -> TransitionResult:
            if self._repository.find_by_sn(sn) is not None:
                raise CaseValidationError([f"Ya existe un caso con SN {sn}"], "el ingreso manual")
            return TransitionResult(
                applied=True,
                cases=self._repository.commit_batch([WriteOperation.add(record)]),
                message=f"Caso {sn} creado",
            )

        return self._guarded(create, record)

    def delete_case(self, case: CaseRecord) -> TransitionResult:
        if not self._notifier.confirm(f"¿Eliminar definitivamente el caso {case.sn}?"):
            return TransitionResult(applied=False, cases=[case], message="Eliminación cancelada")
        return self._guarded(
            lambda: TransitionResult(
                applied=True,
                cases=self._repository.commit_batch([WriteOperation.delete(case)]),
                message=f"Caso {case.sn} eliminado",
            ),
            case,
        )

    # === IA ===

    def run_analysis(self, case: CaseRecord, kind: str) -> TransitionResult:
        """`kind`: analysis | summary | response | escalation."""
        if self.analysis is None:
            return self._fail(AIBackendError("El backend de IA no está configurado"))
        actions: dict[str, Callable[[CaseRecord], dict[str, str]]] = {
            "analysis": self._analysis_without_priority,
            "summary": self.analysis.summarize_facts,
            "response": self.analysis.project_response,
            "escalation": self.analysis.suggest_escalation,
        }
        if kind not in actions:
            raise ValueError(f"Tipo de análisis desconocido: {kind}")
        return self._guarded(lambda: self.controller.update_fields(case, actions[kind](case)), case)

    def _analysis_without_priority(self, case: CaseRecord) -> dict[str, str]:
        # La prioridad solo la fija la IA al importar; aquí la decide el operador.
        result = self.analysis.analyze_and_categorize(case)
        return {name: value for name, value in result.items() if name != "Prioridad"}

    def transcribe_document(self, case: CaseRecord, image: bytes, mime_type: str) -> TransitionResult:
        if self.analysis is None:
            return self._fail(AIBackendError("El backend de IA no está configurado"))
        return self._guarded(
            lambda: self.controller.update_fields(
                case, self.analysis.transcribe_document(case, image, mime_type)
            ),
            case,
        )

    # === Acciones masivas (un solo lote atómico) ===

    def mass_change_status(self, cases: list[CaseRecord], new_status: CaseStatus | str) -> TransitionResult:
        try:
            target = as_status(new_status)
        except PQRError as e:
            return self._fail(e)
        if target is CaseStatus.DECRETADO:
            return self._fail(
                InvalidTransitionError("varios", target.value, "el decreto es individual")
            )
        try:
            if target is CaseStatus.RESUELTO:
                for case in cases:
                    self.controller.require_catalog_status(case, target)
                updates = self._plan_mass_resolution(cases)
                if updates is None:
                    return TransitionResult(applied=False, message="Cierre masivo cancelado")
            else:
                updates = [self.controller.plan_simple_status(c, target) for c in cases]
        except PQRError as e:
            return self._fail(e)
        return self._guarded(
            lambda: self._commit_mass(updates, f"{len(cases)} casos actualizados a {target.value}"),
        )

    def _plan_mass_resolution(self, cases: list[CaseRecord]) -> list[CaseRecord] | None:
        errors = []
        for case in cases:
            errors.extend(
                f"{case.sn}: {e}"
                for e in validate_ancillary_requests(case, self.controller.ctx.catalogs)
            )
        if errors:
            raise CaseValidationError(errors, action="el cierre masivo")
        without_evidence = [c.sn for c in cases if not has_resolution_evidence(c)]
        if without_evidence and not self._notifier.confirm(
            "Los casos " + ", ".join(without_evidence) + " no tienen despacho ni gestiones "
            "adicionales. ¿Confirma que no se requiere ninguna gestión adicional?"
        ):
            return None
        all_cases = self._repository.list_cases()
        planned: dict[str, CaseRecord] = {}
        for case in cases:
            for update in self.controller.plan_resolution(case, all_cases):
                planned.setdefault(update.doc_id or update.sn, update)
        return list(planned.values())

    def mass_reopen(self, cases: list[CaseRecord]) -> TransitionResult:
        resolved = [c for c in cases if c.status == CaseStatus.RESUELTO.value]
        if not resolved:
            return self._fail(CaseValidationError(["Ningún caso seleccionado está Resuelto"], "la reapertura"))
        return self._guarded(
            lambda: self._commit_mass(
                [self.controller.plan_reopen(c) for c in resolved], f"{len(resolved)} casos reabiertos"
            )
        )

    def mass_delete(self, cases: list[CaseRecord]) -> TransitionResult:
        if not cases:
            return TransitionResult(applied=False, message="No hay casos seleccionados")
        if not self._notifier.confirm(f"¿Eliminar definitivamente {len(cases)} casos?"):
            return TransitionResult(applied=False, message="Eliminación cancelada")
        return self._guarded(
            lambda: TransitionResult(
                applied=True,
                cases=self._repository.commit_batch([WriteOperation.delete(c) for c in cases]),
                message=f"{len(cases)} casos eliminados",
            )
        )

    def _commit_mass(self, updates: list[CaseRecord], message: str) -> TransitionResult:
        written = self._repository.commit_batch([WriteOperation.update(c) for c in updates])
        self._notifier.notify(message)
        return TransitionResult(applied=True, cases=written, message=message)

    # === Manejo de errores ===

    def _guarded(self, action: Callable[[], TransitionResult], case: CaseRecord | None = None) -> TransitionResult:
        try:
            return action()
        except PQRError as e:
            return self._fail(e, case)

    def _fail(self, error: PQRError, case: CaseRecord | None = None) -> TransitionResult:
        logger.warning(
            "case_action_failed",
            sn=case.sn if case is not None else None,
            error_type=type(error).__name__,
            error=str(error),
        )
        self._notifier.notify(str(error))
        return TransitionResult(applied=False, cases=[case] if case is not None else [], message=str(error))
