"""Controlador del ciclo de vida de un caso PQR.

Valida cada transición, aplica sus efectos derivados (fechas, duración,
historiales) y envía todas las escrituras de una acción como un único lote
atómico al repositorio.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Iterable
from zoneinfo import ZoneInfo

import structlog

from pqr_seguimiento.application.config import Catalogs, LifecycleConfig
from pqr_seguimiento.application.dtos import TransitionResult, WriteOperation
from pqr_seguimiento.application.field_rules import apply_field_rules
from pqr_seguimiento.application.ports.case_repository import CaseRepository
from pqr_seguimiento.application.ports.notifier import Notifier
from pqr_seguimiento.application.validators import (
    TICKET_PENDING,
    catalog_errors,
    has_resolution_evidence,
    validate_ancillary_requests,
    validate_decree,
)
from pqr_seguimiento.domain.entities import (
    ADJUSTMENT_FIELDS,
    ADJUSTMENT_FLAG,
    ANCILLARY_FLAGS,
    ASSURANCE_FIELDS,
    ASSURANCE_FLAG,
    CANCELLATION_FIELDS,
    DISPATCH_FLAG,
    ESCALATION_FIELDS,
    HISTORY_FIELDS,
    NOT_AVAILABLE,
    REFUND_FLAG,
    CaseRecord,
    CaseStatus,
    is_blank,
)
from pqr_seguimiento.domain.exceptions import CaseValidationError, InvalidTransitionError

logger = structlog.get_logger()

AUTOMATIC_ONLY = frozenset({CaseStatus.FINALIZADO, CaseStatus.PENDIENTE_AJUSTES})
CLOSED_STATUSES = frozenset({CaseStatus.RESUELTO.value, CaseStatus.FINALIZADO.value})


@dataclass(frozen=True)
class LifecycleContext:
    """Servicios externos que necesita el controlador, inyectados explícitamente."""

    repository: CaseRepository
    notifier: Notifier
    catalogs: Catalogs = field(default_factory=Catalogs)
    config: LifecycleConfig = field(default_factory=LifecycleConfig)
    clock: Callable[[], datetime] | None = None

    def now(self) -> datetime:
        if self.clock is not None:
            return self.clock()
        return datetime.now(ZoneInfo(self.config.timezone))

    def today(self) -> date:
        return self.now().date()

    def today_iso(self) -> str:
        return self.today().isoformat()


def resolution_minutes(started_at: Any, finished_at: datetime) -> int | str:
    """Minutos completos entre el inicio de gestión y el cierre, o `N/A`."""
    if is_blank(started_at):
        return NOT_AVAILABLE
    try:
        start = datetime.fromisoformat(str(started_at))
    except ValueError:
        return NOT_AVAILABLE
    if start.tzinfo is None and finished_at.tzinfo is not None:
        start = start.replace(tzinfo=finished_at.tzinfo)
    elif start.tzinfo is not None and finished_at.tzinfo is None:
        finished_at = finished_at.replace(tzinfo=start.tzinfo)
    return int((finished_at - start).total_seconds() // 60)


def as_status(value: CaseStatus | str) -> CaseStatus:
    if isinstance(value, CaseStatus):
        return value
    try:
        return CaseStatus(str(value).strip())
    except ValueError as e:
        raise InvalidTransitionError("?", str(value), "estado desconocido") from e


class CaseLifecycleController:
    def __init__(self, context: LifecycleContext) -> None:
        self.ctx = context

    # === Transiciones de estado ===

    def change_status(
        self,
        case: CaseRecord,
        new_status: CaseStatus | str,
        all_cases: list[CaseRecord] | None = None,
    ) -> TransitionResult:
        target = as_status(new_status)
        self.require_catalog_status(case, target)
        if target is CaseStatus.RESUELTO:
            return self.resolve(case, all_cases)
        if target is CaseStatus.DECRETADO:
            return self.decree(case, all_cases)
        updated = self.plan_simple_status(case, target)
        return self._commit([WriteOperation.update(updated)], f"Estado actualizado a {target.value}")

    def plan_simple_status(self, case: CaseRecord, target: CaseStatus) -> CaseRecord:
        """Cambio de estado simple (Pendiente, Iniciado, Lectura, Escalado, Traslado SIC) de un caso abierto."""
        if target in AUTOMATIC_ONLY:
            raise InvalidTransitionError(case.status, target.value, "estado automático")
        if target in (CaseStatus.RESUELTO, CaseStatus.DECRETADO):
            raise InvalidTransitionError(case.status, target.value, "requiere validación")
        if case.status in CLOSED_STATUSES:
            raise InvalidTransitionError(case.status, target.value, "caso cerrado, use reabrir")
        self.require_catalog_status(case, target)
        changes: dict[str, Any] = {"Estado_Gestion": target.value}
        if target is CaseStatus.INICIADO:
            changes["Fecha_Inicio_Gestion"] = self.ctx.now().isoformat()
            changes["Tiempo_Resolucion_Minutos"] = NOT_AVAILABLE
        return self._leaving_escalation(case, target).with_fields(changes)

    def require_catalog_status(self, case: CaseRecord, target: CaseStatus) -> None:
        if target.value not in self.ctx.catalogs.statuses:
            raise InvalidTransitionError(case.status, target.value, "estado fuera del catálogo")

    def resolve(
        self,
        case: CaseRecord,
        all_cases: list[CaseRecord] | None = None,
        confirmed: bool = False,
    ) -> TransitionResult:
        errors = validate_ancillary_requests(case, self.ctx.catalogs)
        if errors:
            raise CaseValidationError(errors, action="el cierre del caso")
        if not has_resolution_evidence(case) and not confirmed:
            confirmed = self.ctx.notifier.confirm(
                f"El caso {case.sn} no tiene despacho de respuesta ni gestiones adicionales. "
                "¿Confirma que no se requiere ninguna gestión adicional?"
            )
            if not confirmed:
                logger.info("resolve_cancelled_by_operator", sn=case.sn)
                return TransitionResult(applied=False, cases=[case], message="Cierre cancelado")

        operations = [WriteOperation.update(update) for update in self.plan_resolution(case, all_cases)]
        return self._commit(operations, f"Caso {case.sn} resuelto")

    def plan_resolution(
        self, case: CaseRecord, all_cases: list[CaseRecord] | None = None
    ) -> list[CaseRecord]:
        """Caso resuelto más los SN acumulados que se cierran junto con él."""
        now = self.ctx.now()
        closing = {
            "Estado_Gestion": CaseStatus.RESUELTO.value,
            "Fecha Cierre": now.date().isoformat(),
        }
        resolved = self._leaving_escalation(case, CaseStatus.RESUELTO).with_fields(
            {
                **closing,
                "Tiempo_Resolucion_Minutos": resolution_minutes(
                    case.get("Fecha_Inicio_Gestion"), now
                ),
            }
        )
        return [resolved, *self._accumulated_cases_to_close(case, all_cases, closing)]

    def _accumulated_cases_to_close(
        self,
        case: CaseRecord,
        all_cases: list[CaseRecord] | None,
        closing: dict[str, Any],
    ) -> list[CaseRecord]:
        linked_sns = {
            str(entry.get("sn", "")).strip()
            for entry in case.history("SNAcumulados_Historial")
            if not is_blank(entry.get("sn"))
        }
        linked_sns.discard(case.sn)
        if not linked_sns:
            return []
        candidates = all_cases if all_cases is not None else self.ctx.repository.list_cases()
        closed = []
        for other in candidates:
            if other.sn in linked_sns and other.doc_id != case.doc_id and other.doc_id is not None:
                if other.status in (CaseStatus.RESUELTO.value, CaseStatus.FINALIZADO.value):
                    continue
                closed.append(other.with_fields(closing))
        logger.info("accumulated_sns_closing", sn=case.sn, linked=sorted(linked_sns), found=len(closed))
        return closed

    def decree(self, case: CaseRecord, all_cases: list[CaseRecord] | None = None) -> TransitionResult:
        errors = validate_decree(case)
        if errors:
            raise CaseValidationError(errors, action="el decreto del caso")

        new_sn = self.next_decree_sn(case, all_cases)
        if not self.ctx.notifier.confirm(
            f"Se resolverá el caso {case.sn} y se creará el caso decretado {new_sn}. ¿Continuar?"
        ):
            return TransitionResult(applied=False, cases=[case], message="Decreto cancelado")

        today = self.ctx.today_iso()
        original = self._leaving_escalation(case, CaseStatus.RESUELTO).with_fields(
            {
                "Estado_Gestion": CaseStatus.RESUELTO.value,
                "Fecha Cierre": today,
                "Tiempo_Resolucion_Minutos": resolution_minutes(
                    case.get("Fecha_Inicio_Gestion"), self.ctx.now()
                ),
            }
        )
        original = original.append_history(
            "Observaciones_Historial",
            self._entry(text=f"Caso decretado. Se generó el nuevo caso {new_sn}."),
        )
        successor = self.build_decreed_case(case, new_sn)

        return self._commit(
            [WriteOperation.update(original), WriteOperation.add(successor)],
            f"Caso {case.sn} decretado como {new_sn}",
        )

    def next_decree_sn(self, case: CaseRecord, all_cases: list[CaseRecord] | None = None) -> str:
        root = case.sn_original or case.sn
        candidates = all_cases if all_cases is not None else self.ctx.repository.list_cases()
        existing = {other.sn for other in candidates}
        sequence = 1
        while f"{root}-D{sequence}" in existing:
            sequence += 1
        return f"{root}-D{sequence}"

    def build_decreed_case(self, case: CaseRecord, new_sn: str) -> CaseRecord:
        fields = dict(case.fields)
        for name in HISTORY_FIELDS:
            fields[name] = []
        for name in (*ASSURANCE_FIELDS, *CANCELLATION_FIELDS, *ADJUSTMENT_FIELDS, *ESCALATION_FIELDS):
            fields[name] = ""
        for name in (*ANCILLARY_FLAGS, REFUND_FLAG, DISPATCH_FLAG):
            fields[name] = False
        fields.update(
            {
                "SN": new_sn,
                "SN_Original": case.sn_original or case.sn,
                "Fecha Radicado": self.ctx.today_iso(),
                "Dia": 0,
                "Estado_Gestion": CaseStatus.DECRETADO.value,
                "Fecha Cierre": "",
                "Fecha_Inicio_Gestion": "",
                "Tiempo_Resolucion_Minutos": NOT_AVAILABLE,
            }
        )
        return CaseRecord(fields=fields)

    def reopen(self, case: CaseRecord) -> TransitionResult:
        return self._commit([WriteOperation.update(self.plan_reopen(case))], f"Caso {case.sn} reabierto")

    def plan_reopen(self, case: CaseRecord) -> CaseRecord:
        if case.status != CaseStatus.RESUELTO.value:
            raise InvalidTransitionError(case.status, CaseStatus.PENDIENTE.value, "solo casos resueltos")
        return case.with_fields(
            {
                "Estado_Gestion": CaseStatus.PENDIENTE.value,
                "Fecha Cierre": "",
                "Tiempo_Resolucion_Minutos": NOT_AVAILABLE,
            }
        )

    def finalize_resolved(self, cases: Iterable[CaseRecord]) -> list[CaseRecord]:
        """Pasa a Finalizado los casos resueltos sin gestiones adicionales pendientes."""
        to_finalize = [
            case.with_status(CaseStatus.FINALIZADO)
            for case in cases
            if case.status == CaseStatus.RESUELTO.value
            and not case.has_pending_ancillary_work
            and case.doc_id is not None
        ]
        if not to_finalize:
            return []
        written = self.ctx.repository.commit_batch([WriteOperation.update(c) for c in to_finalize])
        logger.info("cases_auto_finalized", count=len(written), sns=[c.sn for c in written])
        return written

    # === Edición de campos ===

    def plan_field_update(self, case: CaseRecord, changes: dict[str, Any]) -> CaseRecord:
        errors = catalog_errors(changes, self.ctx.catalogs)
        if "SN" in changes:
            errors.extend(self._sn_change_errors(case, changes["SN"]))
        if errors:
            raise CaseValidationError(errors, action=f"la edición del caso {case.sn}")
        fields = apply_field_rules(case.fields, changes)
        updated = CaseRecord(fields=fields, doc_id=case.doc_id)
        if "Estado_Gestion" in changes:
            target = as_status(changes["Estado_Gestion"])
            if target is not as_status(case.status):
                raise InvalidTransitionError(
                    case.status, target.value, "use change_status para cambiar el estado"
                )
        return self._apply_pending_adjustments(updated)

    def update_fields(self, case: CaseRecord, changes: dict[str, Any]) -> TransitionResult:
        updated = self.plan_field_update(case, changes)
        return self._commit([WriteOperation.update(updated)], f"Caso {case.sn} actualizado")

    def _sn_change_errors(self, case: CaseRecord, value: Any) -> list[str]:
        new_sn = str(value).strip() if value is not None else ""
        if not new_sn:
            return ["SN es requerido"]
        if new_sn == case.sn:
            return []
        existing = self.ctx.repository.find_by_sn(new_sn)
        if existing is not None and existing.doc_id != case.doc_id:
            return [f"Ya existe un caso con SN {new_sn}"]
        return []

    def _apply_pending_adjustments(self, case: CaseRecord) -> CaseRecord:
        if (
            case.flag(ADJUSTMENT_FLAG)
            and str(case.get("estadoTT", "")).strip() == TICKET_PENDING
            and case.status != CaseStatus.PENDIENTE_AJUSTES.value
        ):
            logger.info("case_pending_adjustments", sn=case.sn, previous=case.status)
            return self._leaving_escalation(case, CaseStatus.PENDIENTE_AJUSTES).with_status(
                CaseStatus.PENDIENTE_AJUSTES
            )
        return case

    # === Historiales ===

    def add_observation(self, case: CaseRecord, text: str) -> TransitionResult:
        if is_blank(text):
            raise CaseValidationError(["La observación no puede estar vacía"], "la observación")
        updated = case.append_history("Observaciones_Historial", self._entry(text=text.strip()))
        return self._commit([WriteOperation.update(updated)], "Observación agregada")

    def save_escalation(
        self,
        case: CaseRecord,
        area: str,
        motivo: str,
        id_escalado: str = "",
        req_generado: str = "",
        descripcion: str = "",
    ) -> TransitionResult:
        errors = []
        if area not in self.ctx.catalogs.escalation_areas:
            errors.append(f"Área de escalamiento inválida: '{area}'")
        elif motivo not in self.ctx.catalogs.reasons_for(area):
            errors.append(f"Motivo '{motivo}' no corresponde al área '{area}'")
        if errors:
            raise CaseValidationError(errors, action="el escalamiento")

        escalation = {
            "areaEscalada": area,
            "motivoEscalado": motivo,
            "idEscalado": id_escalado,
            "reqGenerado": req_generado,
            "descripcionEscalamiento": descripcion,
        }
        updated = case.with_fields({**escalation, "Estado_Gestion": CaseStatus.ESCALADO.value})
        updated = updated.append_history("Escalamiento_Historial", self._entry(**escalation))
        return self._commit([WriteOperation.update(updated)], f"Caso {case.sn} escalado a {area}")

    def save_assurance(self, case: CaseRecord, observation: str = "") -> TransitionResult:
        if not case.flag(ASSURANCE_FLAG):
            raise CaseValidationError(
                ["El caso no tiene marcado el aseguramiento de facturas"], "el aseguramiento"
            )
        snapshot = {name: case.get(name, "") for name in ASSURANCE_FIELDS}
        updated = case.append_history(
            "Aseguramiento_Historial", self._entry(**snapshot, observaciones=observation)
        )
        return self._commit([WriteOperation.update(updated)], "Aseguramiento guardado")

    def set_accumulated_sns(self, case: CaseRecord, entries: list[dict[str, str]]) -> TransitionResult:
        missing = [i + 1 for i, entry in enumerate(entries) if is_blank(entry.get("sn"))]
        if missing:
            raise CaseValidationError(
                [f"SN acumulado #{i} está vacío" for i in missing], "los SN acumulados"
            )
        updated = case
        for entry in entries:
            updated = updated.append_history(
                "SNAcumulados_Historial",
                self._entry(sn=str(entry["sn"]).strip(), obs=entry.get("obs", "")),
            )
        return self._commit([WriteOperation.update(updated)], "SN acumulados guardados")

    # === Helpers ===

    def _entry(self, **values: Any) -> dict[str, Any]:
        return {**values, "timestamp": self.ctx.now().isoformat()}

    @staticmethod
    def _leaving_escalation(case: CaseRecord, target: CaseStatus) -> CaseRecord:
        if case.status == CaseStatus.ESCALADO.value and target is not CaseStatus.ESCALADO:
            return case.with_fields({name: "" for name in ESCALATION_FIELDS})
        return case

    def _commit(self, operations: list[WriteOperation], message: str) -> TransitionResult:
        written = self.ctx.repository.commit_batch(operations)
        logger.info(
            "case_batch_committed",
            message=message,
            operations=len(operations),
            sns=[c.sn for c in written],
        )
        return TransitionResult(applied=True, cases=written, message=message)
