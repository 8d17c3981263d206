"""Validaciones previas a las transiciones de cierre y decreto."""

from __future__ import annotations

from pqr_seguimiento.application.config import Catalogs
from pqr_seguimiento.domain.entities import (
    ADJUSTMENT_FLAG,
    ASSURANCE_FLAG,
    CANCELLATION_FLAG,
    DISPATCH_FLAG,
    REFUND_FLAG,
    CaseRecord,
    is_blank,
)
from pqr_seguimiento.domain.value_objects import Money, is_number

TICKET_APPLIED = "Aplicado"
TICKET_PENDING = "Pendiente"

_DEFAULT_CATALOGS = Catalogs()


def catalog_errors(values: dict, catalogs: Catalogs) -> list[str]:
    """Valores no vacíos que no pertenecen a su catálogo."""
    allowed = {
        "Operacion_Aseguramiento": ("Tipo de operación de aseguramiento", catalogs.assurance_operations),
        "Tipo_Aseguramiento": ("Tipo de aseguramiento", catalogs.assurance_types),
        "Mes_Aseguramiento": ("Mes de aseguramiento", catalogs.assurance_months),
        "estadoTT": ("Estado del TT", catalogs.ticket_states),
        "Prioridad": ("Prioridad", catalogs.priorities),
    }
    errors = []
    for name, (label, options) in allowed.items():
        value = values.get(name)
        if name in values and not is_blank(value) and str(value).strip() not in options:
            errors.append(f"{label}: valor no válido '{value}'")
    return errors


def validate_assurance(case: CaseRecord, catalogs: Catalogs = _DEFAULT_CATALOGS) -> list[str]:
    if not case.flag(ASSURANCE_FLAG):
        return []
    if not is_blank(case.get("ID_Aseguramiento")):
        return []
    errors = []
    if not is_number(case.get("Corte_Facturacion")):
        errors.append("Corte de facturación debe ser numérico")
    for name, label in (
        ("Cuenta", "Cuenta"),
        ("Operacion_Aseguramiento", "Tipo de operación de aseguramiento"),
        ("Tipo_Aseguramiento", "Tipo de aseguramiento"),
        ("Mes_Aseguramiento", "Mes de aseguramiento"),
    ):
        if is_blank(case.get(name)):
            errors.append(f"{label} es requerido")
    errors.extend(
        catalog_errors(
            {
                name: case.get(name)
                for name in ("Operacion_Aseguramiento", "Tipo_Aseguramiento", "Mes_Aseguramiento")
            },
            catalogs,
        )
    )
    if errors:
        errors.insert(0, "Aseguramiento sin ID: se requieren todos los datos de aseguramiento")
    return errors


def validate_cancellation(case: CaseRecord) -> list[str]:
    if case.flag(CANCELLATION_FLAG) and is_blank(case.get("numeroOrdenBaja")):
        return ["Número de orden de baja es requerido"]
    return []


def validate_adjustment(case: CaseRecord, catalogs: Catalogs = _DEFAULT_CATALOGS) -> list[str]:
    if not case.flag(ADJUSTMENT_FLAG):
        return []
    errors = []
    if is_blank(case.get("numeroTT")):
        errors.append("Número de TT es requerido")
    errors.extend(catalog_errors({"estadoTT": case.get("estadoTT")}, catalogs))
    if str(case.get("estadoTT", "")).strip() != TICKET_APPLIED:
        errors.append(f"Estado del TT debe ser '{TICKET_APPLIED}'")
    if case.flag(REFUND_FLAG):
        errors.extend(_validate_refund(case))
    return errors


def _validate_refund(case: CaseRecord) -> list[str]:
    errors = []
    try:
        if not Money.parse(case.get("cantidadDevolver")).is_positive:
            errors.append("Cantidad a devolver debe ser mayor a cero")
    except ValueError:
        errors.append("Cantidad a devolver debe ser un número")
    if is_blank(case.get("idEnvioDevoluciones")):
        errors.append("ID de envío a devoluciones es requerido")
    if is_blank(case.get("fechaEfectivaDevolucion")):
        errors.append("Fecha efectiva de devolución es requerida")
    return errors


def validate_ancillary_requests(case: CaseRecord, catalogs: Catalogs = _DEFAULT_CATALOGS) -> list[str]:
    """Errores de las gestiones adicionales marcadas (vacío si todas son válidas)."""
    return (
        validate_assurance(case, catalogs)
        + validate_cancellation(case)
        + validate_adjustment(case, catalogs)
    )


def has_resolution_evidence(case: CaseRecord) -> bool:
    """True si el despacho está confirmado o hay alguna gestión adicional marcada."""
    return case.flag(DISPATCH_FLAG) or case.has_pending_ancillary_work


def validate_decree(case: CaseRecord) -> list[str]:
    errors = []
    if not case.flag(DISPATCH_FLAG):
        errors.append("Debe confirmar el despacho de la respuesta")
    if not case.history("Escalamiento_Historial"):
        errors.append("Debe existir al menos un escalamiento guardado")
    if is_blank(case.get("Radicado_SIC")):
        errors.append("Radicado SIC es requerido")
    if is_blank(case.get("Fecha_Vencimiento_Decreto")):
        errors.append("Fecha de vencimiento del decreto es requerida")
    return errors
