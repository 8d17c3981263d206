"""Entidades de dominio del seguimiento de casos PQR."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class CaseStatus(str, Enum):
    """Estado de gestión de un caso (`Estado_Gestion`)."""

    PENDIENTE = "Pendiente"  # Estado inicial
    INICIADO = "Iniciado"
    LECTURA = "Lectura"
    ESCALADO = "Escalado"
    PENDIENTE_AJUSTES = "Pendiente Ajustes"  # Solo automático
    DECRETADO = "Decretado"
    TRASLADO_SIC = "Traslado SIC"
    RESUELTO = "Resuelto"
    FINALIZADO = "Finalizado"  # Terminal, solo automático


class Priority(str, Enum):
    ALTA = "Alta"
    MEDIA = "Media"
    BAJA = "Baja"


NOT_AVAILABLE = "N/A"

HISTORY_FIELDS: tuple[str, ...] = (
    "Observaciones_Historial",
    "Escalamiento_Historial",
    "Aseguramiento_Historial",
    "SNAcumulados_Historial",
)

DISPATCH_FLAG = "Despacho_Respuesta_Checked"
ASSURANCE_FLAG = "Requiere_Aseguramiento_Facturas"
CANCELLATION_FLAG = "requiereBaja"
ADJUSTMENT_FLAG = "requiereAjuste"
REFUND_FLAG = "requiereDevolucionDinero"

ANCILLARY_FLAGS: tuple[str, ...] = (ASSURANCE_FLAG, CANCELLATION_FLAG, ADJUSTMENT_FLAG)

ASSURANCE_FIELDS: tuple[str, ...] = (
    "ID_Aseguramiento",
    "Corte_Facturacion",
    "Operacion_Aseguramiento",
    "Tipo_Aseguramiento",
    "Mes_Aseguramiento",
    "Cuenta",
)
CANCELLATION_FIELDS: tuple[str, ...] = ("numeroOrdenBaja",)
REFUND_FIELDS: tuple[str, ...] = (
    "cantidadDevolver",
    "idEnvioDevoluciones",
    "fechaEfectivaDevolucion",
)
ADJUSTMENT_FIELDS: tuple[str, ...] = ("numeroTT", "estadoTT", *REFUND_FIELDS)
ESCALATION_FIELDS: tuple[str, ...] = (
    "areaEscalada",
    "motivoEscalado",
    "idEscalado",
    "reqGenerado",
    "descripcionEscalamiento",
)

BOOLEAN_FIELDS: frozenset[str] = frozenset(
    {DISPATCH_FLAG, *ANCILLARY_FLAGS, REFUND_FLAG}
)


def is_truthy(value: Any) -> bool:
    """Interpreta banderas que pueden venir como bool o como texto de un CSV."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"true", "1", "si", "sí", "yes", "x"}


def is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


@dataclass(frozen=True)
class CaseRecord:
    """
    Entidad central: un caso PQR tal como se persiste en la colección.

    Los campos de negocio conservan los nombres de columna originales
    (`SN`, `Fecha Radicado`, `Estado_Gestion`...). Inmutable: cada cambio
    crea una nueva instancia.
    """

    fields: dict[str, Any] = field(default_factory=dict)
    doc_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", copy.deepcopy(dict(self.fields)))

    # === Identidad ===

    @property
    def sn(self) -> str:
        return str(self.fields.get("SN", "") or "").strip()

    @property
    def sn_original(self) -> str:
        return str(self.fields.get("SN_Original", "") or "").strip()

    @property
    def is_decreed(self) -> bool:
        return bool(self.sn_original)

    # === Clasificación ===

    @property
    def status(self) -> str:
        return str(self.fields.get("Estado_Gestion", "") or CaseStatus.PENDIENTE.value)

    @property
    def priority(self) -> str:
        return str(self.fields.get("Prioridad", "") or NOT_AVAILABLE)

    def get(self, name: str, default: Any = "") -> Any:
        return self.fields.get(name, default)

    def flag(self, name: str) -> bool:
        return is_truthy(self.fields.get(name))

    def history(self, name: str) -> list[dict[str, Any]]:
        entries = self.fields.get(name)
        return list(entries) if isinstance(entries, list) else []

    @property
    def has_pending_ancillary_work(self) -> bool:
        return any(self.flag(name) for name in ANCILLARY_FLAGS)

    # === Transformaciones ===

    def with_fields(self, changes: dict[str, Any]) -> CaseRecord:
        """Retorna copia con los campos indicados reemplazados."""
        merged = dict(self.fields)
        merged.update(changes)
        return CaseRecord(fields=merged, doc_id=self.doc_id)

    def with_status(self, new_status: CaseStatus | str) -> CaseRecord:
        value = new_status.value if isinstance(new_status, CaseStatus) else new_status
        return self.with_fields({"Estado_Gestion": value})

    def with_doc_id(self, doc_id: str) -> CaseRecord:
        return CaseRecord(fields=self.fields, doc_id=doc_id)

    def append_history(self, name: str, entry: dict[str, Any]) -> CaseRecord:
        """Los historiales solo crecen: nunca se editan ni borran entradas."""
        return self.with_fields({name: [*self.history(name), dict(entry)]})

    def changed_fields_vs(self, other: CaseRecord, ignore: frozenset[str] = frozenset()) -> dict[str, Any]:
        """Campos de `self` cuyo valor difiere del de `other`."""
        return {
            key: value
            for key, value in self.fields.items()
            if key not in ignore and other.fields.get(key) != value
        }
