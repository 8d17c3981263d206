"""Configuración de la aplicación cargada desde YAML."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

DEFAULT_STATUSES: tuple[str, ...] = (
    "Pendiente",
    "Iniciado",
    "Lectura",
    "Resuelto",
    "Finalizado",
    "Escalado",
    "Decretado",
    "Traslado SIC",
    "Pendiente Ajustes",
)

DEFAULT_PRIORITIES: tuple[str, ...] = ("Alta", "Media", "Baja")

DEFAULT_ESCALATION_REASONS: dict[str, tuple[str, ...]] = {
    "Facturación": (
        "Ajuste de cobro",
        "Error en cargos",
        "Solicitud detalle factura",
        "Pago no aplicado",
        "Otro",
    ),
    "Soporte Técnico": (
        "Falla masiva",
        "Problema configuración equipo",
        "Sin servicio",
        "Intermitencia",
        "Otro",
    ),
    "Redes": (
        "Investigación de cobertura",
        "Falla en infraestructura",
        "Optimización de señal",
        "Otro",
    ),
    "Ventas": ("Incumplimiento oferta", "Error en activación", "Solicitud nuevo servicio", "Otro"),
    "Retención": (
        "Cancelación de servicio",
        "Mejora de plan",
        "Inconformidad con servicio",
        "Otro",
    ),
    "Legal": (
        "Requerimiento judicial",
        "Disputa contractual",
        "Derecho de petición",
        "Otro",
    ),
    "Cartera/Recaudo": (
        "Acuerdo de pago",
        "Pago no aplicado",
        "Verificación estado de cuenta",
        "Cobro prejurídico",
        "Otro",
    ),
    "Calidad": ("Auditoría de proceso", "Incumplimiento SLA", "Mejora de atención", "Otro"),
    "Desarrollo/Plataformas": (
        "Error en aplicación",
        "Falla en portal web",
        "Incidente de seguridad",
        "Otro",
    ),
    "Otro": ("Motivo general no especificado", "Escalamiento interno general"),
}

DEFAULT_ASSURANCE_OPERATIONS: tuple[str, ...] = (
    "Aseguramiento FS",
    "Aseguramiento TELCO",
    "Aseguramiento SINTEL",
    "Aseguramiento D@VOX",
)

DEFAULT_ASSURANCE_TYPES: tuple[str, ...] = (
    "Eliminar cobros facturados (paz y salvo)",
    "Ajustes to invoice de cartera",
    "Aprobación envío SMS",
    "Aseguramiento clientes reconectados",
    "Aseguramiento FS - No cobro RX - RXM",
    "Calidad de impresión",
    "Cambio de localidad FS",
    "Carga a tablas FS",
    "NO Cobros gastos de cobranza",
    "Generar reconexión FS",
    "Solicitud ajustes cartera",
    "Validacion inconsistencias / Aplicar DTO",
    "Validación cambio de suscriptor",
    "Ajustar cobros por aceleración Baseport",
    "Confirmar BAJA del servicio",
    "Recepción factura electronica",
    "Recepción factura fisica",
    "No cobros plataforma Streaming",
)

DEFAULT_ASSURANCE_MONTHS: tuple[str, ...] = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)

DEFAULT_TICKET_STATES: tuple[str, ...] = ("Pendiente", "Aplicado")


@dataclass(frozen=True)
class Catalogs:
    """Listas de valores válidos. Se cargan una vez y nunca se mutan."""

    statuses: tuple[str, ...] = DEFAULT_STATUSES
    priorities: tuple[str, ...] = DEFAULT_PRIORITIES
    escalation_reasons: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_ESCALATION_REASONS))
    )
    assurance_operations: tuple[str, ...] = DEFAULT_ASSURANCE_OPERATIONS
    assurance_types: tuple[str, ...] = DEFAULT_ASSURANCE_TYPES
    assurance_months: tuple[str, ...] = DEFAULT_ASSURANCE_MONTHS
    ticket_states: tuple[str, ...] = DEFAULT_TICKET_STATES

    @property
    def escalation_areas(self) -> tuple[str, ...]:
        return tuple(self.escalation_reasons.keys())

    def reasons_for(self, area: str) -> tuple[str, ...]:
        return self.escalation_reasons.get(area, ())


@dataclass(frozen=True)
class BackendConfig:
    url: str
    timeout_seconds: float = 60.0


@dataclass(frozen=True)
class StoreConfig:
    app_id: str = "default-app-id"
    user_id: str = "anonymous"
    db_path: str = "data/pqr_cases.db"

    @property
    def collection_path(self) -> str:
        return f"artifacts/{self.app_id}/users/{self.user_id}/cases"


@dataclass(frozen=True)
class TrackingConfig:
    db_path: str = "data/pqr_imports.db"


@dataclass(frozen=True)
class LifecycleConfig:
    timezone: str = "America/Bogota"
    stuck_alert_minutes: int = 45
    poll_interval_seconds: int = 30


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"


@dataclass(frozen=True)
class AppConfig:
    backend: BackendConfig
    store: StoreConfig
    tracking: TrackingConfig
    lifecycle: LifecycleConfig
    catalogs: Catalogs
    logging: LoggingConfig


def load_config(config_path: str | Path) -> AppConfig:
    """Carga y valida la configuración desde un archivo YAML."""
    path = Path(config_path).resolve()
    if not path.exists():
        msg = f"Archivo de configuración no encontrado: {path}"
        raise FileNotFoundError(msg)

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        msg = f"YAML inválido: se esperaba dict, se obtuvo {type(raw).__name__}"
        raise ValueError(msg)

    _validate_required_keys(raw)

    return AppConfig(
        backend=_build_backend_config(raw.get("backend") or {}),
        store=StoreConfig(**(raw.get("store") or {})),
        tracking=TrackingConfig(**(raw.get("tracking") or {})),
        lifecycle=LifecycleConfig(**(raw.get("lifecycle") or {})),
        catalogs=build_catalogs(raw.get("catalogs") or {}),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )


def _validate_required_keys(raw: dict[str, Any]) -> None:
    """Valida que las secciones requeridas existan en el YAML."""
    required = {"backend", "store"}
    missing = required - set(raw.keys())
    if missing:
        msg = f"Secciones requeridas faltantes en YAML: {sorted(missing)}"
        raise ValueError(msg)


def _build_backend_config(data: dict[str, Any]) -> BackendConfig:
    if "url" not in data:
        msg = "backend.url es requerido"
        raise ValueError(msg)
    return BackendConfig(**data)


def build_catalogs(data: dict[str, Any]) -> Catalogs:
    """Construye Catalogs, convirtiendo listas a tuplas y el mapa a solo-lectura."""
    data = dict(data)  # shallow copy
    for key in (
        "statuses",
        "priorities",
        "assurance_operations",
        "assurance_types",
        "assurance_months",
        "ticket_states",
    ):
        if key in data:
            data[key] = tuple(data[key])
    if "escalation_reasons" in data:
        reasons = data["escalation_reasons"]
        if not isinstance(reasons, dict):
            msg = "catalogs.escalation_reasons debe ser un mapa área → motivos"
            raise ValueError(msg)
        data["escalation_reasons"] = MappingProxyType(
            {area: tuple(motives) for area, motives in reasons.items()}
        )
    return Catalogs(**data)
