from __future__ import annotations

from typing import Any

from pqr_seguimiento.application.case_queries import extract_related_complaint
from pqr_seguimiento.application.csv_parser import normalize_value
from pqr_seguimiento.domain.entities import (
    BOOLEAN_FIELDS,
    HISTORY_FIELDS,
    NOT_AVAILABLE,
    CaseRecord,
    CaseStatus,
    Priority,
    is_truthy,
)

# Campos que solo cambian por el ciclo de vida, nunca por una recarga del archivo
LIFECYCLE_FIELDS: frozenset[str] = frozenset(
    {
        "Estado_Gestion",
        "Fecha Cierre",
        "Fecha_Inicio_Gestion",
        "Tiempo_Resolucion_Minutos",
        "SN_Original",
        *HISTORY_FIELDS,
        *BOOLEAN_FIELDS,
    }
)

# Formulario de ingreso manual → nombres de columna del caso
MANUAL_FORM_MAPPING: dict[str, str] = {
    "FechaRadicado": "Fecha Radicado",
    "FechaVencimiento": "Fecha Vencimiento",
    "OBS": "obs",
}


def new_case_defaults() -> dict[str, Any]:
    return {
        "Estado_Gestion": CaseStatus.PENDIENTE.value,
        "Prioridad": Priority.MEDIA.value,
        "Analisis de la IA": NOT_AVAILABLE,
        "Categoria del reclamo": NOT_AVAILABLE,
        "Fecha Cierre": "",
        "Fecha_Inicio_Gestion": "",
        "Tiempo_Resolucion_Minutos": NOT_AVAILABLE,
        **{name: [] for name in HISTORY_FIELDS},
        **{name: False for name in BOOLEAN_FIELDS},
    }


class RowTransformer:
    """Convierte filas del CSV o del formulario manual en casos."""

    def transform_row(self, row: dict[str, Any], enrichment: dict[str, str] | None = None) -> CaseRecord:
        fields = new_case_defaults()
        fields.update(self._clean_row(row))
        for name in HISTORY_FIELDS:
            fields[name] = []
        for name in BOOLEAN_FIELDS:
            fields[name] = is_truthy(fields.get(name))
        fields["Estado_Gestion"] = CaseStatus.PENDIENTE.value
        fields["Numero_Reclamo_Relacionado"] = extract_related_complaint(
            fields.get("obs"), fields.get("Observaciones")
        )
        if enrichment:
            fields.update(enrichment)
        return CaseRecord(fields=fields)

    def merge_row(self, existing: CaseRecord, row: dict[str, Any]) -> CaseRecord:
        """Actualiza un caso existente con los datos de la fila, sin tocar su ciclo de vida."""
        changes = {k: v for k, v in self._clean_row(row).items() if k not in LIFECYCLE_FIELDS}
        if "obs" in changes or "Observaciones" in changes:
            merged_obs = {**existing.fields, **changes}
            changes["Numero_Reclamo_Relacionado"] = extract_related_complaint(
                merged_obs.get("obs"), merged_obs.get("Observaciones")
            )
        return existing.with_fields(changes)

    def transform_manual_entry(self, form: dict[str, Any]) -> CaseRecord:
        row = {}
        for key, value in form.items():
            name = MANUAL_FORM_MAPPING.get(key, key)
            row[name] = normalize_value(name, value) if isinstance(value, str) else value
        record = self.transform_row({k: v for k, v in row.items() if k not in BOOLEAN_FIELDS})
        flags = {name: is_truthy(row[name]) for name in BOOLEAN_FIELDS if name in row}
        return record.with_fields(flags)

    @staticmethod
    def _clean_row(row: dict[str, Any]) -> dict[str, Any]:
        cleaned = {}
        for key, value in row.items():
            name = str(key).strip()
            if not name:
                continue
            cleaned[name] = value.strip() if isinstance(value, str) else value
        return cleaned
