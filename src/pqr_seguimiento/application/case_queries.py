"""Consultas derivadas sobre casos: antigüedad, duplicados, reclamos relacionados."""

from __future__ import annotations

import re
from datetime import date, datetime

from pqr_seguimiento.domain.entities import NOT_AVAILABLE, CaseRecord, is_blank

# 16 o 20 dígitos exactos, sin dígitos pegados a ninguno de los lados
RELATED_COMPLAINT_PATTERN = re.compile(r"(?<!\d)(\d{20}|\d{16})(?!\d)")

SEARCHABLE_FIELDS = ("SN", "CUN", "Nombre_Cliente", "Nro_Nuip_Cliente", "Categoria del reclamo")


def parse_iso_date(value: object) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def calculate_case_age(case: CaseRecord, today: date) -> int | str:
    """
    Días de antigüedad del caso.

    Los casos decretados reinician su conteo desde su propia `Fecha Radicado`;
    los demás conservan el `Dia` recibido en la carga.
    """
    radicado = case.get("Fecha Radicado")
    if is_blank(radicado):
        return NOT_AVAILABLE
    if case.is_decreed:
        radicado_date = parse_iso_date(radicado)
        if radicado_date is None:
            return NOT_AVAILABLE
        return abs((today - radicado_date).days)
    return case.get("Dia", NOT_AVAILABLE)


def find_duplicates(case: CaseRecord, cases: list[CaseRecord]) -> list[CaseRecord]:
    """Casos con la misma identificación del cliente o el mismo CUN. Solo informativo."""
    nuip = str(case.get("Nro_Nuip_Cliente", "")).strip()
    cun = str(case.get("CUN", "")).strip()
    duplicates = []
    for other in cases:
        if other.doc_id is not None and other.doc_id == case.doc_id:
            continue
        if other is case:
            continue
        same_nuip = bool(nuip) and str(other.get("Nro_Nuip_Cliente", "")).strip() == nuip
        same_cun = bool(cun) and str(other.get("CUN", "")).strip() == cun
        if same_nuip or same_cun:
            duplicates.append(other)
    return duplicates


def extract_related_complaint(*texts: object) -> str:
    for text in texts:
        if is_blank(text):
            continue
        match = RELATED_COMPLAINT_PATTERN.search(str(text))
        if match:
            return match.group(1)
    return NOT_AVAILABLE


def filter_cases(
    cases: list[CaseRecord],
    search: str = "",
    status: str = "all",
    priority: str = "all",
) -> list[CaseRecord]:
    term = search.strip().lower()
    result = []
    for case in cases:
        if status != "all" and case.status != status:
            continue
        if priority != "all" and case.priority != priority:
            continue
        if term and not any(term in str(case.get(name, "")).lower() for name in SEARCHABLE_FIELDS):
            continue
        result.append(case)
    return result
