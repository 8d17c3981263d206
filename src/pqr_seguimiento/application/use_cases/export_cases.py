"""Exportación de casos a CSV (todas las celdas entre comillas) y a XLSX."""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
import structlog

from pqr_seguimiento.application.ports.case_repository import CaseRepository
from pqr_seguimiento.application.ports.excel_handler import ExcelWriter
from pqr_seguimiento.domain.entities import CaseRecord

logger = structlog.get_logger()

EXPORT_BASE_HEADERS: tuple[str, ...] = (
    "SN", "CUN", "Fecha Radicado", "Fecha Cierre", "fecha_asignacion", "user",
    "Estado_Gestion", "Fecha_Inicio_Gestion", "Tiempo_Resolucion_Minutos",
    "Radicado_SIC", "Fecha_Vencimiento_Decreto", "Dia", "Fecha Vencimiento",
    "Tipo_Contrato", "Numero_Contrato_Marco", "Nombre_Cliente", "Nro_Nuip_Cliente",
    "Correo_Electronico_Cliente", "Direccion_Cliente", "Ciudad_Cliente", "Depto_Cliente",
    "Nombre_Reclamante", "Nro_Nuip_Reclamante", "Correo_Electronico_Reclamante",
    "Direccion_Reclamante", "Ciudad_Reclamante", "Depto_Reclamante", "HandleNumber",
    "AcceptStaffNo", "type_request", "obs", "Numero_Reclamo_Relacionado",
    "nombre_oficina", "Tipopago", "date_add", "Tipo_Operacion",
    "Prioridad", "Analisis de la IA", "Categoria del reclamo", "Resumen_Hechos_IA",
    "Proyeccion_Respuesta_IA", "Documento_Adjunto",
    "Observaciones_Historial", "SN_Original", "Despacho_Respuesta_Checked",
    "Requiere_Aseguramiento_Facturas", "ID_Aseguramiento", "Corte_Facturacion",
    "Operacion_Aseguramiento", "Tipo_Aseguramiento", "Mes_Aseguramiento", "Cuenta",
    "Aseguramiento_Historial", "requiereBaja", "numeroOrdenBaja",
    "requiereAjuste", "numeroTT", "estadoTT", "requiereDevolucionDinero",
    "cantidadDevolver", "idEnvioDevoluciones", "fechaEfectivaDevolucion",
    "areaEscalada", "motivoEscalado", "idEscalado", "reqGenerado", "descripcionEscalamiento",
    "Escalamiento_Historial", "SNAcumulados_Historial",
)  # fmt: skip


def export_headers(cases: list[CaseRecord]) -> list[str]:
    """Encabezados base primero, luego cualquier campo adicional en orden de aparición."""
    headers = list(EXPORT_BASE_HEADERS)
    known = set(headers)
    for case in cases:
        for name in case.fields:
            if name not in known:
                headers.append(name)
                known.add(name)
    return headers


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def cases_to_dataframe(cases: list[CaseRecord]) -> pd.DataFrame:
    headers = export_headers(cases)
    rows = [[_cell(case.fields.get(name)) for name in headers] for case in cases]
    return pd.DataFrame(rows, columns=headers, dtype=str)


def cases_to_csv(cases: list[CaseRecord]) -> str:
    df = cases_to_dataframe(cases)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


@dataclass(frozen=True)
class ExportCasesUseCase:
    repository: CaseRepository
    excel_writer: ExcelWriter | None = None

    def to_csv(self, output: Path, cases: list[CaseRecord] | None = None) -> Path:
        selected = cases if cases is not None else self.repository.list_cases()
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(cases_to_csv(selected), encoding="utf-8")
        logger.info("cases_exported_csv", path=str(output), cases=len(selected))
        return output

    def to_excel(self, output: Path, cases: list[CaseRecord] | None = None) -> Path:
        if self.excel_writer is None:
            msg = "No hay un escritor de Excel configurado"
            raise ValueError(msg)
        selected = cases if cases is not None else self.repository.list_cases()
        self.excel_writer.write(cases_to_dataframe(selected), output, sheet_name="Casos")
        logger.info("cases_exported_excel", path=str(output), cases=len(selected))
        return output
