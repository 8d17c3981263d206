"""Caso de uso principal: carga un archivo CSV de casos en la colección."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

import structlog

from pqr_seguimiento.application.ai_analysis import CaseAnalysisService
from pqr_seguimiento.application.csv_parser import parse_csv
from pqr_seguimiento.application.dtos import CancellationToken, ImportReport
from pqr_seguimiento.application.ports.case_repository import CaseRepository
from pqr_seguimiento.application.ports.notifier import Notifier
from pqr_seguimiento.application.ports.tracker import Tracker
from pqr_seguimiento.application.transformers import RowTransformer
from pqr_seguimiento.domain.entities import NOT_AVAILABLE, Priority
from pqr_seguimiento.domain.exceptions import (
    AIBackendError,
    CollectionUnavailableError,
    ImportAbortedError,
    StoreError,
)

logger = structlog.get_logger()

AI_FALLBACK = {
    "Analisis de la IA": NOT_AVAILABLE,
    "Categoria del reclamo": NOT_AVAILABLE,
    "Prioridad": Priority.MEDIA.value,
}

# Columna que identifica el caso en cada fila
KEY_FIELD = "SN"


@dataclass(frozen=True)
class ImportCasesUseCase:
    repository: CaseRepository
    notifier: Notifier
    tracker: Tracker
    analysis: CaseAnalysisService | None = None
    transformer: RowTransformer = field(default_factory=RowTransformer)

    def execute(
        self,
        text: str,
        file_name: str = "",
        cancel_token: CancellationToken | None = None,
    ) -> ImportReport:
        run_id = str(uuid.uuid4())
        report = ImportReport(run_id=run_id)
        row_log: list[dict[str, Any]] = []
        cancel_token = cancel_token or CancellationToken()

        try:
            self.tracker.start_run(run_id, file_name)

            parsed = parse_csv(text)
            report.total_rows = len(parsed.data)
            if not parsed.data:
                report.status = "EMPTY"
                self.notifier.notify("El archivo no contiene filas de datos.")
                return report

            if KEY_FIELD not in parsed.headers:
                raise ImportAbortedError(
                    f"El archivo no tiene la columna '{KEY_FIELD}'. Columnas: {parsed.headers}"
                )

            for index, row in enumerate(parsed.data):
                if cancel_token.is_cancelled:
                    report.cancelled = True
                    logger.info("import_cancelled", run_id=run_id, processed=report.processed_count)
                    break
                row_log.append(self._process_row(index, row, run_id, report))

            if report.cancelled:
                report.status = "CANCELLED"
            elif report.error_count == 0:
                report.status = "SUCCESS"
            elif report.error_count < report.total_rows:
                report.status = "PARTIAL"
            else:
                report.status = "ERROR"
            self.notifier.notify(report.summary())

        except (CollectionUnavailableError, ImportAbortedError) as e:
            report.status = "ERROR"
            logger.error("import_fatal_error", run_id=run_id, error=str(e))
            self.notifier.notify(f"Error al cargar el archivo: {e}. {report.summary()}")

        finally:
            self._finish(run_id, report, row_log)

        return report

    def _process_row(
        self, index: int, row: dict[str, str], run_id: str, report: ImportReport
    ) -> dict[str, Any]:
        sn = str(row.get(KEY_FIELD, "")).strip()
        entry = {
            "run_uuid": run_id,
            "row_index": index,
            "sn": sn or None,
            "action": "SKIPPED",
            "error_message": None,
        }
        if not sn:
            report.skipped_count += 1
            entry["error_message"] = "Fila sin SN"
            return entry

        try:
            existing = self.repository.find_by_sn(sn)
            if existing is None:
                record = self.transformer.transform_row(row, self._enrich(row))
                self.repository.add(record)
                report.added_count += 1
                entry["action"] = "ADDED"
            else:
                merged = self.transformer.merge_row(existing, row)
                if merged.changed_fields_vs(existing):
                    self.repository.update(merged)
                    report.updated_count += 1
                    entry["action"] = "UPDATED"
                else:
                    report.skipped_count += 1
        except CollectionUnavailableError:
            raise
        except StoreError as e:
            report.error_count += 1
            report.errors.append({"row_index": index, "sn": sn, "error": str(e)})
            entry.update(action="ERROR", error_message=str(e))
            logger.error("import_row_failed", sn=sn, row_index=index, error=str(e))
            self.notifier.notify(f"Error guardando el caso {sn}: {e}")
        return entry

    def _enrich(self, row: dict[str, str]) -> dict[str, str]:
        if self.analysis is None:
            return dict(AI_FALLBACK)
        try:
            return self.analysis.analyze_and_categorize(row)
        except AIBackendError as e:
            logger.warning("import_ai_enrichment_failed", sn=row.get(KEY_FIELD), error=str(e))
            return dict(AI_FALLBACK)

    def _finish(self, run_id: str, report: ImportReport, row_log: list[dict[str, Any]]) -> None:
        counters = {
            "total_rows": report.total_rows,
            "added": report.added_count,
            "updated": report.updated_count,
            "skipped": report.skipped_count,
            "errors": report.error_count,
            "cancelled": report.cancelled,
            "message": report.summary(),
        }
        try:
            if row_log:
                self.tracker.log_rows_batch(row_log)
            self.tracker.finish_run(run_id, report.status, counters)
        except Exception as e:
            logger.error("tracker_finish_failed", error=str(e))
