"""Alerta de casos detenidos en `Iniciado` por más del umbral configurado."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Callable

import structlog

from pqr_seguimiento.application.ports.notifier import Notifier
from pqr_seguimiento.domain.entities import CaseRecord, CaseStatus, is_blank

logger = structlog.get_logger()


class StuckCaseMonitor:
    """
    Avisa una sola vez por caso y por proceso.

    El conjunto de casos ya alertados vive en memoria: no se persiste ni
    modifica el estado del caso.
    """

    def __init__(
        self,
        notifier: Notifier,
        clock: Callable[[], datetime],
        threshold_minutes: int = 45,
    ) -> None:
        self._notifier = notifier
        self._clock = clock
        self._threshold = timedelta(minutes=threshold_minutes)
        self._alerted: set[str] = set()

    @property
    def alerted_keys(self) -> frozenset[str]:
        return frozenset(self._alerted)

    def evaluate(self, cases: list[CaseRecord]) -> list[CaseRecord]:
        """Retorna los casos alertados en esta evaluación."""
        now = self._clock()
        newly_alerted = []
        for case in cases:
            key = case.doc_id or case.sn
            if not key or key in self._alerted:
                continue
            elapsed = self._elapsed_in_progress(case, now)
            if elapsed is None or elapsed <= self._threshold:
                continue
            self._alerted.add(key)
            minutes = int(elapsed.total_seconds() // 60)
            self._notifier.notify(
                f"El caso {case.sn} lleva {minutes} minutos en estado Iniciado."
            )
            logger.warning("stuck_case_alert", sn=case.sn, minutes=minutes)
            newly_alerted.append(case)
        return newly_alerted

    @staticmethod
    def _elapsed_in_progress(case: CaseRecord, now: datetime) -> timedelta | None:
        if case.status != CaseStatus.INICIADO.value:
            return None
        started = case.get("Fecha_Inicio_Gestion")
        if is_blank(started):
            return None
        try:
            started_at = datetime.fromisoformat(str(started))
        except ValueError:
            logger.debug("stuck_case_invalid_start", sn=case.sn, value=started)
            return None
        if started_at.tzinfo is None and now.tzinfo is not None:
            started_at = started_at.replace(tzinfo=now.tzinfo)
        elif started_at.tzinfo is not None and now.tzinfo is None:
            now = now.replace(tzinfo=started_at.tzinfo)
        return now - started_at

    def run(
        self,
        load_cases: Callable[[], list[CaseRecord]],
        stop_event: threading.Event,
        interval_seconds: float = 30,
    ) -> None:
        """Evalúa periódicamente hasta que `stop_event` se active."""
        logger.info("stuck_case_monitor_started", interval_seconds=interval_seconds)
        while not stop_event.is_set():
            self.evaluate(load_cases())
            stop_event.wait(interval_seconds)
        logger.info("stuck_case_monitor_stopped", alerted=len(self._alerted))
