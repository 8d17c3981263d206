"""Port para tracking de cargas de archivos."""

from __future__ import annotations

from typing import Any, Protocol


class Tracker(Protocol):
    def start_run(self, run_uuid: str, file_name: str) -> None:
        """Registra inicio de una carga."""
        ...

    def finish_run(self, run_uuid: str, status: str, counters: dict[str, Any]) -> None:
        """Registra fin de la carga con contadores finales."""
        ...

    def log_rows_batch(self, rows: list[dict[str, Any]]) -> None:
        """Insert batch del resultado de cada fila."""
        ...

    def get_run_summary(self, run_uuid: str) -> dict[str, Any]:
        """Retorna resumen de una carga."""
        ...
