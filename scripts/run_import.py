"""Entry point for loading a CSV batch of PQR cases.

Usage:
    python scripts/run_import.py path/to/casos.csv [path/to/config.yaml]

Ctrl+C cancels the load after the row in progress; rows already processed stay saved.
"""

import signal
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import structlog

from pqr_seguimiento.application.ai_analysis import CaseAnalysisService
from pqr_seguimiento.application.config import load_config
from pqr_seguimiento.application.dtos import CancellationToken
from pqr_seguimiento.application.use_cases.import_cases import ImportCasesUseCase
from pqr_seguimiento.infrastructure.console_notifier import ConsoleNotifier
from pqr_seguimiento.infrastructure.http_ai_backend import HttpAIBackend
from pqr_seguimiento.infrastructure.logging_config import close_log_file, setup_logging
from pqr_seguimiento.infrastructure.sqlite_case_repository import SqliteCaseRepository
from pqr_seguimiento.infrastructure.sqlite_tracker import SqliteTracker


def main() -> int:
    if len(sys.argv) < 2:
        print(__doc__)
        return 2
    csv_path = Path(sys.argv[1])
    config_path = sys.argv[2] if len(sys.argv) > 2 else "configs/configuration.yaml"
    config = load_config(config_path)

    setup_logging(
        log_level=config.logging.level,
        log_dir=Path(config.logging.log_dir) if config.logging.log_to_file else None,
    )
    logger = structlog.get_logger()
    logger.info("import_starting", csv_path=str(csv_path), config_path=config_path)

    cancel_token = CancellationToken()
    signal.signal(signal.SIGINT, lambda *_: cancel_token.cancel())

    repository = SqliteCaseRepository(config.store.db_path, config.store.collection_path)
    tracker = SqliteTracker(db_path=config.tracking.db_path)
    backend = HttpAIBackend(config.backend.url, config.backend.timeout_seconds)

    try:
        use_case = ImportCasesUseCase(
            repository=repository,
            notifier=ConsoleNotifier(),
            tracker=tracker,
            analysis=CaseAnalysisService(backend, config.catalogs),
        )
        report = use_case.execute(
            csv_path.read_text(encoding="utf-8-sig"),
            file_name=csv_path.name,
            cancel_token=cancel_token,
        )
        logger.info(
            "import_finished",
            status=report.status,
            added=report.added_count,
            updated=report.updated_count,
            skipped=report.skipped_count,
            errors=report.error_count,
        )
        return 0 if not report.has_errors else 1
    finally:
        backend.close()
        tracker.close()
        repository.close()
        close_log_file()


if __name__ == "__main__":
    sys.exit(main())
