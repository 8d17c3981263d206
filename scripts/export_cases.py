"""Exporta los casos de la colección a CSV o XLSX (según la extensión de salida).

Usage:
    python scripts/export_cases.py salida.csv|salida.xlsx [path/to/config.yaml]
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import structlog

from pqr_seguimiento.application.config import load_config
from pqr_seguimiento.application.use_cases.export_cases import ExportCasesUseCase
from pqr_seguimiento.infrastructure.excel_handler import OpenpyxlExcelHandler
from pqr_seguimiento.infrastructure.logging_config import setup_logging
from pqr_seguimiento.infrastructure.sqlite_case_repository import SqliteCaseRepository


def main() -> int:
    if len(sys.argv) < 2:
        print(__doc__)
        return 2
    output = Path(sys.argv[1])
    config = load_config(sys.argv[2] if len(sys.argv) > 2 else "configs/configuration.yaml")
    setup_logging(log_level=config.logging.level)
    logger = structlog.get_logger()

    repository = SqliteCaseRepository(config.store.db_path, config.store.collection_path)
    try:
        use_case = ExportCasesUseCase(repository=repository, excel_writer=OpenpyxlExcelHandler())
        if output.suffix.lower() == ".xlsx":
            use_case.to_excel(output)
        else:
            use_case.to_csv(output)
        logger.info("export_finished", path=str(output))
        return 0
    finally:
        repository.close()


if __name__ == "__main__":
    sys.exit(main())
