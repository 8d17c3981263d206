from pathlib import Path
from typing import IO, Any

import structlog

LOG_FILE_NAME = "pqr_seguimiento.log"

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}

# Archivo abierto por la configuración vigente; se cierra al reconfigurar.
_log_file: IO[str] | None = None


def setup_logging(log_level: str = "INFO", log_dir: Path | None = None) -> None:
    """Consola legible por defecto; con `log_dir`, líneas JSON en `pqr_seguimiento.log`."""
    global _log_file
    close_log_file()

    renderer: Any
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        _log_file = (log_dir / LOG_FILE_NAME).open("a", encoding="utf-8")
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
        factory: Any = structlog.WriteLoggerFactory(file=_log_file)
    else:
        renderer = structlog.dev.ConsoleRenderer()
        factory = structlog.PrintLoggerFactory()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_LEVELS.get(log_level.upper(), 20)),
        context_class=dict,
        logger_factory=factory,
        cache_logger_on_first_use=False,
    )


def close_log_file() -> None:
    global _log_file
    if _log_file is not None:
        _log_file.close()
        _log_file = None
