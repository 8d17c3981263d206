"""Vigila los casos en estado Iniciado y avisa cuando superan el umbral.

Usage:
    python scripts/watch_stuck_cases.py [path/to/config.yaml]
"""

import signal
import sys
import threading
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pqr_seguimiento.application.alerts import StuckCaseMonitor
from pqr_seguimiento.application.config import load_config
from pqr_seguimiento.infrastructure.console_notifier import ConsoleNotifier
from pqr_seguimiento.infrastructure.logging_config import setup_logging
from pqr_seguimiento.infrastructure.sqlite_case_repository import SqliteCaseRepository


def main() -> int:
    config = load_config(sys.argv[1] if len(sys.argv) > 1 else "configs/configuration.yaml")
    setup_logging(log_level=config.logging.level)

    tz = ZoneInfo(config.lifecycle.timezone)
    repository = SqliteCaseRepository(config.store.db_path, config.store.collection_path)
    monitor = StuckCaseMonitor(
        notifier=ConsoleNotifier(),
        clock=lambda: datetime.now(tz),
        threshold_minutes=config.lifecycle.stuck_alert_minutes,
    )
    stop_event = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop_event.set())

    try:
        monitor.run(repository.list_cases, stop_event, config.lifecycle.poll_interval_seconds)
        return 0
    finally:
        repository.close()


if __name__ == "__main__":
    sys.exit(main())
