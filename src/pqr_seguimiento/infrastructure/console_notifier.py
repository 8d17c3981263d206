"""Notificador por consola para los scripts de operación."""

from __future__ import annotations

import sys
from typing import Callable, TextIO

import structlog

logger = structlog.get_logger()

_AFFIRMATIVE = {"s", "si", "sí", "y", "yes"}


class ConsoleNotifier:
    """Muestra mensajes al operador y pide confirmaciones por entrada estándar."""

    def __init__(
        self,
        stream: TextIO | None = None,
        ask: Callable[[str], str] | None = None,
        assume_yes: bool = False,
    ) -> None:
        self._stream = stream or sys.stdout
        self._ask = ask or input
        self._assume_yes = assume_yes

    def notify(self, message: str) -> None:
        print(message, file=self._stream)
        logger.info("operator_notified", message=message)

    def confirm(self, message: str) -> bool:
        if self._assume_yes:
            logger.info("operator_confirmation_assumed", message=message)
            return True
        answer = self._ask(f"{message} [s/N]: ").strip().lower()
        confirmed = answer in _AFFIRMATIVE
        logger.info("operator_confirmation", message=message, confirmed=confirmed)
        return confirmed
