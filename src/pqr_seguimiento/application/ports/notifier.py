from typing import Protocol


class Notifier(Protocol):
    """Superficie única de mensajes al operador."""

    def notify(self, message: str) -> None: ...

    def confirm(self, message: str) -> bool:
        """Pide confirmación explícita. False aborta la operación."""
        ...
