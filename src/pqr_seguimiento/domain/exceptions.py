"""Excepciones de negocio del seguimiento de casos."""


class PQRError(Exception):
    """Base para errores del seguimiento de casos."""


class CaseValidationError(PQRError):
    """Faltan datos requeridos para una transición u operación."""

    def __init__(self, errors: list[str], action: str = "la operación") -> None:
        self.errors = errors
        self.action = action
        super().__init__(f"No se puede completar {action}: " + "; ".join(errors))


class InvalidTransitionError(PQRError):
    """La transición de estado no está permitida desde el estado actual."""

    def __init__(self, current: str, target: str, reason: str = "") -> None:
        self.current = current
        self.target = target
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Transición no permitida: '{current}' → '{target}'{detail}")


class StoreError(PQRError):
    """Fallo de lectura/escritura en el almacén de casos."""


class CollectionUnavailableError(StoreError):
    """La colección completa no es accesible: aborta cualquier proceso en curso."""


class BatchWriteError(StoreError):
    """Un lote atómico no pudo aplicarse; ningún documento del lote cambió."""

    def __init__(self, operation_count: int, reason: str) -> None:
        self.operation_count = operation_count
        self.reason = reason
        super().__init__(f"Lote de {operation_count} operaciones fallido: {reason}")


class CaseNotFoundError(StoreError):
    """El documento solicitado no existe en la colección."""


class AIBackendError(PQRError):
    """El backend de IA respondió con error o con un contenido no interpretable."""


class ImportAbortedError(PQRError):
    """La carga del archivo no puede continuar."""
