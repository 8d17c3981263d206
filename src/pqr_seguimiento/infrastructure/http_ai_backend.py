"""Cliente del backend proxy de IA (`POST /api/generate`)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from pqr_seguimiento.domain.exceptions import AIBackendError

logger = structlog.get_logger()


class HttpAIBackend:
    """
    Envía `{prompt, responseSchema}` y retorna el campo `text` de la respuesta.

    Las respuestas no-2xx traen `{error}`; ese mensaje se propaga tal cual en
    `AIBackendError`. No hay reintentos.
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 60.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._client = client or httpx.Client(timeout=timeout_seconds)

    def generate(self, prompt: str, response_schema: dict[str, Any] | None = None) -> str:
        return self._post({"prompt": prompt, "responseSchema": response_schema})

    def generate_from_image(
        self,
        prompt: str,
        image_base64: str,
        mime_type: str,
        response_schema: dict[str, Any] | None = None,
    ) -> str:
        return self._post(
            {
                "prompt": prompt,
                "responseSchema": response_schema,
                "image": image_base64,
                "mimeType": mime_type,
            }
        )

    def close(self) -> None:
        self._client.close()

    def _post(self, payload: dict[str, Any]) -> str:
        try:
            response = self._client.post(self._url, json=payload)
        except httpx.TimeoutException as e:
            logger.error("ai_backend_timeout", url=self._url)
            raise AIBackendError("Tiempo de espera agotado al llamar al backend") from e
        except httpx.RequestError as e:
            logger.error("ai_backend_request_failed", url=self._url, error=str(e))
            raise AIBackendError(f"No se pudo contactar el backend: {e}") from e

        if not response.is_success:
            message = self._error_message(response)
            logger.error("ai_backend_error", status_code=response.status_code, error=message)
            raise AIBackendError(message)

        try:
            body = response.json()
        except ValueError as e:
            raise AIBackendError("Respuesta del backend no es JSON válido") from e
        text = body.get("text") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise AIBackendError("Respuesta del backend sin campo 'text'")
        logger.debug("ai_backend_response", chars=len(text))
        return text

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"Error del servidor: {response.status_code}"
