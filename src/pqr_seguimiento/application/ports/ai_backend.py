from typing import Any, Protocol


class AIBackend(Protocol):
    def generate(self, prompt: str, response_schema: dict[str, Any] | None = None) -> str:
        """Retorna el campo `text` de la respuesta (JSON si se envió schema)."""
        ...

    def generate_from_image(
        self,
        prompt: str,
        image_base64: str,
        mime_type: str,
        response_schema: dict[str, Any] | None = None,
    ) -> str: ...
