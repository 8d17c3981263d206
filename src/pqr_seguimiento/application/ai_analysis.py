"""Análisis de casos generados por el backend de IA."""

from __future__ import annotations

import base64
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from pqr_seguimiento.application.config import Catalogs
from pqr_seguimiento.application.ports.ai_backend import AIBackend
from pqr_seguimiento.domain.entities import NOT_AVAILABLE, CaseRecord, Priority
from pqr_seguimiento.domain.exceptions import AIBackendError

logger = structlog.get_logger()

ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "analisis_ia": {"type": "STRING"},
        "categoria_reclamo": {"type": "STRING"},
        "prioridad": {"type": "STRING"},
    },
    "propertyOrdering": ["analisis_ia", "categoria_reclamo", "prioridad"],
}

ESCALATION_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {"area": {"type": "STRING"}, "motivo": {"type": "STRING"}},
    "propertyOrdering": ["area", "motivo"],
}


class AnalysisResponse(BaseModel):
    """Respuesta estructurada del análisis inicial."""

    analisis_ia: str | None = None
    categoria_reclamo: str | None = None
    prioridad: str | None = None


class EscalationSuggestion(BaseModel):
    area: str = ""
    motivo: str = ""


ResponseModel = TypeVar("ResponseModel", bound=BaseModel)

CASE_PROMPT_FIELDS = (
    ("SN", "SN"),
    ("CUN", "CUN"),
    ("Fecha Radicado", "Fecha Radicado"),
    ("Nombre_Cliente", "Nombre Cliente"),
    ("Estado", "Estado"),
    ("Nivel_1", "Nivel 1"),
    ("Nivel_2", "Nivel 2"),
    ("Nivel_3", "Nivel 3"),
    ("Nivel_4", "Nivel 4"),
    ("Nivel_5", "Nivel 5"),
    ("obs", "Observaciones Iniciales (obs)"),
    ("Tipo_Operacion", "Tipo de Operación"),
)


def describe_case(case: CaseRecord | dict[str, Any]) -> str:
    fields = case.fields if isinstance(case, CaseRecord) else case
    return "\n".join(
        f"    {label}: {fields.get(name) or NOT_AVAILABLE}" for name, label in CASE_PROMPT_FIELDS
    )


def _history_text(case: CaseRecord) -> str:
    entries = case.history("Observaciones_Historial")
    if not entries:
        return "    (sin observaciones registradas)"
    return "\n".join(f"    - {e.get('timestamp', '')}: {e.get('text', '')}" for e in entries)


class CaseAnalysisService:
    def __init__(self, backend: AIBackend, catalogs: Catalogs | None = None) -> None:
        self._backend = backend
        self._catalogs = catalogs or Catalogs()

    def analyze_and_categorize(self, case: CaseRecord | dict[str, Any]) -> dict[str, str]:
        priorities = ", ".join(self._catalogs.priorities)
        prompt = (
            "Analiza el siguiente caso de reclamo y proporciona:\n"
            '1. Un "Analisis de la IA" conciso (máximo 200 palabras).\n'
            '2. Una "Categoria del reclamo" que sea específica y descriptiva (ej. "Solicitud de '
            'documentos contrato", "Error en facturación servicio internet", "Falla técnica línea '
            'telefónica"). Evita categorías de una sola palabra genérica como "Contrato" o '
            '"Facturación" si se puede ser más específico.\n'
            f"3. Una prioridad, una de: {priorities}.\n\n"
            f"    Detalles del Caso:\n{describe_case(case)}"
        )
        data = self._generate_model(prompt, ANALYSIS_SCHEMA, AnalysisResponse, "análisis")
        priority = (data.prioridad or "").strip()
        if priority not in self._catalogs.priorities:
            priority = Priority.MEDIA.value
        return {
            "Analisis de la IA": data.analisis_ia or NOT_AVAILABLE,
            "Categoria del reclamo": data.categoria_reclamo or NOT_AVAILABLE,
            "Prioridad": priority,
        }

    def summarize_facts(self, case: CaseRecord) -> dict[str, str]:
        prompt = (
            "Resume en un párrafo breve los hechos del siguiente reclamo de telecomunicaciones, "
            "en lenguaje claro y sin opiniones.\n\n"
            f"    Detalles del Caso:\n{describe_case(case)}\n"
            f"    Historial de observaciones:\n{_history_text(case)}"
        )
        return {"Resumen_Hechos_IA": self._generate_text(prompt, "resumen")}

    def project_response(self, case: CaseRecord) -> dict[str, str]:
        prompt = (
            "Redacta una proyección de respuesta formal al cliente para el siguiente reclamo, "
            "en español, dirigida al cliente por su nombre y respondiendo cada punto del reclamo.\n\n"
            f"    Detalles del Caso:\n{describe_case(case)}\n"
            f"    Análisis previo: {case.get('Analisis de la IA') or NOT_AVAILABLE}\n"
            f"    Historial de observaciones:\n{_history_text(case)}"
        )
        return {"Proyeccion_Respuesta_IA": self._generate_text(prompt, "proyección de respuesta")}

    def suggest_escalation(self, case: CaseRecord) -> dict[str, str]:
        options = "\n".join(
            f"    - {area}: {', '.join(self._catalogs.reasons_for(area))}"
            for area in self._catalogs.escalation_areas
        )
        prompt = (
            "Sugiere el área y el motivo de escalamiento más adecuados para este reclamo. "
            "Usa exactamente uno de los valores listados.\n\n"
            f"    Áreas y motivos:\n{options}\n\n"
            f"    Detalles del Caso:\n{describe_case(case)}"
        )
        data = self._generate_model(
            prompt, ESCALATION_SCHEMA, EscalationSuggestion, "sugerencia de escalamiento"
        )
        area = data.area.strip()
        motivo = data.motivo.strip()
        if area not in self._catalogs.escalation_areas:
            raise AIBackendError(f"Error IA (escalamiento): área sugerida desconocida '{area}'")
        if motivo not in self._catalogs.reasons_for(area):
            motivo = self._catalogs.reasons_for(area)[-1]
        return {"areaEscalada": area, "motivoEscalado": motivo}

    def transcribe_document(self, case: CaseRecord, image: bytes, mime_type: str) -> dict[str, str]:
        prompt = (
            f"Transcribe fielmente el texto del documento adjunto al caso {case.sn}. "
            "Conserva los números de radicado, fechas y montos tal como aparecen."
        )
        encoded = base64.b64encode(image).decode("ascii")
        try:
            text = self._backend.generate_from_image(prompt, encoded, mime_type)
        except AIBackendError as e:
            raise AIBackendError(f"Error IA (transcripción): {e}") from e
        logger.info("document_transcribed", sn=case.sn, mime_type=mime_type, chars=len(text))
        return {"Documento_Adjunto": text.strip()}

    def _generate_text(self, prompt: str, label: str) -> str:
        try:
            return self._backend.generate(prompt).strip()
        except AIBackendError as e:
            raise AIBackendError(f"Error IA ({label}): {e}") from e

    def _generate_model(
        self,
        prompt: str,
        schema: dict[str, Any],
        model: type[ResponseModel],
        label: str,
    ) -> ResponseModel:
        try:
            text = self._backend.generate(prompt, schema)
        except AIBackendError as e:
            raise AIBackendError(f"Error IA ({label}): {e}") from e
        try:
            return model.model_validate_json(text)
        except ValidationError as e:
            logger.warning("ai_response_invalid", label=label, errors=e.error_count())
            raise AIBackendError(f"Error IA ({label}): respuesta no es un JSON válido") from e
