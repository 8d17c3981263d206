"""Parser de archivos CSV de casos.

Acepta `,` o `;` como separador (se elige por mayoría en la línea de
encabezados), campos entre comillas con separadores y saltos de línea
embebidos, y `""` como comilla literal. Nunca lanza excepciones por comillas
mal formadas: una comilla sin cerrar consume el resto del archivo.
"""

from __future__ import annotations

from typing import Callable

import structlog

from pqr_seguimiento.application.dtos import ParsedCsv

logger = structlog.get_logger()

NUIP_FIELD = "Nro_Nuip_Cliente"
CLIENT_NAME_FIELD = "Nombre_Cliente"
NUIP_MAX_LENGTH = 9


def detect_delimiter(header_line: str) -> str:
    return "," if header_line.count(",") >= header_line.count(";") else ";"


def parse_csv(text: str) -> ParsedCsv:
    header_end = text.find("\n")
    if header_end == -1:
        return ParsedCsv()

    header_line = text[:header_end].strip()
    delimiter = detect_delimiter(header_line)

    rows = _split_rows(text[header_end + 1 :], delimiter)
    if not rows:
        return ParsedCsv()

    headers = [h.strip().replace('"', "") for h in header_line.split(delimiter)]
    data = []
    for raw_row in rows:
        record: dict[str, str] = {}
        for index, header in enumerate(headers):
            value = raw_row[index] if index < len(raw_row) else ""
            record[header] = normalize_value(header, value)
        data.append(record)

    logger.debug("csv_parsed", delimiter=delimiter, columns=len(headers), rows=len(data))
    return ParsedCsv(headers=headers, data=data)


def _split_rows(body: str, delimiter: str) -> list[list[str]]:
    rows: list[list[str]] = []
    current_row: list[str] = []
    current_field: list[str] = []
    in_quotes = False

    i = 0
    length = len(body)
    while i < length:
        char = body[i]
        next_char = body[i + 1] if i + 1 < length else ""

        if in_quotes:
            if char == '"' and next_char == '"':
                current_field.append('"')
                i += 1
            elif char == '"':
                in_quotes = False
            else:
                current_field.append(char)
        elif char == '"':
            in_quotes = True
        elif char == delimiter:
            current_row.append("".join(current_field))
            current_field = []
        elif char == "\n":
            current_row.append("".join(current_field))
            _append_if_not_blank(rows, current_row)
            current_row = []
            current_field = []
        elif char != "\r":
            current_field.append(char)
        i += 1

    current_row.append("".join(current_field))
    _append_if_not_blank(rows, current_row)
    return rows


def _append_if_not_blank(rows: list[list[str]], row: list[str]) -> None:
    if "".join(row).strip():
        rows.append(row)


def _truncate_nuip(value: str) -> str:
    # Documentos que empiezan por 8 o 9 llegan con dígito de verificación pegado
    if value[:1] in ("8", "9") and len(value) > NUIP_MAX_LENGTH:
        return value[:NUIP_MAX_LENGTH]
    return value


FIELD_NORMALIZERS: dict[str, Callable[[str], str]] = {
    NUIP_FIELD: _truncate_nuip,
    CLIENT_NAME_FIELD: str.upper,
}


def normalize_value(header: str, raw: str) -> str:
    value = raw.strip()
    if value.startswith('"') and value.endswith('"'):
        value = value[1:-1].replace('""', '"')
    normalizer = FIELD_NORMALIZERS.get(header)
    return normalizer(value) if normalizer else value
