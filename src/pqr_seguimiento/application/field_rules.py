"""Reglas en cascada de las casillas de gestiones adicionales.

Cada regla dice: cuando `field` toma `value`, se vacían `clear`, se fuerzan
los valores de `force` y, si el caso está en `revert_from`, vuelve a
`revert_to`. Un único aplicador interpreta la tabla.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pqr_seguimiento.domain.entities import (
    ADJUSTMENT_FIELDS,
    ADJUSTMENT_FLAG,
    ASSURANCE_FIELDS,
    ASSURANCE_FLAG,
    BOOLEAN_FIELDS,
    CANCELLATION_FIELDS,
    CANCELLATION_FLAG,
    DISPATCH_FLAG,
    REFUND_FIELDS,
    REFUND_FLAG,
    CaseStatus,
    is_truthy,
)


@dataclass(frozen=True)
class FieldRule:
    field: str
    value: Any
    clear: tuple[str, ...] = ()
    force: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    revert_from: Optional[CaseStatus] = None
    revert_to: Optional[CaseStatus] = None


def _forced(**values: Any) -> Mapping[str, Any]:
    return MappingProxyType(values)


FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule(ASSURANCE_FLAG, True, force=_forced(**{DISPATCH_FLAG: False})),
    FieldRule(CANCELLATION_FLAG, True, force=_forced(**{DISPATCH_FLAG: False})),
    FieldRule(ADJUSTMENT_FLAG, True, force=_forced(**{DISPATCH_FLAG: False})),
    FieldRule(
        DISPATCH_FLAG,
        True,
        clear=ASSURANCE_FIELDS + CANCELLATION_FIELDS + ADJUSTMENT_FIELDS,
        force=_forced(
            **{
                ASSURANCE_FLAG: False,
                CANCELLATION_FLAG: False,
                ADJUSTMENT_FLAG: False,
                REFUND_FLAG: False,
            }
        ),
        revert_from=CaseStatus.PENDIENTE_AJUSTES,
        revert_to=CaseStatus.PENDIENTE,
    ),
    FieldRule(ASSURANCE_FLAG, False, clear=ASSURANCE_FIELDS),
    FieldRule(CANCELLATION_FLAG, False, clear=CANCELLATION_FIELDS),
    FieldRule(ADJUSTMENT_FLAG, False, clear=ADJUSTMENT_FIELDS, force=_forced(**{REFUND_FLAG: False})),
    FieldRule(REFUND_FLAG, False, clear=REFUND_FIELDS),
)


def _coerce(name: str, value: Any) -> Any:
    return is_truthy(value) if name in BOOLEAN_FIELDS else value


def apply_field_rules(
    fields: dict[str, Any],
    changes: dict[str, Any],
    rules: tuple[FieldRule, ...] = FIELD_RULES,
) -> dict[str, Any]:
    """Retorna los campos resultantes de aplicar `changes` y sus cascadas."""
    result = dict(fields)
    for name, raw_value in changes.items():
        value = _coerce(name, raw_value)
        result[name] = value
        for rule in rules:
            if rule.field != name or rule.value != value:
                continue
            for cleared in rule.clear:
                result[cleared] = ""
            result.update(rule.force)
            if rule.revert_from is not None and result.get("Estado_Gestion") == rule.revert_from.value:
                result["Estado_Gestion"] = rule.revert_to.value
    return result
