"""Value objects del dominio."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


@dataclass(frozen=True)
class Money:
    """Value object para montos de devolución. Siempre Decimal, nunca float."""

    amount: Decimal
    currency: str = "COP"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Monto inválido: {self.amount}") from e

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @classmethod
    def parse(cls, value: object, currency: str = "COP") -> Money:
        """Interpreta montos escritos por operadores: `$50.000`, `1.234,56`, `1,234.56`."""
        if isinstance(value, Decimal):
            return cls(value, currency)
        if isinstance(value, bool):
            raise ValueError(f"Monto inválido: '{value}'")
        if isinstance(value, (int, float)):
            return cls(Decimal(str(value)), currency)
        s = str(value).strip().replace("$", "").replace(" ", "")
        if "." in s and "," in s:
            if s.rindex(".") > s.rindex(","):
                s = s.replace(",", "")
            else:
                s = s.replace(".", "").replace(",", ".")
        elif "," in s and s.count(",") == 1:
            s = s.replace(",", ".")
        elif "." in s and s.count(".") > 1:
            s = s.replace(".", "")
        elif "." in s and s.count(".") == 1:
            # Un solo punto con 3 dígitos finales = separador de miles (50.000 → 50000)
            if len(s.split(".")[1]) == 3:
                s = s.replace(".", "")
        try:
            amount = Decimal(s)
        except InvalidOperation as e:
            raise ValueError(f"Monto inválido: '{value}'") from e
        if not amount.is_finite():
            raise ValueError(f"Monto inválido: '{value}'")
        return cls(amount, currency)


def is_number(value: object) -> bool:
    """True si el valor se interpreta como número (corte de facturación, montos)."""
    if value is None or str(value).strip() == "":
        return False
    try:
        Money.parse(value)
    except ValueError:
        return False
    return True
