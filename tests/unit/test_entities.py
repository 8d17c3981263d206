from decimal import Decimal

import pytest

from pqr_seguimiento.domain.entities import CaseRecord, CaseStatus, is_blank, is_truthy
from pqr_seguimiento.domain.value_objects import Money, is_number
from tests.factories import make_case


class TestCaseRecord:
    def test_fields_are_copied(self):
        source = {"SN": "1", "Observaciones_Historial": []}
        case = CaseRecord(fields=source)
        source["Observaciones_Historial"].append({"text": "x"})
        assert case.history("Observaciones_Historial") == []

    def test_status_defaults_to_pendiente(self):
        assert CaseRecord(fields={"SN": "1"}).status == "Pendiente"

    def test_priority_defaults_to_not_available(self):
        assert CaseRecord(fields={"SN": "1"}).priority == "N/A"

    def test_is_decreed_by_sn_original(self):
        assert not make_case().is_decreed
        assert make_case("100-D1", SN_Original="100").is_decreed

    def test_append_history_does_not_touch_original(self):
        case = make_case()
        updated = case.append_history("Observaciones_Historial", {"text": "nota"})
        assert case.history("Observaciones_Historial") == []
        assert updated.history("Observaciones_Historial") == [{"text": "nota"}]

    def test_with_status_accepts_enum(self):
        assert make_case().with_status(CaseStatus.LECTURA).status == "Lectura"

    def test_with_doc_id_keeps_fields(self):
        case = make_case().with_doc_id("abc")
        assert case.doc_id == "abc"
        assert case.sn == "100"

    def test_changed_fields_vs(self):
        old = make_case(obs="a")
        new = old.with_fields({"obs": "b", "Estado_Gestion": "Lectura"})
        assert new.changed_fields_vs(old) == {"obs": "b", "Estado_Gestion": "Lectura"}
        assert new.changed_fields_vs(old, frozenset({"Estado_Gestion"})) == {"obs": "b"}

    def test_pending_ancillary_work(self):
        assert not make_case().has_pending_ancillary_work
        assert make_case(requiereBaja="true").has_pending_ancillary_work

    def test_frozen(self):
        with pytest.raises(AttributeError):
            make_case().doc_id = "x"


class TestHelpers:
    @pytest.mark.parametrize("value", [True, "true", "TRUE", "1", "si", "sí", "x"])
    def test_truthy(self, value):
        assert is_truthy(value)

    @pytest.mark.parametrize("value", [False, None, "", "false", "0", "no"])
    def test_falsy(self, value):
        assert not is_truthy(value)

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("   ")
        assert not is_blank(0)


class TestMoney:
    def test_thousands_with_dot(self):
        assert Money.parse("$50.000").amount == Decimal("50000")

    def test_latin_format(self):
        assert Money.parse("1.234,56").amount == Decimal("1234.56")

    def test_us_format(self):
        assert Money.parse("1,234.56").amount == Decimal("1234.56")

    def test_single_comma_is_decimal(self):
        assert Money.parse("12,5").amount == Decimal("12.5")

    def test_multiple_dots_are_thousands(self):
        assert Money.parse("1.234.567").amount == Decimal("1234567")

    def test_numeric_input(self):
        assert Money.parse(15).amount == Decimal("15")

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", True])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            Money.parse(value)

    def test_is_positive(self):
        assert Money.parse("10").is_positive
        assert not Money.parse("0").is_positive

    def test_is_number(self):
        assert is_number("15")
        assert not is_number("")
        assert not is_number("quince")
