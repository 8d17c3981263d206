from pqr_seguimiento.application.field_rules import FIELD_RULES, FieldRule, apply_field_rules
from pqr_seguimiento.domain.entities import ASSURANCE_FIELDS
from tests.factories import make_case


def _assured_case(**extra):
    return make_case(
        Requiere_Aseguramiento_Facturas=True,
        ID_Aseguramiento="A-1",
        Corte_Facturacion="15",
        Cuenta="123",
        **extra,
    )


class TestDispatchRule:
    def test_dispatch_clears_ancillary_work(self):
        case = _assured_case(requiereBaja=True, numeroOrdenBaja="OB-9")
        result = apply_field_rules(case.fields, {"Despacho_Respuesta_Checked": True})
        assert result["Despacho_Respuesta_Checked"] is True
        assert result["Requiere_Aseguramiento_Facturas"] is False
        assert result["requiereBaja"] is False
        assert result["numeroOrdenBaja"] == ""
        assert all(result[name] == "" for name in ASSURANCE_FIELDS)

    def test_dispatch_reverts_pending_adjustments(self):
        case = make_case(Estado_Gestion="Pendiente Ajustes", requiereAjuste=True, numeroTT="TT-1")
        result = apply_field_rules(case.fields, {"Despacho_Respuesta_Checked": "true"})
        assert result["Estado_Gestion"] == "Pendiente"
        assert result["requiereAjuste"] is False
        assert result["numeroTT"] == ""

    def test_dispatch_keeps_other_statuses(self):
        case = make_case(Estado_Gestion="Iniciado")
        result = apply_field_rules(case.fields, {"Despacho_Respuesta_Checked": True})
        assert result["Estado_Gestion"] == "Iniciado"


class TestAncillaryRules:
    def test_marking_ancillary_unchecks_dispatch(self):
        case = make_case(Despacho_Respuesta_Checked=True)
        result = apply_field_rules(case.fields, {"requiereBaja": True})
        assert result["requiereBaja"] is True
        assert result["Despacho_Respuesta_Checked"] is False

    def test_unmarking_assurance_clears_its_fields(self):
        result = apply_field_rules(_assured_case().fields, {"Requiere_Aseguramiento_Facturas": False})
        assert result["ID_Aseguramiento"] == ""
        assert result["Cuenta"] == ""

    def test_unmarking_adjustment_clears_refund(self):
        case = make_case(
            requiereAjuste=True,
            numeroTT="TT-1",
            estadoTT="Aplicado",
            requiereDevolucionDinero=True,
            cantidadDevolver="5000",
        )
        result = apply_field_rules(case.fields, {"requiereAjuste": False})
        assert result["requiereDevolucionDinero"] is False
        assert result["numeroTT"] == ""
        assert result["cantidadDevolver"] == ""

    def test_unmarking_refund_keeps_ticket(self):
        case = make_case(requiereAjuste=True, numeroTT="TT-1", requiereDevolucionDinero=True)
        result = apply_field_rules(case.fields, {"requiereDevolucionDinero": "false"})
        assert result["numeroTT"] == "TT-1"
        assert result["requiereDevolucionDinero"] is False

    def test_plain_fields_pass_through(self):
        result = apply_field_rules(make_case().fields, {"obs": "nuevo"})
        assert result["obs"] == "nuevo"

    def test_input_is_not_mutated(self):
        case = _assured_case()
        apply_field_rules(case.fields, {"Despacho_Respuesta_Checked": True})
        assert case.get("ID_Aseguramiento") == "A-1"


class TestCustomRules:
    def test_rules_table_is_pluggable(self):
        rules = (FieldRule("Radicado_SIC", "", clear=("Fecha_Vencimiento_Decreto",)),)
        fields = {"Radicado_SIC": "R-1", "Fecha_Vencimiento_Decreto": "2025-04-01"}
        result = apply_field_rules(fields, {"Radicado_SIC": ""}, rules)
        assert result["Fecha_Vencimiento_Decreto"] == ""

    def test_every_default_rule_targets_a_flag(self):
        assert all(isinstance(rule.value, bool) for rule in FIELD_RULES)
