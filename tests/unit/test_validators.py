from pqr_seguimiento.application.config import Catalogs
from pqr_seguimiento.application.validators import (
    catalog_errors,
    has_resolution_evidence,
    validate_adjustment,
    validate_ancillary_requests,
    validate_assurance,
    validate_cancellation,
    validate_decree,
)
from tests.factories import make_case


class TestAssurance:
    def test_not_required_when_unchecked(self):
        assert validate_assurance(make_case()) == []

    def test_id_is_enough(self):
        assert validate_assurance(make_case(Requiere_Aseguramiento_Facturas=True, ID_Aseguramiento="A-1")) == []

    def test_without_id_requires_all_fields(self):
        errors = validate_assurance(make_case(Requiere_Aseguramiento_Facturas=True))
        assert errors[0].startswith("Aseguramiento sin ID")
        assert "Corte de facturación debe ser numérico" in errors
        assert "Cuenta es requerido" in errors

    def test_without_id_complete_data_passes(self):
        case = make_case(
            Requiere_Aseguramiento_Facturas=True,
            Corte_Facturacion="15",
            Cuenta="987",
            Operacion_Aseguramiento="Aseguramiento FS",
            Tipo_Aseguramiento="Calidad de impresión",
            Mes_Aseguramiento="marzo",
        )
        assert validate_assurance(case) == []

    def test_non_numeric_cut_rejected(self):
        case = make_case(
            Requiere_Aseguramiento_Facturas=True,
            Corte_Facturacion="quince",
            Cuenta="987",
            Operacion_Aseguramiento="Aseguramiento FS",
            Tipo_Aseguramiento="Calidad de impresión",
            Mes_Aseguramiento="marzo",
        )
        assert "Corte de facturación debe ser numérico" in validate_assurance(case)

    def test_values_outside_catalog_rejected(self):
        case = make_case(
            Requiere_Aseguramiento_Facturas=True,
            Corte_Facturacion="15",
            Cuenta="987",
            Operacion_Aseguramiento="Aseguramiento FS",
            Tipo_Aseguramiento="Calidad de impresión",
            Mes_Aseguramiento="marzo",
        )
        errors = validate_assurance(case, Catalogs(assurance_months=("enero", "febrero")))
        assert errors == [
            "Aseguramiento sin ID: se requieren todos los datos de aseguramiento",
            "Mes de aseguramiento: valor no válido 'marzo'",
        ]


class TestCancellation:
    def test_requires_order_number(self):
        assert validate_cancellation(make_case(requiereBaja=True)) == ["Número de orden de baja es requerido"]

    def test_order_number_present(self):
        assert validate_cancellation(make_case(requiereBaja=True, numeroOrdenBaja="OB-1")) == []


class TestAdjustment:
    def test_ticket_must_be_applied(self):
        errors = validate_adjustment(make_case(requiereAjuste=True, numeroTT="TT-1", estadoTT="Pendiente"))
        assert errors == ["Estado del TT debe ser 'Aplicado'"]

    def test_ticket_state_outside_catalog(self):
        case = make_case(requiereAjuste=True, numeroTT="TT-1", estadoTT="Cerrado")
        assert validate_adjustment(case) == [
            "Estado del TT: valor no válido 'Cerrado'",
            "Estado del TT debe ser 'Aplicado'",
        ]

    def test_refund_requires_positive_amount(self):
        case = make_case(
            requiereAjuste=True,
            numeroTT="TT-1",
            estadoTT="Aplicado",
            requiereDevolucionDinero=True,
            cantidadDevolver="0",
            idEnvioDevoluciones="ENV-1",
            fechaEfectivaDevolucion="2025-03-09",
        )
        assert validate_adjustment(case) == ["Cantidad a devolver debe ser mayor a cero"]

    def test_refund_non_numeric_amount(self):
        case = make_case(
            requiereAjuste=True,
            numeroTT="TT-1",
            estadoTT="Aplicado",
            requiereDevolucionDinero=True,
            cantidadDevolver="mucho",
        )
        errors = validate_adjustment(case)
        assert "Cantidad a devolver debe ser un número" in errors
        assert "ID de envío a devoluciones es requerido" in errors
        assert "Fecha efectiva de devolución es requerida" in errors

    def test_complete_refund_passes(self):
        case = make_case(
            requiereAjuste=True,
            numeroTT="TT-1",
            estadoTT="Aplicado",
            requiereDevolucionDinero=True,
            cantidadDevolver="$50.000",
            idEnvioDevoluciones="ENV-1",
            fechaEfectivaDevolucion="2025-03-09",
        )
        assert validate_adjustment(case) == []


class TestAggregates:
    def test_ancillary_requests_collects_all(self):
        case = make_case(requiereBaja=True, requiereAjuste=True)
        assert len(validate_ancillary_requests(case)) == 3

    def test_resolution_evidence(self):
        assert not has_resolution_evidence(make_case())
        assert has_resolution_evidence(make_case(Despacho_Respuesta_Checked=True))
        assert has_resolution_evidence(make_case(requiereBaja=True))

    def test_decree_requirements(self):
        assert len(validate_decree(make_case())) == 4

    def test_decree_complete(self):
        case = make_case(
            Despacho_Respuesta_Checked=True,
            Escalamiento_Historial=[{"areaEscalada": "Legal"}],
            Radicado_SIC="SIC-1",
            Fecha_Vencimiento_Decreto="2025-04-01",
        )
        assert validate_decree(case) == []


def test_catalog_errors_ignore_blank_and_absent_fields():
    assert catalog_errors({"Prioridad": "", "SN": "100"}, Catalogs()) == []
    assert catalog_errors({"Prioridad": "Alta"}, Catalogs()) == []
    assert catalog_errors({"Prioridad": "Alta"}, Catalogs(priorities=("Baja",))) == [
        "Prioridad: valor no válido 'Alta'"
    ]
