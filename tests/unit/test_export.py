import json
from unittest.mock import MagicMock

import pytest

from pqr_seguimiento.application.csv_parser import parse_csv
from pqr_seguimiento.application.use_cases.export_cases import (
    EXPORT_BASE_HEADERS,
    ExportCasesUseCase,
    cases_to_csv,
    cases_to_dataframe,
    export_headers,
)
from tests.factories import FakeCaseRepository, make_case


class TestExportHeaders:
    def test_base_headers_first_then_extras(self):
        headers = export_headers([make_case(Campo_Extra="x"), make_case("2", Otro="y")])
        assert headers[: len(EXPORT_BASE_HEADERS)] == list(EXPORT_BASE_HEADERS)
        assert headers[-2:] == ["Campo_Extra", "Otro"]

    def test_no_duplicates(self):
        headers = export_headers([make_case(), make_case("2")])
        assert len(headers) == len(set(headers))


class TestCasesToCsv:
    def test_every_cell_is_quoted(self):
        text = cases_to_csv([make_case()])
        header, row = text.strip().split("\n")
        assert header.startswith('"SN","CUN"')
        assert row.startswith('"100","CUN-100"')

    def test_booleans_and_histories(self):
        case = make_case(
            Despacho_Respuesta_Checked=True,
            Observaciones_Historial=[{"text": "dijo \"hola\"", "timestamp": "t"}],
        )
        df = cases_to_dataframe([case])
        assert df.loc[0, "Despacho_Respuesta_Checked"] == "true"
        assert df.loc[0, "requiereBaja"] == "false"
        assert json.loads(df.loc[0, "Observaciones_Historial"]) == [{"text": 'dijo "hola"', "timestamp": "t"}]

    def test_missing_fields_are_empty(self):
        df = cases_to_dataframe([make_case()])
        assert df.loc[0, "Radicado_SIC"] == ""

    def test_parses_back(self):
        cases = [
            make_case("100", Estado_Gestion="Iniciado", obs="línea uno\nlínea, dos"),
            make_case("200", Estado_Gestion="Resuelto"),
        ]
        parsed = parse_csv(cases_to_csv(cases))
        assert [row["SN"] for row in parsed.data] == ["100", "200"]
        assert [row["Estado_Gestion"] for row in parsed.data] == ["Iniciado", "Resuelto"]
        assert parsed.data[0]["obs"] == "línea uno\nlínea, dos"


class TestExportCasesUseCase:
    def test_to_csv_writes_all_cases(self, tmp_path):
        repository = FakeCaseRepository([make_case("1"), make_case("2")])
        output = ExportCasesUseCase(repository).to_csv(tmp_path / "out" / "casos.csv")
        assert len(parse_csv(output.read_text(encoding="utf-8")).data) == 2

    def test_to_csv_with_selection(self, tmp_path):
        repository = FakeCaseRepository([make_case("1"), make_case("2")])
        selected = [repository.find_by_sn("2")]
        output = ExportCasesUseCase(repository).to_csv(tmp_path / "casos.csv", selected)
        assert [row["SN"] for row in parse_csv(output.read_text(encoding="utf-8")).data] == ["2"]

    def test_to_excel_uses_writer(self, tmp_path):
        writer = MagicMock()
        repository = FakeCaseRepository([make_case("1")])
        ExportCasesUseCase(repository, excel_writer=writer).to_excel(tmp_path / "casos.xlsx")
        df, path = writer.write.call_args[0]
        assert list(df["SN"]) == ["1"]
        assert path == tmp_path / "casos.xlsx"

    def test_to_excel_without_writer(self, tmp_path):
        with pytest.raises(ValueError):
            ExportCasesUseCase(FakeCaseRepository()).to_excel(tmp_path / "casos.xlsx")
