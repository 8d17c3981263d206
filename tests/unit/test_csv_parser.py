from pqr_seguimiento.application.csv_parser import detect_delimiter, normalize_value, parse_csv


class TestDetectDelimiter:
    def test_comma_by_default(self):
        assert detect_delimiter("SN") == ","

    def test_semicolon_when_majority(self):
        assert detect_delimiter("SN;CUN;obs,extra") == ";"

    def test_tie_prefers_comma(self):
        assert detect_delimiter("SN;CUN,obs") == ","


class TestParseCsv:
    def test_simple_comma_file(self):
        parsed = parse_csv("SN,CUN\n1,2\n")
        assert parsed.headers == ["SN", "CUN"]
        assert parsed.data == [{"SN": "1", "CUN": "2"}]

    def test_semicolon_file(self):
        parsed = parse_csv("SN;CUN\n1;2\n3;4")
        assert [row["SN"] for row in parsed.data] == ["1", "3"]

    def test_quoted_field_with_delimiter_and_newline(self):
        parsed = parse_csv('SN,obs\n1,"hola, mundo\nlinea dos"\n')
        assert parsed.data[0]["obs"] == "hola, mundo\nlinea dos"

    def test_escaped_quotes(self):
        parsed = parse_csv('SN,obs\n1,"dijo ""no"""\n')
        assert parsed.data[0]["obs"] == 'dijo "no"'

    def test_crlf_line_endings(self):
        parsed = parse_csv("SN,CUN\r\n1,2\r\n3,4\r\n")
        assert parsed.headers == ["SN", "CUN"]
        assert parsed.data[1] == {"SN": "3", "CUN": "4"}

    def test_quoted_headers_are_cleaned(self):
        parsed = parse_csv('"SN","CUN"\n"1","2"\n')
        assert parsed.headers == ["SN", "CUN"]
        assert parsed.data[0]["CUN"] == "2"

    def test_blank_lines_are_skipped(self):
        parsed = parse_csv("SN\n\n1\n   \n2\n\n")
        assert [row["SN"] for row in parsed.data] == ["1", "2"]

    def test_short_rows_are_padded(self):
        parsed = parse_csv("SN,CUN,obs\n1\n")
        assert parsed.data[0] == {"SN": "1", "CUN": "", "obs": ""}

    def test_header_only_returns_empty(self):
        parsed = parse_csv("SN,CUN\n")
        assert parsed.headers == []
        assert parsed.data == []

    def test_no_newline_returns_empty(self):
        assert parse_csv("SN,CUN").data == []

    def test_unterminated_quote_consumes_rest(self):
        parsed = parse_csv('SN,obs\n1,"abierto\n2,x\n')
        assert len(parsed.data) == 1
        assert parsed.data[0]["obs"] == "abierto\n2,x"

    def test_client_name_uppercased(self):
        parsed = parse_csv("SN,Nombre_Cliente\n1,  ana pérez \n")
        assert parsed.data[0]["Nombre_Cliente"] == "ANA PÉREZ"


class TestNormalizeValue:
    def test_nuip_starting_with_8_truncated(self):
        assert normalize_value("Nro_Nuip_Cliente", "8001234567") == "800123456"

    def test_nuip_starting_with_9_truncated(self):
        assert normalize_value("Nro_Nuip_Cliente", "9001234561") == "900123456"

    def test_nuip_other_prefix_untouched(self):
        assert normalize_value("Nro_Nuip_Cliente", "1012345678") == "1012345678"

    def test_short_nuip_untouched(self):
        assert normalize_value("Nro_Nuip_Cliente", "900123") == "900123"

    def test_surrounding_quotes_removed(self):
        assert normalize_value("obs", ' "texto" ') == "texto"

    def test_other_fields_only_trimmed(self):
        assert normalize_value("obs", "  Hola  ") == "Hola"
