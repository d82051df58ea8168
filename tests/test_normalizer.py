"""
Tests for the Response Normalizer (raw export text → flat records).

We need to:
1. Strip a byte-order mark
2. Detect the delimiter from the "id" header
3. Handle quoted fields with delimiters and embedded newlines
4. Drop the trailing blank-id record
5. Fail cleanly on malformed input
"""

import pytest

from limetab.errors import MalformedInputError
from limetab.normalizer import detect_delimiter, load_export, normalize_export


class TestDelimiterDetection:
    """Auto-detecting the delimiter from the header."""

    @pytest.mark.parametrize("delimiter", [",", ";", "\t", "|"])
    def test_detects_delimiter(self, delimiter):
        text = f'"id"{delimiter}"Q1"\n1{delimiter}Y\n'
        assert detect_delimiter(text) == delimiter
        assert normalize_export(text) == [{"id": "1", "Q1": "Y"}]

    def test_missing_id_header(self):
        with pytest.raises(MalformedInputError, match="could not detect delimiter"):
            normalize_export('"token","Q1"\nabc,Y\n')

    def test_unquoted_id_header(self):
        with pytest.raises(MalformedInputError, match="could not detect delimiter"):
            normalize_export("id,Q1\n1,Y\n")

    def test_only_id_header(self):
        with pytest.raises(MalformedInputError, match="could not detect delimiter"):
            normalize_export('"id"')
        with pytest.raises(MalformedInputError, match="could not detect delimiter"):
            normalize_export('"id"\n1\n')

    def test_empty_text(self):
        with pytest.raises(MalformedInputError):
            normalize_export("")

    def test_explicit_delimiter_skips_detection(self):
        records = normalize_export("id;Q1\n1;Y\n", delimiter=";")
        assert records == [{"id": "1", "Q1": "Y"}]

    def test_bad_explicit_delimiter(self):
        with pytest.raises(MalformedInputError):
            normalize_export("id;Q1\n", delimiter=";;")


class TestParsing:
    """Parsing records out of the export text."""

    def test_trailing_blank_id_row_dropped(self):
        text = '"id","Q1"\n1,"Y"\n2,"N"\n,'
        records = normalize_export(text)
        assert records == [{"id": "1", "Q1": "Y"}, {"id": "2", "Q1": "N"}]

    def test_only_last_blank_row_dropped(self):
        text = '"id","Q1"\n,"A"\n1,"Y"\n'
        records = normalize_export(text)
        assert len(records) == 2
        assert records[0]["id"] == ""

    def test_bom_is_stripped(self):
        text = '\ufeff"id","Q1"\n1,"Y"\n'
        assert normalize_export(text) == [{"id": "1", "Q1": "Y"}]

    def test_bytes_with_bom(self):
        raw = '"id","Q1"\n1,"Ü"\n'.encode("utf-8-sig")
        assert normalize_export(raw) == [{"id": "1", "Q1": "Ü"}]

    def test_invalid_utf8(self):
        with pytest.raises(MalformedInputError):
            normalize_export(b'"id","Q1"\n1,"\xff"\n')

    def test_quoted_delimiter_and_newline(self):
        text = '"id","Q1","Q2"\n1,"a, b","line one\nline two"\n'
        records = normalize_export(text)
        assert records == [{"id": "1", "Q1": "a, b", "Q2": "line one\nline two"}]

    def test_header_order_preserved(self):
        text = '"id","Z","A","Q[SQ1]"\n1,z,a,Y\n'
        assert list(normalize_export(text)[0]) == ["id", "Z", "A", "Q[SQ1]"]

    def test_short_rows_padded(self):
        text = '"id","Q1","Q2"\n1,Y\n'
        assert normalize_export(text) == [{"id": "1", "Q1": "Y", "Q2": ""}]

    def test_long_rows_rejected(self):
        text = '"id","Q1"\n1,Y,extra\n'
        with pytest.raises(MalformedInputError, match="more fields"):
            normalize_export(text)

    def test_unterminated_quote_rejected(self):
        text = '"id","Q1"\n1,"Y\n'
        with pytest.raises(MalformedInputError):
            normalize_export(text)

    def test_duplicate_header_rejected(self):
        text = '"id","Q1","Q1"\n1,"A","B"\n'
        with pytest.raises(MalformedInputError, match="Duplicate header columns: Q1"):
            normalize_export(text)

    def test_long_free_text_field(self):
        answer = "x" * 200000
        text = f'"id","Q1"\n1,"{answer}"\n'
        records = normalize_export(text)
        assert len(records[0]["Q1"]) == 200000

    def test_header_only(self):
        assert normalize_export('"id","Q1"\n') == []

    def test_crlf_line_endings(self):
        text = '"id","Q1"\r\n1,"Y"\r\n2,"N"\r\n'
        assert [r["Q1"] for r in normalize_export(text)] == ["Y", "N"]


class TestLoadExport:
    """Reading exports from disk."""

    def test_load_export(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_bytes('\ufeff"id";"Q1"\n1;"Y"\n;\n'.encode("utf-8"))
        assert load_export(path) == [{"id": "1", "Q1": "Y"}]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_export(tmp_path / "nope.csv")
