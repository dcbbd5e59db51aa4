"""Tests for registry ordering and deterministic format detection."""

import pikepdf
import pytest

from batimport.ingestion import auto_detect
from batimport.ingestion.auto_detect import detect_format, import_file, probe_format
from batimport.ingestion.base import ImportSource, TextStatementParser
from batimport.ingestion.registry import ParserRegistry
from batimport.ingestion.stream_format import StreamFormat


def test_descriptors_ordered_by_priority_then_registration():
    descriptors = ParserRegistry.descriptors()
    keys = [(-d.priority, d.order) for d in descriptors]
    assert keys == sorted(keys)
    names = [d.name for d in descriptors]
    assert names.index("bourso_txt_excel2002") < names.index("bourso_txt_excel95")
    assert names[-1] == "bank_csv"


def test_accepted_contents_indexed_at_registration():
    descriptor = ParserRegistry.descriptor("bourso_pdf")
    assert descriptor.accepts("application/pdf")
    assert not descriptor.accepts("text/plain")


def test_vendor_default_used_unless_updatable():
    user = StreamFormat(field_sep=",", updatable=True)
    assert probe_format(ParserRegistry.descriptor("lcl_txt"), user).field_sep == "\t"
    assert probe_format(ParserRegistry.descriptor("bank_csv"), user).field_sep == ","
    assert probe_format(ParserRegistry.descriptor("bank_csv"), None).field_sep == ";"


def test_nothing_matches():
    source = ImportSource.from_bytes(b"just some words", uri="notes.txt")
    assert detect_format(source) is None


def test_not_recognized_yields_no_records(sink):
    source = ImportSource.from_bytes(b"just some words", uri="notes.txt")
    result = import_file(source, sink=sink)
    assert result.records == []
    assert not result.success
    assert "not recognized" in result.fatal
    assert sink.errors == [result.fatal]


def test_probe_is_idempotent():
    source = ImportSource.from_bytes(b"A;B;C\n1;2;3\n", uri="a.csv")
    first = detect_format(source)
    second = detect_format(source)
    assert first is not None
    assert first == second


def test_unknown_format_name(sink):
    source = ImportSource.from_bytes(b"A;B\n", uri="a.csv")
    result = import_file(source, sink=sink, format_name="no_such_format")
    assert result.fatal == "unknown format 'no_such_format'"


def test_missing_file(tmp_path, sink):
    result = import_file(tmp_path / "missing.csv", sink=sink)
    assert result.fatal is not None
    assert result.records == []


class TestRegistration:
    """A newly registered higher-priority format shadows older matches."""

    @pytest.fixture
    def shadow(self):
        @ParserRegistry.register("shadow_csv")
        class ShadowParser(TextStatementParser):
            label = "Shadow"
            detection_priority = 99

            @classmethod
            def default_format(cls):
                return StreamFormat(field_sep=";")

            def can_parse(self, source, fmt, password=None):
                return True

            def parse(self, source, ctx):
                return []

        yield ShadowParser
        ParserRegistry.unregister("shadow_csv")

    def test_shadowing(self, shadow):
        source = ImportSource.from_bytes(b"A;B;C\n", uri="a.csv")
        assert detect_format(source).name == "shadow_csv"

    def test_duplicate_name_rejected(self, shadow):
        with pytest.raises(ValueError):
            ParserRegistry.register("shadow_csv")(shadow)

    def test_list_parsers(self):
        names = [p["name"] for p in ParserRegistry.list_parsers()]
        assert "lcl_pdf" in names
        assert "bank_csv" in names


class TestPdfAccessGate:
    @pytest.fixture
    def encrypted(self, monkeypatch):
        calls = []

        class _Doc:
            def __enter__(self):
                return self

            def __exit__(self, *exc_info):
                return None

        def _open(stream, password=None):
            calls.append(password)
            if password != "secret":
                raise pikepdf.PasswordError("invalid password")
            return _Doc()

        monkeypatch.setattr(auto_detect.pikepdf, "open", _open)
        monkeypatch.setattr(auto_detect.settings, "PDF_PASSWORD", None)
        return calls

    def test_password_required(self, encrypted, pdf_source, sink):
        result = import_file(pdf_source, sink=sink)
        assert result.records == []
        assert result.fatal == "Encrypted PDF requires password"
        assert encrypted == [None]

    def test_wrong_password(self, encrypted, pdf_source):
        result = import_file(pdf_source, password="guess")
        assert result.fatal == "Unable to decrypt PDF with provided password"

    def test_right_password(self, encrypted, pdf_source):
        assert auto_detect._validate_pdf_access(pdf_source, "secret") == (True, None)
        assert encrypted == [None, "secret"]

    def test_not_a_pdf_skips_gate(self, encrypted):
        source = ImportSource.from_bytes(b"A;B\n", uri="a.csv")
        assert auto_detect._validate_pdf_access(source, None) == (True, None)
        assert encrypted == []


class TestFormatOverride:
    LCL_LINES = "04/01/2016\t-12,30\tCarte\tX1234\tCB MONOP\t\r\n31/01/2016\t1442,70\t\t\t0000012345A\r\n"

    def test_vendor_override_reported(self, sink):
        source = ImportSource.from_bytes(self.LCL_LINES.encode("iso-8859-15"), uri="lcl.xls")
        user = StreamFormat(name="user", charset="utf-8", field_sep="\t", updatable=True)

        result = import_file(source, stream_format=user, sink=sink, format_name="lcl_txt")

        assert result.fatal is None
        assert result.metadata["format"]["charset"] == "iso-8859-15"
        assert len(result.warnings) == 1
        assert "format 'user' ignored" in result.warnings[0]
        assert sink.warnings == result.warnings

    def test_updatable_format_takes_override(self, sink):
        source = ImportSource.from_bytes(b"bank|acc\n1|2|3\n", uri="a.csv")
        user = StreamFormat(name="user", field_sep="|", updatable=True)

        result = import_file(source, stream_format=user, sink=sink, format_name="bank_csv")

        assert result.success
        assert result.warnings == []
        assert result.details[0].fields[:3] == ("1", "2", "3")
