"""Unit tests for row decoding against a compiled plan."""

from __future__ import annotations

import logging

import pytest

from sdrf_parser.decoder import RowCursor, RowDecoder
from sdrf_parser.header import compile_header
from sdrf_parser.models import CVTerm


def _decoder(header: str) -> RowDecoder:
    return RowDecoder(compile_header(header.split("\t")))


class TestRowCursor:
    """Tests for RowCursor."""

    def test_take_in_order_then_none(self) -> None:
        cursor = RowCursor(["a", "b"])
        assert cursor.take() == "a"
        assert cursor.take() == "b"
        assert cursor.exhausted
        assert cursor.take() is None
        assert cursor.take_value() == ""

    def test_take_value_strips(self) -> None:
        assert RowCursor(["  x "]).take_value() == "x"

    def test_remaining(self) -> None:
        cursor = RowCursor(["a", "b", "c"])
        cursor.take()
        assert cursor.remaining() == ["b", "c"]
        assert cursor.position == 1


class TestRowDecoder:
    """Tests for RowDecoder.decode."""

    def test_prelude_datum_becomes_input_of_first_protocol(self) -> None:
        decoder = _decoder(
            "Source Name\tProtocol REF\tParameter Value [temp]\tResult Value"
        )
        row = decoder.decode(["S1", "PCR", "37", "R1"], line_number=2)
        [applied] = row.applied_protocols
        assert applied.protocol.name == "PCR"
        assert [(d.heading, d.value) for d in applied.input_data] == [
            ("Parameter Value", "37"),
            ("Source Name", "S1"),
        ]
        assert applied.input_data[1].type == CVTerm("mged", "BioSource")
        assert [d.value for d in applied.output_data] == ["R1"]
        assert row.prelude_data == [applied.input_data[1]]

    def test_one_applied_protocol_per_segment(self) -> None:
        decoder = _decoder("Protocol REF\tSample Name\tProtocol REF\tProtocol REF")
        row = decoder.decode(["P1", "s", "P2", "P3"])
        assert [ap.protocol.name for ap in row.applied_protocols] == ["P1", "P2", "P3"]

    def test_inputs_before_outputs_regardless_of_column_order(self) -> None:
        decoder = _decoder("Protocol REF\tResult File\tParameter Value [p]")
        [applied] = decoder.decode(["P", "out.txt", "5"]).applied_protocols
        assert [d.value for d in applied.input_data] == ["5"]
        assert [d.value for d in applied.output_data] == ["out.txt"]

    def test_term_source_accession_defaults_to_value(self) -> None:
        decoder = _decoder("Protocol REF\tParameter Value [strain]\tTerm Source REF")
        [applied] = decoder.decode(["P", "N2", "MO"]).applied_protocols
        termsource = applied.input_data[0].termsource
        assert termsource is not None
        assert (termsource.db, termsource.accession) == ("MO", "N2")

    def test_explicit_accession_wins(self) -> None:
        decoder = _decoder(
            "Protocol REF\tParameter Value [strain]\tTerm Source REF"
            "\tTerm Accession Number"
        )
        [applied] = decoder.decode(["P", "N2", "MO", "0000123"]).applied_protocols
        termsource = applied.input_data[0].termsource
        assert termsource is not None
        assert termsource.accession == "0000123"

    def test_blank_term_source_consumes_accession_cell(self) -> None:
        decoder = _decoder(
            "Protocol REF\tParameter Value [a]\tTerm Source REF"
            "\tTerm Accession Number\tResult File"
        )
        [applied] = decoder.decode(["P", "v", "", "X", "out.txt"]).applied_protocols
        assert applied.input_data[0].termsource is None
        assert applied.output_data[0].value == "out.txt"

    def test_missing_accession_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        decoder = _decoder("Protocol REF\tTerm Source REF\tResult File")
        with caplog.at_level(logging.WARNING, logger="sdrf_parser.decoder"):
            [applied] = decoder.decode(["", "MO", "f"]).applied_protocols
        assert applied.protocol.termsource is not None
        assert applied.protocol.termsource.accession is None
        assert "No accession provided" in caplog.text

    def test_protocol_and_datum_attributes(self) -> None:
        decoder = _decoder(
            "Protocol REF\tPerformer\tSample Name\tCharacteristics [age]"
            "\tTerm Source REF"
        )
        [applied] = decoder.decode(["P", "Alice", "s1", "L3", "MO"]).applied_protocols
        [performer] = applied.protocol.attributes
        assert performer.value == "Alice"
        assert performer.type == CVTerm("xsd", "string")
        [sample] = applied.output_data
        [age] = sample.attributes
        assert (age.name, age.value) == ("age", "L3")
        assert age.termsource is not None
        assert age.termsource.accession == "L3"

    def test_short_row_yields_blank_values(self) -> None:
        decoder = _decoder("Protocol REF\tResult File")
        row = decoder.decode(["P"])
        assert row.applied_protocols[0].output_data[0].value == ""
        assert row.warning is None

    def test_leftover_cells_warn(self, caplog: pytest.LogCaptureFixture) -> None:
        decoder = _decoder("Protocol REF")
        with caplog.at_level(logging.WARNING, logger="sdrf_parser.decoder"):
            row = decoder.decode(["P", "extra"], line_number=4)
        assert row.warning is not None
        assert row.warning.line_number == 4
        assert row.warning.cells == ("extra",)
        assert "didn't process input line fully" in caplog.text
        assert len(row.applied_protocols) == 1

    def test_blank_leftover_cells_do_not_warn(self) -> None:
        row = _decoder("Protocol REF").decode(["P", "", " "])
        assert row.warning is None

    def test_rows_do_not_share_objects(self) -> None:
        decoder = _decoder("Protocol REF\tResult File")
        first = decoder.decode(["P", "f"]).applied_protocols[0]
        second = decoder.decode(["P", "f"]).applied_protocols[0]
        assert first.output_data[0] is not second.output_data[0]
        assert first.equals(second)
