"""Tests for the model objects and Experiment traversal."""

from __future__ import annotations

from sdrf_parser.experiment import Experiment
from sdrf_parser.models import (
    AppliedProtocol,
    Attribute,
    CVTerm,
    Datum,
    DBXref,
    Protocol,
    data_sets_equal,
)
from sdrf_parser.parser import SDRFParser

TERM_SOURCED_DOC = (
    "Protocol REF\tTerm Source REF\tSample Name\tTerm Source REF"
    "\tTerm Accession Number\tProtocol REF\tResult File\n"
    "P1\tMO\tS1\tMO\t0001\tP2\tf.txt\n"
)


def _experiment() -> Experiment:
    return SDRFParser().parse_text(TERM_SOURCED_DOC)


class TestModels:
    """Tests for structural equality and identity semantics."""

    def test_cvterm_from_string(self) -> None:
        assert CVTerm.from_string("xsd:file") == CVTerm("xsd", "file")
        assert CVTerm.from_string("file") is None
        assert CVTerm.from_string(":file") is None

    def test_datum_equality_is_structural(self) -> None:
        a = Datum(heading="Result File", value="f", termsource=DBXref("MO", "1"))
        b = Datum(heading="Result File", value="f", termsource=DBXref("MO", "1"))
        assert a.equals(b)
        assert a != b
        b.add_attribute(Attribute(heading="Comment", value="x"))
        assert not a.equals(b)

    def test_termsource_presence_matters(self) -> None:
        a = Datum(heading="h", value="v", termsource=DBXref("MO"))
        b = Datum(heading="h", value="v")
        assert not a.equals(b)
        assert not b.equals(a)

    def test_add_datum_deduplicates_by_identity_only(self) -> None:
        applied = AppliedProtocol(protocol=Protocol(name="P"))
        datum = Datum(heading="h", value="v")
        applied.add_input_datum(datum)
        applied.add_input_datum(datum)
        applied.add_input_datum(Datum(heading="h", value="v"))
        assert len(applied.input_data) == 2

    def test_applied_protocol_equality_is_ordered(self) -> None:
        x, y = Datum(heading="h", value="x"), Datum(heading="h", value="y")
        first = AppliedProtocol(Protocol("P"), input_data=[x, y])
        second = AppliedProtocol(Protocol("P"), input_data=[y, x])
        assert not first.equals(second)
        assert data_sets_equal(first.input_data, second.input_data)

    def test_to_string(self) -> None:
        datum = Datum(
            heading="Parameter Value",
            name="temp",
            value="37",
            type=CVTerm("xsd", "float"),
        )
        assert datum.to_string() == "Parameter Value [temp] (xsd:float)=37"
        assert DBXref("MO").to_string() == "MO:?"


class TestExperiment:
    """Tests for Experiment traversal and copying."""

    def test_slots_and_applied_protocols(self) -> None:
        experiment = _experiment()
        assert len(experiment) == 2
        names = [ap.protocol.name for ap in experiment.iter_applied_protocols()]
        assert names == ["P1", "P2"]

    def test_iter_data_yields_shared_datum_once(self) -> None:
        values = [d.value for d in _experiment().iter_data()]
        assert values == ["S1", "f.txt"]

    def test_iter_term_source_refs(self) -> None:
        usages = list(_experiment().iter_term_source_refs())
        assert [(u.termsource.db, u.term) for u in usages] == [
            ("MO", "P1"),
            ("MO", "S1"),
        ]
        assert usages[0].termsource.accession == "P1"
        assert usages[1].termsource.accession == "0001"
        assert usages[0].context == "protocol P1"
        assert "datum Sample Name" in usages[1].context

    def test_term_source_accession_is_settable_in_place(self) -> None:
        experiment = _experiment()
        usage = next(experiment.iter_term_source_refs())
        usage.termsource.accession = "9999"
        protocol = experiment.applied_protocol_slots[0][0].protocol
        assert protocol.termsource is not None
        assert protocol.termsource.accession == "9999"

    def test_clone_is_independent_and_keeps_sharing(self) -> None:
        experiment = _experiment()
        copy = experiment.clone()
        first, second = copy.applied_protocol_slots
        assert second[0].input_data[0] is first[0].output_data[0]

        sample = first[0].output_data[0]
        assert sample.termsource is not None
        sample.termsource.accession = "changed"
        original = experiment.applied_protocol_slots[0][0].output_data[0]
        assert original.termsource is not None
        assert original.termsource.accession == "0001"

    def test_to_string_lists_slots(self) -> None:
        text = _experiment().to_string()
        assert text.splitlines()[0] == "Slot 0:"
        assert "Slot 1:" in text
        assert "-> P1 <MO:P1> ->" in text
