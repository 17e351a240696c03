"""Row decoder: apply a compiled plan to one data row.

Cells are consumed strictly left to right through a ``RowCursor``. A column
takes its value cell, then its term source (REF cell, then the accession cell
when the header declares one), then each of its attributes in turn.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from sdrf_parser.grammar import ColumnSpec, Direction, TermSourceSpec
from sdrf_parser.header import DecodingPlan, Segment
from sdrf_parser.models import AppliedProtocol, Attribute, Datum, DBXref, Protocol

logger = logging.getLogger(__name__)


class RowCursor:
    """Ordered cursor over the cells of one row.

    Reading past the end yields None: rows may be shorter than the header
    when their trailing cells are blank.
    """

    def __init__(self, cells: Sequence[str]) -> None:
        self._cells = list(cells)
        self._index = 0

    def take(self) -> str | None:
        if self._index >= len(self._cells):
            self._index += 1
            return None
        cell = self._cells[self._index]
        self._index += 1
        return cell

    def take_value(self) -> str:
        """Take the next cell as a stripped string ("" when missing)."""
        return (self.take() or "").strip()

    @property
    def position(self) -> int:
        return self._index

    @property
    def exhausted(self) -> bool:
        return self._index >= len(self._cells)

    def remaining(self) -> list[str]:
        return self._cells[self._index :]


@dataclass(frozen=True)
class UnconsumedCellsWarning:
    """Non-fatal notice that a row had cells no column consumed."""

    line_number: int
    cells: tuple[str, ...]

    @property
    def message(self) -> str:
        return (
            f"Line {self.line_number}: didn't process input line fully: "
            + "\t".join(self.cells)
        )


@dataclass
class DecodedRow:
    """The applied protocols one row produced, one per plan segment."""

    line_number: int
    applied_protocols: list[AppliedProtocol]
    warning: UnconsumedCellsWarning | None = None
    prelude_data: list[Datum] = field(default_factory=list)


class RowDecoder:
    """Decode data rows against a DecodingPlan."""

    def __init__(self, plan: DecodingPlan) -> None:
        self.plan = plan

    def decode(self, cells: Sequence[str], line_number: int = 0) -> DecodedRow:
        cursor = RowCursor(cells)

        prelude = [self._decode_datum(spec, cursor) for spec in self.plan.prelude]
        applied = [
            self._decode_segment(segment, cursor) for segment in self.plan.segments
        ]

        warning = None
        leftover = cursor.remaining()
        if any(cell.strip() for cell in leftover):
            warning = UnconsumedCellsWarning(line_number, tuple(leftover))
            logger.warning("%s", warning.message)

        # Data ahead of the first protocol come from a process the document
        # does not describe, so they are inputs whatever their column kind.
        if applied:
            for datum in prelude:
                applied[0].add_input_datum(datum)

        return DecodedRow(
            line_number=line_number,
            applied_protocols=applied,
            warning=warning,
            prelude_data=prelude,
        )

    def _decode_segment(self, segment: Segment, cursor: RowCursor) -> AppliedProtocol:
        spec = segment.protocol
        name = cursor.take_value()
        protocol = Protocol(name=name)
        protocol.termsource = self._decode_term_source(spec.term_source, cursor, name)
        for attribute_spec in spec.attributes:
            protocol.add_attribute(self._decode_attribute(attribute_spec, cursor))

        data = [
            (column.direction, self._decode_datum(column, cursor))
            for column in segment.columns
        ]

        applied_protocol = AppliedProtocol(protocol=protocol)
        for direction, datum in data:
            if direction is Direction.INPUT:
                applied_protocol.add_input_datum(datum)
        for direction, datum in data:
            if direction is Direction.OUTPUT:
                applied_protocol.add_output_datum(datum)
        return applied_protocol

    def _decode_datum(self, spec: ColumnSpec, cursor: RowCursor) -> Datum:
        value = cursor.take_value()
        datum = Datum(heading=spec.heading, value=value, name=spec.name, type=spec.cv_type)
        datum.termsource = self._decode_term_source(spec.term_source, cursor, value)
        for attribute_spec in spec.attributes:
            datum.add_attribute(self._decode_attribute(attribute_spec, cursor))
        return datum

    def _decode_attribute(self, spec: ColumnSpec, cursor: RowCursor) -> Attribute:
        value = cursor.take_value()
        termsource = self._decode_term_source(spec.term_source, cursor, value)
        return Attribute(
            heading=spec.heading,
            value=value,
            name=spec.name,
            type=spec.cv_type,
            termsource=termsource,
        )

    @staticmethod
    def _decode_term_source(
        spec: TermSourceSpec | None, cursor: RowCursor, default_accession: str
    ) -> DBXref | None:
        if spec is None:
            return None
        ref = cursor.take_value()
        accession = cursor.take_value() if spec.has_accession else ""
        if not ref:
            return None
        accession = accession or default_accession
        if not accession:
            logger.warning(
                "No accession provided for the Term Source REF column %d (%s)",
                spec.position + 1,
                ref,
            )
        return DBXref(db=ref, accession=accession or None)
