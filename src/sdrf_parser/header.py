"""Header compiler: turn the SDRF header row into a decoding plan.

Grammar over classified header cells, left to right::

    header     := io_column* protocol+
    protocol   := PROTOCOL_REF term_source? attribute* io_column*
    io_column  := (input | output) term_source? attribute*
    attribute  := ATTRIBUTE term_source?
    term_source:= TERM_SOURCE_REF TERM_ACCESSION_NUMBER?

Input/output columns before the first ``Protocol REF`` form the plan's
prelude; everything from one ``Protocol REF`` up to the next is a segment.
The first offending cell aborts compilation and no partial plan is returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from sdrf_parser.errors import HeaderSyntaxError
from sdrf_parser.grammar import (
    ColumnKind,
    ColumnSpec,
    HeadingToken,
    TermSourceSpec,
    classify_heading,
    clean_cell,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Segment:
    """One ``Protocol REF`` column and the input/output columns trailing it."""

    index: int
    protocol: ColumnSpec
    columns: tuple[ColumnSpec, ...] = ()

    @property
    def cell_count(self) -> int:
        return self.protocol.cell_count + sum(c.cell_count for c in self.columns)


@dataclass(frozen=True)
class DecodingPlan:
    """Ordered decoding plan compiled once from the header row.

    Attributes:
        prelude: Input/output columns that precede the first protocol.
        segments: One entry per ``Protocol REF`` column, in header order.
        width: Number of header columns the plan consumes.
    """

    prelude: tuple[ColumnSpec, ...]
    segments: tuple[Segment, ...]
    width: int

    @property
    def protocol_count(self) -> int:
        return len(self.segments)


class _TokenStream:
    """Classifies cells on first look, so errors surface left to right."""

    def __init__(self, cells: Sequence[str]) -> None:
        self._cells = cells
        self._tokens: list[HeadingToken] = []
        self._index = 0

    def peek(self) -> HeadingToken | None:
        if self._index >= len(self._cells):
            return None
        if self._index == len(self._tokens):
            self._tokens.append(
                classify_heading(self._cells[self._index], self._index)
            )
        return self._tokens[self._index]

    def next(self) -> HeadingToken:
        token = self.peek()
        if token is None:
            raise IndexError("header token stream exhausted")
        self._index += 1
        return token


def _is_io(token: HeadingToken | None) -> bool:
    return token is not None and token.rule.direction is not None


class HeaderCompiler:
    """Recursive-descent compiler over the classified header cells."""

    def __init__(self, cells: Sequence[str]) -> None:
        cleaned = [clean_cell(c) for c in cells]
        while cleaned and not cleaned[-1]:
            cleaned.pop()
        self._cells = cleaned

    def compile(self) -> DecodingPlan:
        if not self._cells:
            raise HeaderSyntaxError("Header line has no columns", "", 0)

        stream = _TokenStream(self._cells)

        prelude: list[ColumnSpec] = []
        while _is_io(stream.peek()):
            prelude.append(self._io_column(stream))

        segments: list[Segment] = []
        while (token := stream.peek()) is not None:
            if token.kind is not ColumnKind.PROTOCOL_REF:
                self._reject(token, has_protocol=bool(segments))
            segments.append(self._protocol(stream, len(segments)))

        if not segments:
            last = len(self._cells) - 1
            raise HeaderSyntaxError(
                "Header declares no Protocol REF column", self._cells[last], last
            )

        plan = DecodingPlan(
            prelude=tuple(prelude), segments=tuple(segments), width=len(self._cells)
        )
        logger.debug(
            "Compiled SDRF header: %d columns, %d prelude columns, %d protocols",
            plan.width,
            len(plan.prelude),
            plan.protocol_count,
        )
        return plan

    def _protocol(self, stream: _TokenStream, index: int) -> Segment:
        token = stream.next()
        term_source = self._term_source(stream)
        attributes = self._attributes(stream)
        columns: list[ColumnSpec] = []
        while _is_io(stream.peek()):
            columns.append(self._io_column(stream))
        return Segment(
            index=index,
            protocol=ColumnSpec.from_token(token, term_source, attributes),
            columns=tuple(columns),
        )

    def _io_column(self, stream: _TokenStream) -> ColumnSpec:
        token = stream.next()
        term_source = None
        following = stream.peek()
        if token.rule.term_source:
            term_source = self._term_source(stream)
        elif following is not None and following.kind is ColumnKind.TERM_SOURCE_REF:
            raise HeaderSyntaxError(
                f"{token.kind.value} columns do not take a Term Source REF",
                self._cells[following.position],
                following.position,
            )
        return ColumnSpec.from_token(token, term_source, self._attributes(stream))

    def _attributes(self, stream: _TokenStream) -> tuple[ColumnSpec, ...]:
        attributes: list[ColumnSpec] = []
        while (token := stream.peek()) is not None and token.kind is ColumnKind.ATTRIBUTE:
            stream.next()
            attributes.append(ColumnSpec.from_token(token, self._term_source(stream)))
        return tuple(attributes)

    def _term_source(self, stream: _TokenStream) -> TermSourceSpec | None:
        token = stream.peek()
        if token is None or token.kind is not ColumnKind.TERM_SOURCE_REF:
            return None
        stream.next()
        following = stream.peek()
        has_accession = (
            following is not None and following.kind is ColumnKind.TERM_ACCESSION_NUMBER
        )
        if has_accession:
            stream.next()
        return TermSourceSpec(position=token.position, has_accession=has_accession)

    def _reject(self, token: HeadingToken, has_protocol: bool) -> None:
        cell = self._cells[token.position]
        if token.kind is ColumnKind.TERM_ACCESSION_NUMBER:
            message = "Term Accession Number must directly follow a Term Source REF column"
        elif token.kind is ColumnKind.TERM_SOURCE_REF:
            message = "Term Source REF column has no column to qualify"
        elif token.kind is ColumnKind.ATTRIBUTE:
            message = "Attribute column has no protocol or data column to qualify"
        elif not has_protocol:
            message = f"Expected Protocol REF, found {token.kind.value}"
        else:
            message = f"Unexpected {token.kind.value} column"
        raise HeaderSyntaxError(message, cell, token.position)


def compile_header(cells: Sequence[str]) -> DecodingPlan:
    """Compile a header row (already split into cells) into a DecodingPlan.

    Raises:
        HeaderSyntaxError: On the first cell that is unrecognized or cannot
            be placed in the grammar.
    """
    return HeaderCompiler(cells).compile()
