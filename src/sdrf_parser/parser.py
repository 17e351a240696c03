"""SDRF parse session: header, rows, then chain reconstruction.

Usage::

    parser = SDRFParser()
    experiment = parser.parse("/path/to/sdrf.tsv")
    print(experiment.to_string())

Parsing is all-or-nothing. A header that does not compile, a row of the
wrong shape, or an unreadable document moves the session to ``FAILED``,
drops everything built so far and re-raises; no partial experiment is
returned.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Iterable

from sdrf_parser.chain import ChainReconstructor, ParseContext
from sdrf_parser.config import ParserSettings
from sdrf_parser.decoder import RowDecoder, UnconsumedCellsWarning
from sdrf_parser.errors import (
    DocumentReadError,
    HeaderSyntaxError,
    RowShapeError,
    SDRFError,
)
from sdrf_parser.experiment import Experiment
from sdrf_parser.header import DecodingPlan, compile_header
from sdrf_parser.models import AppliedProtocol

logger = logging.getLogger(__name__)

_LONE_CR_RE = re.compile(r"\r(?!\n)")
_LEADING_JUNK_RE = re.compile(r'\A\ufeff?[" ]*')
_SKIP_LINE_RE = re.compile(r"^\s*(?:#.*)?$")


class ParseState(str, Enum):
    """Lifecycle of one parse session."""

    AWAITING_HEADER = "awaiting_header"
    HEADER_COMPILED = "header_compiled"
    ROWS_ACCUMULATING = "rows_accumulating"
    ROWS_COMPLETE = "rows_complete"
    CHAIN_RECONSTRUCTED = "chain_reconstructed"
    DONE = "done"
    FAILED = "failed"


def normalize_document(text: str) -> str:
    """Turn lone CR line endings into LF and drop leading quote/space junk."""
    text = _LONE_CR_RE.sub("\n", text)
    return _LEADING_JUNK_RE.sub("", text)


def split_cells(line: str) -> list[str]:
    """Split a line on tabs, removing one leading and one trailing quote per cell."""
    cells = line.rstrip("\r\n").split("\t")
    return [re.sub(r'^"|"$', "", cell) for cell in cells]


def is_skippable(line: str) -> bool:
    """Blank lines and ``#`` comment lines carry no data."""
    return _SKIP_LINE_RE.match(line) is not None


class SDRFParser:
    """Parse SDRF documents into reconciled Experiment graphs.

    Each ``parse*`` call is an independent session: anonymous datum numbering
    and the bridge registry start fresh for every document.

    Attributes:
        settings: Parser settings (document encoding).
        state: State of the most recent session.
        plan: Decoding plan of the most recent successful session.
        warnings: Unconsumed-cell notices from the most recent session.
    """

    def __init__(self, settings: ParserSettings | None = None) -> None:
        self.settings = settings or ParserSettings.from_env()
        self.state = ParseState.AWAITING_HEADER
        self.plan: DecodingPlan | None = None
        self.warnings: list[UnconsumedCellsWarning] = []

    def parse(self, path: str | Path) -> Experiment:
        """Read and parse the SDRF document at ``path``.

        Raises:
            DocumentReadError: If the file is missing or cannot be decoded.
            HeaderSyntaxError: If the header row does not compile.
            RowShapeError: If a row yields the wrong number of protocols.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding=self.settings.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            self._fail()
            logger.error("Couldn't read SDRF file %s: %s", path, exc)
            raise DocumentReadError(
                f"Couldn't read SDRF file {path}: {exc}", path
            ) from exc
        return self.parse_text(text)

    def parse_text(self, text: str) -> Experiment:
        return self.parse_lines(normalize_document(text).split("\n"))

    def parse_lines(self, lines: Iterable[str]) -> Experiment:
        """Parse an already line-split document."""
        self._reset()
        try:
            return self._run(lines)
        except SDRFError:
            self._fail()
            raise

    def _run(self, lines: Iterable[str]) -> Experiment:
        context = ParseContext()
        decoder: RowDecoder | None = None
        matrix: list[list[AppliedProtocol]] = []

        for line_number, line in enumerate(lines, start=1):
            if is_skippable(line):
                continue
            cells = split_cells(line)

            if decoder is None:
                self.plan = compile_header(cells)
                decoder = RowDecoder(self.plan)
                matrix = [[] for _ in self.plan.segments]
                self.state = ParseState.HEADER_COMPILED
                logger.info(
                    "Parsed SDRF header with %d protocol columns",
                    self.plan.protocol_count,
                )
                continue

            self.state = ParseState.ROWS_ACCUMULATING
            row = decoder.decode(cells, line_number)
            if len(row.applied_protocols) != len(matrix):
                raise RowShapeError(
                    line_number, len(matrix), len(row.applied_protocols)
                )
            if row.warning is not None:
                self.warnings.append(row.warning)
            for slot, applied_protocol in zip(matrix, row.applied_protocols):
                slot.append(applied_protocol)

        if decoder is None:
            raise HeaderSyntaxError("Document has no header line", "", 0)
        self.state = ParseState.ROWS_COMPLETE

        rows = len(matrix[0]) if matrix else 0
        reconstructor = ChainReconstructor(context)
        reconstructor.link(matrix)
        reconstructor.bridge(matrix)
        self.state = ParseState.CHAIN_RECONSTRUCTED

        experiment = Experiment(reconstructor.reduce(matrix))
        self.state = ParseState.DONE
        logger.info(
            "Parsed %d SDRF rows into %d applied protocol slots (%d anonymous data)",
            rows,
            len(experiment),
            context.anonymous_counter,
        )
        return experiment

    def _reset(self) -> None:
        self.state = ParseState.AWAITING_HEADER
        self.plan = None
        self.warnings = []

    def _fail(self) -> None:
        self.state = ParseState.FAILED
        self.plan = None
        self.warnings = []
