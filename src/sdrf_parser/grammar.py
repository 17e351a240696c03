"""Column grammar: classify one SDRF header cell at a time.

Each header cell is a base heading optionally followed, inside the same
cell, by a ``[name]`` qualifier and then a ``(type)`` qualifier::

    Parameter Value [temperature] (xsd:float)
    Source Name (mged:BioSource)
    Comment [lab notes]

Reserved headings are tried first; a heading becomes an ``Attribute`` only
when it matches none of them. A reserved heading with a missing required
qualifier (``Parameter Value`` without ``[name]``) or a forbidden one
(``Source Name [x]``) is rejected rather than demoted to an attribute.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from sdrf_parser.errors import HeaderSyntaxError
from sdrf_parser.models import CVTerm


class Direction(str, Enum):
    """Which side of an applied protocol a data column feeds."""

    INPUT = "input"
    OUTPUT = "output"


class ColumnKind(str, Enum):
    """Every column kind the header vocabulary recognizes."""

    PROTOCOL_REF = "Protocol REF"
    PARAMETER_VALUE = "Parameter Value"
    PARAMETER_FILE = "Parameter File"
    ARRAY_DESIGN_REF = "Array Design REF"
    HYBRIDIZATION_NAME = "Hybridization Name"
    RESULT_VALUE = "Result Value"
    ARRAY_DATA_FILE = "Array Data File"
    SOURCE_NAME = "Source Name"
    SAMPLE_NAME = "Sample Name"
    EXTRACT_NAME = "Extract Name"
    LABELED_EXTRACT_NAME = "Labeled Extract Name"
    DATA_FILE = "Result File"
    ARRAY_MATRIX_DATA_FILE = "Array Matrix Data File"
    ATTRIBUTE = "Attribute"
    TERM_SOURCE_REF = "Term Source REF"
    TERM_ACCESSION_NUMBER = "Term Accession Number"


class Qualifier(str, Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class KindRule:
    """Heading pattern and qualifier rules for one column kind."""

    pattern: re.Pattern[str]
    direction: Direction | None = None
    bracket: Qualifier = Qualifier.OPTIONAL
    paren: Qualifier = Qualifier.OPTIONAL
    term_source: bool = False
    attributes: bool = False
    default_type: str | None = None


def _heading(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


_F = Qualifier.FORBIDDEN
_R = Qualifier.REQUIRED

# Insertion order is match precedence.
RESERVED_RULES: dict[ColumnKind, KindRule] = {
    ColumnKind.PROTOCOL_REF: KindRule(
        _heading(r"protocol\s*ref"), bracket=_F, paren=_F, term_source=True, attributes=True
    ),
    ColumnKind.TERM_SOURCE_REF: KindRule(_heading(r"term\s*source\s*ref"), bracket=_F, paren=_F),
    ColumnKind.TERM_ACCESSION_NUMBER: KindRule(
        _heading(r"term\s*accession(?:\s*numbers?)?"), bracket=_F, paren=_F
    ),
    # inputs
    ColumnKind.PARAMETER_VALUE: KindRule(
        _heading(r"parameter\s*values?"),
        Direction.INPUT,
        bracket=_R,
        term_source=True,
        attributes=True,
    ),
    ColumnKind.PARAMETER_FILE: KindRule(
        _heading(r"parameter\s*files?"),
        Direction.INPUT,
        attributes=True,
        default_type="xsd:file",
    ),
    ColumnKind.ARRAY_DESIGN_REF: KindRule(
        _heading(r"array\s*design\s*ref"),
        Direction.INPUT,
        bracket=_R,
        term_source=True,
        attributes=True,
    ),
    ColumnKind.HYBRIDIZATION_NAME: KindRule(
        _heading(r"hybridi[sz]ation\s*names?"),
        Direction.INPUT,
        term_source=True,
        attributes=True,
    ),
    # outputs
    ColumnKind.RESULT_VALUE: KindRule(
        _heading(r"result\s*values?"),
        Direction.OUTPUT,
        term_source=True,
        attributes=True,
    ),
    ColumnKind.ARRAY_MATRIX_DATA_FILE: KindRule(
        _heading(r"array\s*matrix\s*data\s*files?"),
        Direction.OUTPUT,
        attributes=True,
        default_type="xsd:file",
    ),
    ColumnKind.ARRAY_DATA_FILE: KindRule(
        _heading(r"(?:derived\s*)?array\s*data\s*files?"),
        Direction.OUTPUT,
        attributes=True,
        default_type="xsd:file",
    ),
    ColumnKind.SOURCE_NAME: KindRule(
        _heading(r"source\s*names?"),
        Direction.OUTPUT,
        bracket=_F,
        term_source=True,
        attributes=True,
        default_type="mged:BioSource",
    ),
    ColumnKind.SAMPLE_NAME: KindRule(
        _heading(r"sample\s*names?"),
        Direction.OUTPUT,
        bracket=_F,
        term_source=True,
        attributes=True,
        default_type="mged:BioSample",
    ),
    ColumnKind.EXTRACT_NAME: KindRule(
        _heading(r"extract\s*names?"),
        Direction.OUTPUT,
        bracket=_F,
        term_source=True,
        attributes=True,
        default_type="mged:BioSample",
    ),
    ColumnKind.LABELED_EXTRACT_NAME: KindRule(
        _heading(r"label{1,2}ed\s*extract\s*names?"),
        Direction.OUTPUT,
        bracket=_F,
        term_source=True,
        attributes=True,
        default_type="mged:LabeledExtract",
    ),
    ColumnKind.DATA_FILE: KindRule(
        _heading(r"result\s*files?"),
        Direction.OUTPUT,
        attributes=True,
        default_type="xsd:file",
    ),
}

ATTRIBUTE_RULE = KindRule(_heading(r".+"), term_source=True, default_type="xsd:string")

_CELL_RE = re.compile(
    r"""
    (?P<base>[^\[\]()]*?)
    \s*(?:\[\s*(?P<name>[^\[\]]*?)\s*\])?
    \s*(?:\(\s*(?P<type>[^()]*?)\s*\))?
    """,
    re.VERBOSE,
)


def rule_for(kind: ColumnKind) -> KindRule:
    if kind is ColumnKind.ATTRIBUTE:
        return ATTRIBUTE_RULE
    return RESERVED_RULES[kind]


def parse_type(type_string: str | None, default: str | None = None) -> CVTerm | None:
    """Turn a ``(cv:term)`` qualifier into a CVTerm, else fall back to ``default``."""
    if type_string:
        cvterm = CVTerm.from_string(type_string)
        if cvterm is not None:
            return cvterm
    if default:
        return CVTerm.from_string(default)
    return None


@dataclass(frozen=True)
class HeadingToken:
    """One classified header cell.

    Attributes:
        kind: The recognized column kind.
        heading: Base heading text as written (qualifiers removed).
        position: 0-based column index in the header row.
        name: Contents of the ``[name]`` qualifier, if any.
        type: Contents of the ``(type)`` qualifier, if any.
    """

    kind: ColumnKind
    heading: str
    position: int
    name: str | None = None
    type: str | None = None

    @property
    def rule(self) -> KindRule:
        return rule_for(self.kind)


def clean_cell(cell: str) -> str:
    """Strip surrounding whitespace and quote characters from a cell."""
    return cell.strip().strip('"').strip()


def classify_heading(cell: str, position: int) -> HeadingToken:
    """Classify a single header cell.

    Raises:
        HeaderSyntaxError: If the cell is blank, malformed, or a reserved
            heading with a missing or forbidden qualifier.
    """
    text = clean_cell(cell)
    if not text:
        raise HeaderSyntaxError("Blank column heading", cell, position)

    match = _CELL_RE.fullmatch(text)
    if match is None or not match.group("base").strip():
        raise HeaderSyntaxError("Unrecognized column heading", cell, position)

    base = match.group("base").strip()
    name = match.group("name") or None
    type_ = match.group("type") or None
    if (match.group("name") is not None and not name) or (
        match.group("type") is not None and not type_
    ):
        raise HeaderSyntaxError("Empty qualifier in column heading", cell, position)

    kind = ColumnKind.ATTRIBUTE
    for candidate, rule in RESERVED_RULES.items():
        if rule.pattern.fullmatch(base):
            kind = candidate
            break
    else:
        # "Source Name Extra" is neither a Source Name nor free text.
        for candidate, rule in RESERVED_RULES.items():
            if rule.pattern.match(base):
                raise HeaderSyntaxError(
                    f"Unrecognized column heading (looks like {candidate.value})",
                    cell,
                    position,
                )

    rule = rule_for(kind)
    label = kind.value if kind is not ColumnKind.ATTRIBUTE else base
    if rule.bracket is Qualifier.REQUIRED and name is None:
        raise HeaderSyntaxError(f"{label} requires a [name] qualifier", cell, position)
    if rule.bracket is Qualifier.FORBIDDEN and name is not None:
        raise HeaderSyntaxError(f"{label} does not take a [name] qualifier", cell, position)
    if rule.paren is Qualifier.FORBIDDEN and type_ is not None:
        raise HeaderSyntaxError(f"{label} does not take a (type) qualifier", cell, position)

    return HeadingToken(kind=kind, heading=base, position=position, name=name, type=type_)


@dataclass(frozen=True)
class TermSourceSpec:
    """A ``Term Source REF`` column, optionally followed by its accession column."""

    position: int
    has_accession: bool = False

    @property
    def cell_count(self) -> int:
        return 2 if self.has_accession else 1


@dataclass(frozen=True)
class ColumnSpec:
    """Compiled description of one column and the modifier columns it owns.

    Built once per document from the header row and never mutated.
    """

    kind: ColumnKind
    heading: str
    position: int
    name: str | None = None
    type: str | None = None
    term_source: TermSourceSpec | None = None
    attributes: tuple[ColumnSpec, ...] = ()

    @classmethod
    def from_token(
        cls,
        token: HeadingToken,
        term_source: TermSourceSpec | None = None,
        attributes: tuple[ColumnSpec, ...] = (),
    ) -> ColumnSpec:
        return cls(
            kind=token.kind,
            heading=token.heading,
            position=token.position,
            name=token.name,
            type=token.type,
            term_source=term_source,
            attributes=attributes,
        )

    @property
    def rule(self) -> KindRule:
        return rule_for(self.kind)

    @property
    def direction(self) -> Direction | None:
        return self.rule.direction

    @property
    def cv_type(self) -> CVTerm | None:
        """Type derived from the ``(type)`` qualifier or the kind default."""
        return parse_type(self.type, self.rule.default_type)

    @property
    def cell_count(self) -> int:
        """Cells consumed by this column, its term source and its attributes."""
        count = 1
        if self.term_source is not None:
            count += self.term_source.cell_count
        return count + sum(a.cell_count for a in self.attributes)
