"""In-memory graph objects built from an SDRF document.

Protocols, data and attributes are shared by reference: explicit linking puts
the same ``Datum`` into the outputs of one applied protocol and the inputs of
the next, and anonymous bridge data are reused across rows. Python ``==`` and
``hash`` on these classes are therefore identity-based, and structural
comparison is spelled out through ``equals()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

ANONYMOUS_HEADING_PREFIX = "Anonymous Datum #"


@dataclass(frozen=True)
class CVTerm:
    """A controlled-vocabulary term, e.g. ``xsd:file``.

    Attributes:
        cv: Vocabulary namespace ("xsd", "mged", "modencode", ...).
        name: Term name within the vocabulary.
    """

    cv: str
    name: str

    @classmethod
    def from_string(cls, value: str) -> CVTerm | None:
        """Split a ``"cv:term"`` string on its first colon.

        Returns None when there is no colon or either side is blank.
        """
        cv, sep, name = value.partition(":")
        cv, name = cv.strip(), name.strip()
        if not sep or not cv or not name:
            return None
        return cls(cv=cv, name=name)

    def to_string(self) -> str:
        return f"{self.cv}:{self.name}"


@dataclass(eq=False)
class DBXref:
    """Reference to a named vocabulary plus an accession within it.

    The accession may be None until a term-source resolver fills it in.
    """

    db: str
    accession: str | None = None

    def equals(self, other: DBXref | None) -> bool:
        if other is None:
            return False
        return self.db == other.db and self.accession == other.accession

    def to_string(self) -> str:
        return f"{self.db}:{self.accession or '?'}"


def _termsources_equal(a: DBXref | None, b: DBXref | None) -> bool:
    if a is None or b is None:
        return a is b
    return a.equals(b)


@dataclass(eq=False)
class Attribute:
    """A free-text column value owned by exactly one Datum or Protocol."""

    heading: str
    value: str
    name: str | None = None
    type: CVTerm | None = None
    termsource: DBXref | None = None

    def equals(self, other: Attribute) -> bool:
        return (
            self.heading == other.heading
            and self.name == other.name
            and self.value == other.value
            and self.type == other.type
            and _termsources_equal(self.termsource, other.termsource)
        )

    def to_string(self) -> str:
        return _render(self.heading, self.name, self.value, self.type, self.termsource)


def _attributes_equal(a: Sequence[Attribute], b: Sequence[Attribute]) -> bool:
    return len(a) == len(b) and all(x.equals(y) for x, y in zip(a, b))


@dataclass(eq=False)
class Datum:
    """A data item flowing into or out of an applied protocol."""

    heading: str
    value: str = ""
    name: str | None = None
    type: CVTerm | None = None
    termsource: DBXref | None = None
    attributes: list[Attribute] = field(default_factory=list)
    anonymous: bool = False

    @classmethod
    def anonymous_datum(cls, number: int) -> Datum:
        """Build the synthetic placeholder that bridges two protocols."""
        return cls(
            heading=f"{ANONYMOUS_HEADING_PREFIX}{number}",
            value="",
            type=CVTerm(cv="modencode", name="anonymous_datum"),
            anonymous=True,
        )

    def add_attribute(self, attribute: Attribute) -> None:
        self.attributes.append(attribute)

    def equals(self, other: Datum) -> bool:
        """Structural equality over every field, attributes in order."""
        if self is other:
            return True
        return (
            self.heading == other.heading
            and self.name == other.name
            and self.value == other.value
            and self.type == other.type
            and self.anonymous == other.anonymous
            and _termsources_equal(self.termsource, other.termsource)
            and _attributes_equal(self.attributes, other.attributes)
        )

    def to_string(self) -> str:
        text = _render(self.heading, self.name, self.value, self.type, self.termsource)
        if self.attributes:
            text += " {" + ", ".join(a.to_string() for a in self.attributes) + "}"
        return text


@dataclass(eq=False)
class Protocol:
    """A named protocol, optionally term-sourced, with its attributes."""

    name: str
    termsource: DBXref | None = None
    attributes: list[Attribute] = field(default_factory=list)

    def add_attribute(self, attribute: Attribute) -> None:
        self.attributes.append(attribute)

    def equals(self, other: Protocol) -> bool:
        if self is other:
            return True
        return (
            self.name == other.name
            and _termsources_equal(self.termsource, other.termsource)
            and _attributes_equal(self.attributes, other.attributes)
        )

    def to_string(self) -> str:
        text = self.name
        if self.termsource is not None:
            text += f" <{self.termsource.to_string()}>"
        if self.attributes:
            text += " {" + ", ".join(a.to_string() for a in self.attributes) + "}"
        return text


def data_lists_equal(a: Sequence[Datum], b: Sequence[Datum]) -> bool:
    """Ordered, element-wise structural comparison of two data lists."""
    return len(a) == len(b) and all(x.equals(y) for x, y in zip(a, b))


def data_sets_equal(a: Sequence[Datum], b: Sequence[Datum]) -> bool:
    """Order-independent comparison: every datum pairs off with a distinct equal peer."""
    if len(a) != len(b):
        return False
    unmatched = list(b)
    for x in a:
        for i, y in enumerate(unmatched):
            if x.equals(y):
                del unmatched[i]
                break
        else:
            return False
    return True


@dataclass(eq=False)
class AppliedProtocol:
    """One protocol applied at one pipeline stage with concrete data."""

    protocol: Protocol
    input_data: list[Datum] = field(default_factory=list)
    output_data: list[Datum] = field(default_factory=list)

    def add_input_datum(self, datum: Datum) -> None:
        if not any(d is datum for d in self.input_data):
            self.input_data.append(datum)

    def add_output_datum(self, datum: Datum) -> None:
        if not any(d is datum for d in self.output_data):
            self.output_data.append(datum)

    def equals(self, other: AppliedProtocol) -> bool:
        """Equal protocol, equal ordered inputs and equal ordered outputs."""
        if self is other:
            return True
        return (
            self.protocol.equals(other.protocol)
            and data_lists_equal(self.input_data, other.input_data)
            and data_lists_equal(self.output_data, other.output_data)
        )

    def to_string(self) -> str:
        inputs = ", ".join(d.to_string() for d in self.input_data)
        outputs = ", ".join(d.to_string() for d in self.output_data)
        return f"[{inputs}] -> {self.protocol.to_string()} -> [{outputs}]"


def _render(
    heading: str,
    name: str | None,
    value: str,
    type_: CVTerm | None,
    termsource: DBXref | None,
) -> str:
    text = heading
    if name:
        text += f" [{name}]"
    if type_ is not None:
        text += f" ({type_.to_string()})"
    text += f"={value}"
    if termsource is not None:
        text += f" <{termsource.to_string()}>"
    return text
