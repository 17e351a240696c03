"""Experiment: the reconciled protocol-chain graph handed to consumers."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Iterator, Sequence, Union

from sdrf_parser.models import AppliedProtocol, Attribute, Datum, DBXref, Protocol

TermSourceOwner = Union[Protocol, Datum, Attribute]


@dataclass(frozen=True)
class TermSourceUsage:
    """A term source together with the value it qualifies.

    Attributes:
        owner: The Protocol, Datum or Attribute carrying the term source.
        termsource: The DBXref itself; its accession may be filled in place.
        term: The owner's protocol name or value.
        context: Human-readable location for log messages.
    """

    owner: TermSourceOwner
    termsource: DBXref
    term: str
    context: str


class Experiment:
    """Ordered slots of applied protocols, one slot per protocol segment.

    Structure is fixed once built. Only term-source accessions inside
    existing protocols, data and attributes may later be filled in. Data are
    shared between slots, so a pass that mutates them should work on
    ``clone()``.
    """

    def __init__(self, applied_protocol_slots: Sequence[Sequence[AppliedProtocol]]) -> None:
        self._slots = tuple(tuple(slot) for slot in applied_protocol_slots)

    @property
    def applied_protocol_slots(self) -> tuple[tuple[AppliedProtocol, ...], ...]:
        return self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def iter_applied_protocols(self) -> Iterator[AppliedProtocol]:
        """Yield every applied protocol in pipeline order."""
        for slot in self._slots:
            yield from slot

    def iter_data(self) -> Iterator[Datum]:
        """Yield every distinct datum (by identity), inputs before outputs."""
        seen: set[int] = set()
        for applied_protocol in self.iter_applied_protocols():
            for datum in (*applied_protocol.input_data, *applied_protocol.output_data):
                if id(datum) not in seen:
                    seen.add(id(datum))
                    yield datum

    def iter_term_source_refs(self) -> Iterator[TermSourceUsage]:
        """Yield each term source once, with the value it constrains.

        Order follows the pipeline: protocol, protocol attributes, then each
        input and output datum followed by its attributes.
        """
        seen: set[int] = set()

        def visit(owner: TermSourceOwner, term: str, context: str) -> Iterator[TermSourceUsage]:
            if owner.termsource is not None and id(owner) not in seen:
                seen.add(id(owner))
                yield TermSourceUsage(owner, owner.termsource, term, context)

        for applied_protocol in self.iter_applied_protocols():
            protocol = applied_protocol.protocol
            where = f"protocol {protocol.name}"
            yield from visit(protocol, protocol.name, where)
            for attribute in protocol.attributes:
                yield from visit(
                    attribute, attribute.value, f"attribute {attribute.to_string()} of {where}"
                )
            for datum in (*applied_protocol.input_data, *applied_protocol.output_data):
                datum_where = f"datum {datum.to_string()} of {where}"
                yield from visit(datum, datum.value, datum_where)
                for attribute in datum.attributes:
                    yield from visit(
                        attribute,
                        attribute.value,
                        f"attribute {attribute.to_string()} of {datum_where}",
                    )

    def clone(self) -> Experiment:
        """Deep copy, preserving object sharing within the copy."""
        return copy.deepcopy(self)

    def to_string(self) -> str:
        lines: list[str] = []
        for index, slot in enumerate(self._slots):
            lines.append(f"Slot {index}:")
            lines.extend(f"  {ap.to_string()}" for ap in slot)
        return "\n".join(lines)
