"""Chain reconstruction over the segment x row matrix of applied protocols.

``matrix[i][j]`` is the applied protocol that row ``j`` produced for segment
``i``. Reconstruction runs three passes:

1. Linking: outputs of ``matrix[i][j]`` become inputs of ``matrix[i + 1][j]``.
2. Bridging: a non-final stage with no outputs gets an anonymous datum that
   connects it to the next stage. Rows that are identical at that stage share
   the same anonymous datum.
3. Reduction: each slot keeps the first applied protocol of every
   structurally equal group, in row order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from sdrf_parser.experiment import Experiment
from sdrf_parser.models import AppliedProtocol, Datum, data_sets_equal

logger = logging.getLogger(__name__)

Matrix = Sequence[Sequence[AppliedProtocol]]


@dataclass
class Bridge:
    """An anonymous datum and the applied protocol it was created for."""

    source: AppliedProtocol
    datum: Datum

    def matches(self, applied_protocol: AppliedProtocol) -> bool:
        """True when ``applied_protocol`` is the same stage as this bridge's source.

        Same protocol, same input data (order-independent) and the same
        outputs once this bridge's own anonymous datum is set aside.
        """
        source = self.source
        return (
            source.protocol.equals(applied_protocol.protocol)
            and data_sets_equal(source.input_data, applied_protocol.input_data)
            and data_sets_equal(
                [d for d in source.output_data if not d.anonymous],
                applied_protocol.output_data,
            )
        )


@dataclass
class ParseContext:
    """Per-document state: anonymous datum numbering and the bridge registry."""

    anonymous_counter: int = 0
    bridges: list[Bridge] = field(default_factory=list)

    def new_anonymous_datum(self) -> Datum:
        datum = Datum.anonymous_datum(self.anonymous_counter)
        self.anonymous_counter += 1
        return datum

    def find_bridge(self, applied_protocol: AppliedProtocol) -> Bridge | None:
        for bridge in self.bridges:
            if bridge.matches(applied_protocol):
                return bridge
        return None


def reduce_slot(slot: Sequence[AppliedProtocol]) -> list[AppliedProtocol]:
    """Keep the first applied protocol of each structurally equal group."""
    kept: list[AppliedProtocol] = []
    for applied_protocol in slot:
        if not any(existing.equals(applied_protocol) for existing in kept):
            kept.append(applied_protocol)
    return kept


class ChainReconstructor:
    """Link, bridge and reduce a matrix of applied protocols."""

    def __init__(self, context: ParseContext | None = None) -> None:
        self.context = context or ParseContext()

    def link(self, matrix: Matrix) -> None:
        """Feed every stage's outputs into the next stage of the same row."""
        for i in range(len(matrix) - 1):
            for previous, following in zip(matrix[i], matrix[i + 1]):
                for datum in previous.output_data:
                    following.add_input_datum(datum)

    def bridge(self, matrix: Matrix) -> int:
        """Connect output-less stages to the next stage with anonymous data.

        Returns:
            Number of anonymous data created.
        """
        created = 0
        for i in range(len(matrix) - 1):
            for previous, following in zip(matrix[i], matrix[i + 1]):
                if previous.output_data:
                    continue
                existing = self.context.find_bridge(previous)
                if existing is not None:
                    datum = existing.datum
                else:
                    datum = self.context.new_anonymous_datum()
                    self.context.bridges.append(Bridge(source=previous, datum=datum))
                    created += 1
                previous.add_output_datum(datum)
                following.add_input_datum(datum)
        if created:
            logger.debug("Created %d anonymous data to bridge protocols", created)
        return created

    def reduce(self, matrix: Matrix) -> list[list[AppliedProtocol]]:
        slots = [reduce_slot(slot) for slot in matrix]
        logger.debug(
            "Reduced applied protocol slots to sizes %s", [len(slot) for slot in slots]
        )
        return slots

    def reconstruct(self, matrix: Matrix) -> Experiment:
        self.link(matrix)
        self.bridge(matrix)
        return Experiment(self.reduce(matrix))
