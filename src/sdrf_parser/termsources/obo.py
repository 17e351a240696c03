"""Minimal OBO flat-file reader.

Only ``[Term]`` stanzas are read, and only the tags term validation needs:
``id`` and ``name``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class OboTerm:
    """One term stanza from an OBO document."""

    id: str
    name: str = ""

    @property
    def local_id(self) -> str:
        """The accession part of the id: ``0000123`` for ``MO:0000123``."""
        return self.id.split(":", 1)[-1]

    def matches_term(self, term: str) -> bool:
        """Name equals ``term`` (optionally prefixed ``cv:``), or local id does."""
        return (
            self.name == term
            or self.name.endswith(f":{term}")
            or self.local_id == term
        )

    def matches_accession(self, accession: str) -> bool:
        return self.local_id == accession or self.id == accession


def _strip_comment(value: str) -> str:
    # "id: MO:123 ! comment" -> "MO:123"
    return re.sub(r"\s+!.*$", "", value).strip()


def parse_obo(text: str) -> list[OboTerm]:
    """Parse OBO text into the list of its ``[Term]`` stanzas, in file order."""
    terms: list[OboTerm] = []
    stanza: dict[str, str] | None = None

    def flush() -> None:
        if stanza and stanza.get("id"):
            terms.append(OboTerm(id=stanza["id"], name=stanza.get("name", "")))

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith("["):
            flush()
            stanza = {} if line == "[Term]" else None
            continue
        if stanza is None or ":" not in line:
            continue
        tag, _, value = line.partition(":")
        tag = tag.strip()
        if tag == "id":
            stanza["id"] = _strip_comment(value)
        elif tag == "name":
            stanza["name"] = value.strip()
    flush()
    return terms
