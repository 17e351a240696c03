"""Interface the term-source validator expects from a vocabulary resolver."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TermSourceResolver(Protocol):
    """Looks up terms and accessions in named vocabularies.

    Implementations cache whatever they fetch and fail closed: an unknown
    vocabulary, term or accession is reported as invalid (or raises
    ``TermNotFoundError`` from ``resolve``), never assumed valid.
    """

    def resolve(
        self, cv: str, term: str | None = None, accession: str | None = None
    ) -> tuple[str, str]:
        """Return ``(term, accession)``, filling whichever one is missing."""
        ...

    def is_valid_term(self, cv: str, term: str) -> bool: ...

    def is_valid_accession(self, cv: str, accession: str) -> bool: ...
