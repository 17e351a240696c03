"""Exception hierarchy for SDRF parsing and term-source resolution.

Parsing failures are fatal for the whole document: a header that cannot be
compiled, a row that decodes into the wrong number of applied protocols, or
a document that cannot be read. Term-source errors belong to the resolver
layer and never corrupt an already-built experiment.
"""

from __future__ import annotations

from pathlib import Path


class SDRFError(Exception):
    """Base exception for all SDRF errors."""

    def __init__(self, message: str) -> None:
        """Initialize SDRF error.

        Args:
            message: Error message.
        """
        self.message = message
        super().__init__(self.message)


class HeaderSyntaxError(SDRFError):
    """A header cell could not be recognized or placed in the grammar."""

    def __init__(self, message: str, cell: str, position: int) -> None:
        """Initialize header syntax error.

        Args:
            message: Description of what is wrong with the cell.
            cell: The offending header cell text.
            position: 0-based column index of the cell.
        """
        self.cell = cell
        self.position = position
        super().__init__(f"{message} (column {position + 1}: {cell!r})")


class RowShapeError(SDRFError):
    """A data row decoded into the wrong number of applied protocols."""

    def __init__(self, line_number: int, expected: int, actual: int) -> None:
        """Initialize row shape error.

        Args:
            line_number: 1-based line number of the row in the document.
            expected: Number of protocol segments in the decoding plan.
            actual: Number of applied protocols the row produced.
        """
        self.line_number = line_number
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Line {line_number}: got {actual} applied protocols "
            f"when {expected} were expected"
        )


class DocumentReadError(SDRFError, OSError):
    """The SDRF document could not be found or read."""

    def __init__(self, message: str, path: str | Path) -> None:
        """Initialize document read error.

        Args:
            message: Error message.
            path: Path of the document that failed to load.
        """
        self.path = str(path)
        super().__init__(message)


class ValidationError(SDRFError):
    """An experiment's term sources failed validation."""


class TermSourceError(SDRFError):
    """Base exception for term-source resolver failures."""


class TermNotFoundError(TermSourceError):
    """A term or accession does not exist in the named vocabulary."""

    def __init__(self, cv: str, term: str | None = None, accession: str | None = None) -> None:
        """Initialize term lookup error.

        Args:
            cv: Vocabulary name.
            term: Term that was looked up, if any.
            accession: Accession that was looked up, if any.
        """
        self.cv = cv
        self.term = term
        self.accession = accession
        what = f"term {term!r}" if term is not None else f"accession {accession!r}"
        super().__init__(f"Unable to find {what} in {cv}")


class OntologyFetchError(TermSourceError):
    """A vocabulary document could not be fetched or parsed."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialize ontology fetch error.

        Args:
            message: Error message.
            url: URL of the vocabulary, if known.
            status_code: HTTP status code if applicable.
        """
        self.url = url
        self.status_code = status_code
        super().__init__(message)
