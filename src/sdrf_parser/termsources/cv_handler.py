"""Controlled-vocabulary handler with disk cache, retry and circuit breaker.

Resolves and validates terms against named vocabularies. Two kinds of
vocabulary are supported:

- OBO: the document at the vocabulary URL is downloaded (httpx sync client,
  tenacity retry on transient errors, pybreaker circuit breaker), kept in a
  diskcache store, and parsed into terms. A stale cached copy is used when
  the server cannot be reached.
- URL: a term is valid when ``GET <url><term>`` succeeds.

Vocabulary URLs come from term_sources.yaml, an explicit ``add_cv`` call,
or the optional canonical-URL service. Unknown vocabularies fail closed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

import diskcache  # type: ignore[import-untyped]
import httpx
from pybreaker import CircuitBreakerError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from sdrf_parser.config import ParserSettings
from sdrf_parser.errors import OntologyFetchError, TermNotFoundError
from sdrf_parser.resilience import ontology_breaker
from sdrf_parser.termsources.obo import OboTerm, parse_obo
from sdrf_parser.termsources.schemas import (
    TermSourceDefinition,
    load_term_source_config,
)

logger = logging.getLogger(__name__)

_CANONICAL_URL_RE = re.compile(r"<canonical_url>\s*(.*?)\s*</canonical_url>", re.S)
_CANONICAL_TYPE_RE = re.compile(
    r"<canonical_url_type>\s*(.*?)\s*</canonical_url_type>", re.S
)


class _TransientError(Exception):
    """Raised internally to trigger tenacity retry on 5xx / 429 errors."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Transient error {status_code}: {body[:100]}")


_NETWORK_ERRORS = (httpx.RequestError, _TransientError, CircuitBreakerError)


@dataclass
class ControlledVocabulary:
    """A loaded vocabulary and the verdicts reached for it so far.

    Attributes:
        url: Vocabulary document URL, or term URL prefix for URL vocabularies.
        url_type: "OBO" or "URL".
        names: Primary name first, then any synonyms.
        terms: Parsed OBO terms (empty for URL vocabularies).
    """

    url: str
    url_type: str
    names: list[str]
    terms: list[OboTerm] = field(default_factory=list)
    valid_terms: dict[str, bool] = field(default_factory=dict)
    valid_accessions: dict[str, bool] = field(default_factory=dict)

    @property
    def is_url_based(self) -> bool:
        return self.url_type.upper().startswith("URL")


class CVHandler:
    """Term-source resolver backed by OBO documents and URL lookups.

    Uses httpx.Client (sync) for HTTP transport, diskcache.Cache for
    ontology documents, and tenacity for retry with exponential backoff on
    transient errors (5xx, 429, network errors).

    Args:
        settings: Parser settings; defaults to ``ParserSettings.from_env()``.
    """

    def __init__(self, settings: ParserSettings | None = None) -> None:
        """Load predefined vocabularies, then open the HTTP client and cache."""
        self.settings = settings or ParserSettings.from_env()
        config = load_term_source_config(self.settings.term_sources_path)
        self._definitions: dict[str, TermSourceDefinition] = {
            name: definition
            for definition in config.term_sources
            for name in definition.names
        }
        self._cvs: dict[str, ControlledVocabulary] = {}

        self._http = httpx.Client(timeout=self.settings.http_timeout)
        cache_path = self.settings.resolved_cache_dir
        cache_path.mkdir(parents=True, exist_ok=True)
        self._cache = diskcache.Cache(str(cache_path))

    # -- Context manager --------------------------------------------------

    def __enter__(self) -> "CVHandler":
        """Enter context manager scope."""
        return self

    def __exit__(self, _exc_type: object, _exc: object, _tb: object) -> None:
        """Exit context manager scope and close resources."""
        self.close()

    def close(self) -> None:
        """Close the HTTP client and the cache."""
        self._http.close()
        try:
            self._cache.close()
        except (OSError, AttributeError):
            pass

    # -- Registry ------------------------------------------------------------

    def get_cv_by_name(self, name: str) -> ControlledVocabulary | None:
        for cv in self._cvs.values():
            if name in cv.names:
                return cv
        return None

    def get_url_for_cv_name(self, name: str) -> str | None:
        cv = self.get_cv_by_name(name)
        return cv.url if cv is not None else None

    def add_cv(
        self, name: str, url: str | None = None, url_type: str | None = None
    ) -> bool:
        """Register (and for OBO vocabularies, load) a vocabulary.

        When ``url`` or ``url_type`` is missing they are taken from
        term_sources.yaml, then from the canonical-URL service.

        Returns:
            True if the vocabulary is available under ``name`` afterwards.
        """
        synonyms: list[str] = []
        if not url or not url_type:
            definition = self._definitions.get(name)
            if definition is not None:
                url, url_type = definition.url, definition.url_type
                synonyms = [n for n in definition.names if n != name]
            else:
                url, url_type = self._canonical_url(name)
        if not url or not url_type:
            logger.warning("No URL is known for the vocabulary '%s'", name)
            return False
        url_type = url_type.strip().upper()

        existing_url = self.get_url_for_cv_name(name)
        if existing_url and existing_url != url:
            logger.warning(
                "The CV name %s is already used for %s, but an attempt has been "
                "made to redefine it for %s",
                name,
                existing_url,
                url,
            )
            return False

        existing = self._cvs.get(url)
        if existing is not None:
            if name not in existing.names:
                existing.names.append(name)
            return True

        cv = ControlledVocabulary(url=url, url_type=url_type, names=[name, *synonyms])
        if cv.is_url_based:
            self._cvs[url] = cv
            return True
        if url_type != "OBO":
            logger.error(
                "Don't know how to parse the CV '%s' at %s of type %s; "
                "point the term source at an OBO file",
                name,
                url,
                url_type,
            )
            return False

        try:
            text = self._load_document(url)
        except OntologyFetchError as exc:
            logger.warning("Can't load vocabulary '%s': %s", name, exc)
            return False
        cv.terms = parse_obo(text)
        logger.info(
            "Loaded vocabulary '%s' (%d terms) from %s", name, len(cv.terms), url
        )
        self._cvs[url] = cv
        return True

    # -- Resolver interface ---------------------------------------------------

    def is_valid_term(self, cv_name: str, term: str) -> bool:
        cv = self._ensure_cv(cv_name)
        if cv is None:
            logger.warning(
                "Cannot find the '%s' ontology, so '%s' is not valid", cv_name, term
            )
            return False
        if term not in cv.valid_terms:
            if cv.is_url_based:
                cv.valid_terms[term] = self._url_exists(cv.url + term)
            else:
                cv.valid_terms[term] = any(t.matches_term(term) for t in cv.terms)
        return cv.valid_terms[term]

    def is_valid_accession(self, cv_name: str, accession: str) -> bool:
        cv = self._ensure_cv(cv_name)
        if cv is None:
            logger.warning(
                "Cannot find the '%s' ontology, so accession %s is not valid",
                cv_name,
                accession,
            )
            return False
        if accession not in cv.valid_accessions:
            if cv.is_url_based:
                cv.valid_accessions[accession] = self._url_exists(cv.url + accession)
            else:
                cv.valid_accessions[accession] = any(
                    t.matches_accession(accession) for t in cv.terms
                )
        return cv.valid_accessions[accession]

    def get_accession_for_term(self, cv_name: str, term: str) -> str:
        cv = self._ensure_cv(cv_name)
        if cv is None:
            raise TermNotFoundError(cv_name, term=term)
        if cv.is_url_based:
            return term
        for node in cv.terms:
            if node.matches_term(term):
                return node.local_id
        raise TermNotFoundError(cv_name, term=term)

    def get_term_for_accession(self, cv_name: str, accession: str) -> str:
        cv = self._ensure_cv(cv_name)
        if cv is None:
            raise TermNotFoundError(cv_name, accession=accession)
        if cv.is_url_based:
            return accession
        for node in cv.terms:
            if node.matches_accession(accession):
                return (node.name or node.id).rsplit(":", 1)[-1]
        raise TermNotFoundError(cv_name, accession=accession)

    def resolve(
        self, cv: str, term: str | None = None, accession: str | None = None
    ) -> tuple[str, str]:
        """Fill in whichever of term/accession is missing.

        Raises:
            ValueError: If neither term nor accession is given.
            TermNotFoundError: If the vocabulary or the lookup fails.
        """
        if not term and not accession:
            raise ValueError("term or accession is required")
        if not accession:
            accession = self.get_accession_for_term(cv, term or "")
        if not term:
            term = self.get_term_for_accession(cv, accession)
        return term, accession

    # -- Internal ----------------------------------------------------------

    def _ensure_cv(self, name: str) -> ControlledVocabulary | None:
        cv = self.get_cv_by_name(name)
        if cv is None and self.add_cv(name):
            cv = self.get_cv_by_name(name)
        return cv

    def _canonical_url(self, name: str) -> tuple[str | None, str | None]:
        service = self.settings.canonical_url_service
        if not service:
            return None, None
        try:
            response = self._request(service, {"get_canonical_url": name})
        except _NETWORK_ERRORS as exc:
            logger.warning("Couldn't connect to canonical URL source: %s", exc)
            return None, None
        if not response.is_success:
            logger.warning(
                "Canonical URL source returned %s for '%s'", response.status_code, name
            )
            return None, None
        url = _CANONICAL_URL_RE.search(response.text)
        url_type = _CANONICAL_TYPE_RE.search(response.text)
        return (
            url.group(1) if url else None,
            url_type.group(1) if url_type else None,
        )

    def _load_document(self, url: str) -> str:
        """Return the vocabulary document, refetching once the cached copy is stale."""
        doc_key = f"obo:{url}"
        fresh_key = f"obo-fresh:{url}"
        cached = self._cache.get(doc_key)
        if cached is not None and self._cache.get(fresh_key):
            return cached  # type: ignore[no-any-return]

        try:
            response = self._request(url)
        except _NETWORK_ERRORS as exc:
            if cached is not None:
                logger.warning("Can't refresh %s (%s); using cached copy", url, exc)
                return cached  # type: ignore[no-any-return]
            raise OntologyFetchError(
                f"Couldn't fetch {url}, and no cached copy found: {exc}", url=url
            ) from exc

        if not response.is_success:
            if cached is not None:
                logger.warning(
                    "Fetching %s returned %s; using cached copy",
                    url,
                    response.status_code,
                )
                return cached  # type: ignore[no-any-return]
            raise OntologyFetchError(
                f"Couldn't fetch {url}: HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        text = response.text
        self._cache.set(doc_key, text)
        self._cache.set(fresh_key, True, expire=self.settings.cache_ttl)
        return text

    def _url_exists(self, url: str) -> bool:
        try:
            response = self._request(url)
        except _NETWORK_ERRORS as exc:
            logger.warning("Couldn't check %s: %s", url, exc)
            return False
        return bool(response.is_success)

    def _request(
        self, url: str, params: dict[str, str] | None = None
    ) -> httpx.Response:
        return ontology_breaker.call(self._get_with_retry, url, params)

    @retry(
        retry=retry_if_exception_type((httpx.RequestError, _TransientError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        reraise=True,
    )
    def _get_with_retry(
        self, url: str, params: dict[str, str] | None = None
    ) -> httpx.Response:
        """Make HTTP request with tenacity retry on transient errors."""
        response = self._http.get(url, params=params)
        if response.status_code >= 500 or response.status_code == 429:
            raise _TransientError(response.status_code, response.text)
        return response
