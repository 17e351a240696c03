"""Configuration for the SDRF parser and its term-source resolver.

Contains term_sources.yaml (predefined vocabulary name -> URL mapping) and
the environment-driven ``ParserSettings``.

Environment variables:
- SDRF_ENCODING: Text encoding of SDRF documents (default utf-8).
- SDRF_CACHE_DIR: Directory for the ontology disk cache (optional; defaults
  to platformdirs user_cache_dir).
- SDRF_CACHE_TTL_SECONDS: Freshness of cached ontology documents (default
  7 days; must be >0).
- SDRF_HTTP_TIMEOUT_SECONDS: HTTP timeout for ontology fetches (default 10).
- SDRF_CANONICAL_URL_SERVICE: Endpoint used to look up the URL of a
  vocabulary that is not predefined (optional; disabled when unset).
- SDRF_TERM_SOURCES: Path to an alternative term_sources.yaml.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_cache_dir

DEFAULT_TERM_SOURCES_PATH = Path(__file__).parent / "term_sources.yaml"

_DEFAULT_CACHE_TTL = 7 * 24 * 60 * 60
_DEFAULT_HTTP_TIMEOUT = 10.0


@dataclass(frozen=True)
class ParserSettings:
    """Settings shared by the parser session and the CV handler.

    Attributes:
        encoding: Text encoding used to read SDRF documents.
        cache_dir: Ontology cache directory; empty means the platform default.
        cache_ttl: Seconds a cached ontology document stays fresh.
        http_timeout: HTTP timeout in seconds for ontology requests.
        canonical_url_service: URL queried (with ``?get_canonical_url=<name>``)
            for vocabularies missing from term_sources.yaml. Empty disables it.
        term_sources_path: YAML file of predefined vocabularies.
    """

    encoding: str = "utf-8"
    cache_dir: str = ""
    cache_ttl: int = _DEFAULT_CACHE_TTL
    http_timeout: float = _DEFAULT_HTTP_TIMEOUT
    canonical_url_service: str = ""
    term_sources_path: Path = DEFAULT_TERM_SOURCES_PATH

    @property
    def resolved_cache_dir(self) -> Path:
        if self.cache_dir:
            return Path(self.cache_dir)
        return Path(user_cache_dir("sdrf-parser")) / "ontologies"

    @classmethod
    def from_env(cls) -> "ParserSettings":
        """Create ParserSettings from environment variables."""
        raw_timeout = os.getenv("SDRF_HTTP_TIMEOUT_SECONDS", "")
        try:
            timeout = float(raw_timeout) if raw_timeout else _DEFAULT_HTTP_TIMEOUT
        except ValueError:
            timeout = _DEFAULT_HTTP_TIMEOUT
        if timeout <= 0:
            timeout = _DEFAULT_HTTP_TIMEOUT

        term_sources = os.getenv("SDRF_TERM_SOURCES")
        return cls(
            encoding=os.getenv("SDRF_ENCODING", cls.encoding) or cls.encoding,
            cache_dir=os.getenv("SDRF_CACHE_DIR", cls.cache_dir),
            cache_ttl=_parse_cache_ttl(os.getenv("SDRF_CACHE_TTL_SECONDS")),
            http_timeout=timeout,
            canonical_url_service=os.getenv(
                "SDRF_CANONICAL_URL_SERVICE", cls.canonical_url_service
            ),
            term_sources_path=(
                Path(term_sources) if term_sources else DEFAULT_TERM_SOURCES_PATH
            ),
        )


def _parse_cache_ttl(value: str | None) -> int:
    """Parse cache TTL from string value.

    Args:
        value: TTL string in seconds, or None for default.

    Returns:
        TTL in seconds (default 7 days).
    """
    if not value:
        return _DEFAULT_CACHE_TTL
    try:
        ttl = int(value)
    except ValueError:
        return _DEFAULT_CACHE_TTL
    return ttl if ttl > 0 else _DEFAULT_CACHE_TTL
