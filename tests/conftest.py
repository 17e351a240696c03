"""Pytest configuration for sdrf-parser tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from sdrf_parser.config import ParserSettings
from sdrf_parser.resilience import ontology_breaker


@pytest.fixture(autouse=True)
def _reset_ontology_breaker() -> None:
    """The breaker is module-level; keep failures from leaking between tests."""
    if ontology_breaker.current_state != "closed" or ontology_breaker.fail_counter:
        ontology_breaker.close()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in (
        "SDRF_ENCODING",
        "SDRF_CACHE_TTL_SECONDS",
        "SDRF_HTTP_TIMEOUT_SECONDS",
        "SDRF_CANONICAL_URL_SERVICE",
        "SDRF_TERM_SOURCES",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SDRF_CACHE_DIR", str(tmp_path / "ontology-cache"))


@pytest.fixture
def settings(tmp_path: Path) -> ParserSettings:
    return ParserSettings(cache_dir=str(tmp_path / "cache"))

