"""Tests for ParserSettings and the term source configuration."""

from __future__ import annotations

from pathlib import Path

import pydantic
import pytest

from sdrf_parser.config import DEFAULT_TERM_SOURCES_PATH, ParserSettings
from sdrf_parser.termsources.schemas import (
    TermSourceDefinition,
    load_term_source_config,
)


class TestParserSettings:
    """Tests for ParserSettings.from_env."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SDRF_CACHE_DIR", raising=False)
        settings = ParserSettings.from_env()
        assert settings.encoding == "utf-8"
        assert settings.cache_ttl == 7 * 24 * 60 * 60
        assert settings.http_timeout == 10.0
        assert settings.canonical_url_service == ""
        assert settings.term_sources_path == DEFAULT_TERM_SOURCES_PATH
        assert settings.resolved_cache_dir.name == "ontologies"

    def test_environment_overrides(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("SDRF_ENCODING", "latin-1")
        monkeypatch.setenv("SDRF_CACHE_DIR", str(tmp_path))
        monkeypatch.setenv("SDRF_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("SDRF_HTTP_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("SDRF_CANONICAL_URL_SERVICE", "http://canonical.example/")
        monkeypatch.setenv("SDRF_TERM_SOURCES", str(tmp_path / "ts.yaml"))
        settings = ParserSettings.from_env()
        assert settings.encoding == "latin-1"
        assert settings.resolved_cache_dir == tmp_path
        assert settings.cache_ttl == 60
        assert settings.http_timeout == 2.5
        assert settings.canonical_url_service == "http://canonical.example/"
        assert settings.term_sources_path == tmp_path / "ts.yaml"

    @pytest.mark.parametrize("value", ["abc", "0", "-5"])
    def test_bad_ttl_falls_back_to_default(
        self, monkeypatch: pytest.MonkeyPatch, value: str
    ) -> None:
        monkeypatch.setenv("SDRF_CACHE_TTL_SECONDS", value)
        assert ParserSettings.from_env().cache_ttl == 7 * 24 * 60 * 60

    @pytest.mark.parametrize("value", ["soon", "0"])
    def test_bad_timeout_falls_back_to_default(
        self, monkeypatch: pytest.MonkeyPatch, value: str
    ) -> None:
        monkeypatch.setenv("SDRF_HTTP_TIMEOUT_SECONDS", value)
        assert ParserSettings.from_env().http_timeout == 10.0


class TestTermSourceConfig:
    """Tests for term_sources.yaml loading."""

    def test_bundled_vocabularies(self) -> None:
        config = load_term_source_config(DEFAULT_TERM_SOURCES_PATH)
        by_name = {d.name: d for d in config.term_sources}
        assert set(by_name) >= {"xsd", "modencode", "MO"}
        assert by_name["MO"].names == ["MO", "mged"]
        assert all(d.url_type == "OBO" for d in config.term_sources)

    def test_custom_file(self, tmp_path: Path) -> None:
        path = tmp_path / "ts.yaml"
        path.write_text(
            "term_sources:\n"
            "  - name: GB\n"
            "    url: http://terms.example/\n"
            "    url_type: url\n"
        )
        [definition] = load_term_source_config(path).term_sources
        assert definition.url_type == "URL"
        assert definition.synonyms == []

    def test_unknown_url_type_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="url_type"):
            TermSourceDefinition(name="X", url="http://x/", url_type="CSV")
