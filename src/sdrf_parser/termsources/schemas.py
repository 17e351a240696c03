"""Pydantic schemas for the predefined vocabulary configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

_URL_TYPES = {"OBO", "OWL", "URL"}


class TermSourceDefinition(BaseModel):
    """Where a named vocabulary lives and how to read it.

    Attributes:
        name: Primary vocabulary name, as used in Term Source REF cells.
        synonyms: Other names that refer to the same vocabulary.
        url: Location of the vocabulary document (or URL prefix for terms).
        url_type: "OBO" for a downloadable OBO file, "URL" for vocabularies
            whose terms are checked by appending them to ``url``.
    """

    name: str = Field(min_length=1, description="Primary vocabulary name")
    synonyms: list[str] = Field(default_factory=list)
    url: str = Field(min_length=1, description="Vocabulary document or term URL prefix")
    url_type: str = Field(description="OBO, OWL or URL")

    @field_validator("url_type")
    @classmethod
    def _check_url_type(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in _URL_TYPES:
            raise ValueError(f"url_type must be one of {sorted(_URL_TYPES)}, got {value!r}")
        return normalized

    @property
    def names(self) -> list[str]:
        return [self.name, *self.synonyms]


class TermSourceConfig(BaseModel):
    """Top-level layout of term_sources.yaml."""

    term_sources: list[TermSourceDefinition] = Field(default_factory=list)


@lru_cache(maxsize=8)
def load_term_source_config(path: Path) -> TermSourceConfig:
    """Load and validate a term_sources.yaml file (cached per path)."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return TermSourceConfig.model_validate(data)
