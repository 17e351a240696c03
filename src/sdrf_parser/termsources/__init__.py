"""Term-source resolution: vocabulary lookups and experiment validation."""

from sdrf_parser.termsources.base import TermSourceResolver
from sdrf_parser.termsources.cv_handler import ControlledVocabulary, CVHandler
from sdrf_parser.termsources.obo import OboTerm, parse_obo
from sdrf_parser.termsources.schemas import (
    TermSourceConfig,
    TermSourceDefinition,
    load_term_source_config,
)
from sdrf_parser.termsources.validator import TermSourceValidator

__all__ = [
    "CVHandler",
    "ControlledVocabulary",
    "OboTerm",
    "TermSourceConfig",
    "TermSourceDefinition",
    "TermSourceResolver",
    "TermSourceValidator",
    "load_term_source_config",
    "parse_obo",
]
