"""SDRF parser: header grammar compiler and protocol-chain reconstruction."""

from sdrf_parser.chain import ChainReconstructor, ParseContext
from sdrf_parser.config import ParserSettings
from sdrf_parser.decoder import RowDecoder, UnconsumedCellsWarning
from sdrf_parser.errors import (
    DocumentReadError,
    HeaderSyntaxError,
    RowShapeError,
    SDRFError,
    ValidationError,
)
from sdrf_parser.experiment import Experiment
from sdrf_parser.header import DecodingPlan, compile_header
from sdrf_parser.models import (
    AppliedProtocol,
    Attribute,
    CVTerm,
    Datum,
    DBXref,
    Protocol,
)
from sdrf_parser.parser import ParseState, SDRFParser

__all__ = [
    "AppliedProtocol",
    "Attribute",
    "CVTerm",
    "ChainReconstructor",
    "DBXref",
    "Datum",
    "DecodingPlan",
    "DocumentReadError",
    "Experiment",
    "HeaderSyntaxError",
    "ParseContext",
    "ParseState",
    "ParserSettings",
    "Protocol",
    "RowDecoder",
    "RowShapeError",
    "SDRFError",
    "SDRFParser",
    "UnconsumedCellsWarning",
    "ValidationError",
    "compile_header",
]
