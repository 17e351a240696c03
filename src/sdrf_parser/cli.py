"""Command-line entry point: parse an SDRF file and print its protocol chain.

Usage:
    sdrf-parse path/to/experiment.sdrf
    sdrf-parse path/to/experiment.sdrf --validate --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
import sys

from sdrf_parser.config import ParserSettings
from sdrf_parser.errors import SDRFError
from sdrf_parser.parser import SDRFParser
from sdrf_parser.termsources.cv_handler import CVHandler
from sdrf_parser.termsources.validator import TermSourceValidator

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sdrf-parse",
        description="Parse an SDRF document and print its applied-protocol slots",
    )
    parser.add_argument("path", help="SDRF file to parse")
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Check every term source against its controlled vocabulary",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the parser; return 0 on success, 1 on parse or validation failure."""
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = ParserSettings.from_env()
    try:
        experiment = SDRFParser(settings).parse(args.path)
    except SDRFError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(experiment.to_string())

    if args.validate:
        with CVHandler(settings) as handler:
            valid = TermSourceValidator(handler).validate(experiment)
        if not valid:
            print("ERROR: term sources did not validate", file=sys.stderr)
            return 1
        logger.info("All term sources validated")
    return 0


if __name__ == "__main__":
    sys.exit(main())
