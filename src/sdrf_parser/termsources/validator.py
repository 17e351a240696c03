"""Term-source validation and accession filling for parsed experiments."""

from __future__ import annotations

import logging

from sdrf_parser.errors import TermSourceError, ValidationError
from sdrf_parser.experiment import Experiment, TermSourceUsage
from sdrf_parser.termsources.base import TermSourceResolver

logger = logging.getLogger(__name__)


class TermSourceValidator:
    """Checks every term source of an experiment against a resolver.

    Args:
        resolver: Any object satisfying ``TermSourceResolver``.
    """

    def __init__(self, resolver: TermSourceResolver) -> None:
        self.resolver = resolver

    def validate(self, experiment: Experiment) -> bool:
        """Return True when every term source names a known term or accession.

        The experiment passed in is never modified. Every failure is logged,
        not just the first.
        """
        success = True
        for usage in experiment.clone().iter_term_source_refs():
            if not self._check(usage):
                success = False
        return success

    def merge(self, experiment: Experiment) -> Experiment:
        """Return a validated clone with every term-source accession filled in.

        Raises:
            ValidationError: If the experiment does not validate, or a
                resolver lookup fails while filling accessions.
        """
        if not self.validate(experiment):
            raise ValidationError("Experiment term sources did not validate")
        merged = experiment.clone()
        for usage in merged.iter_term_source_refs():
            try:
                _term, accession = self.resolver.resolve(
                    usage.termsource.db,
                    term=usage.term or None,
                    accession=None if usage.term else usage.termsource.accession,
                )
            except TermSourceError as exc:
                raise ValidationError(
                    f"Couldn't resolve {usage.context}: {exc.message}"
                ) from exc
            usage.termsource.accession = accession
        return merged

    def _check(self, usage: TermSourceUsage) -> bool:
        db = usage.termsource.db
        accession = usage.termsource.accession
        if usage.term:
            if self.resolver.is_valid_term(db, usage.term):
                return True
            logger.error("Term '%s' is not valid in %s for %s", usage.term, db, usage.context)
            return False
        if accession:
            if self.resolver.is_valid_accession(db, accession):
                return True
            logger.error(
                "Accession '%s' is not valid in %s for %s", accession, db, usage.context
            )
            return False
        logger.error("No term or accession to validate in %s for %s", db, usage.context)
        return False
