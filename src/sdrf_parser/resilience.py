"""Circuit breaker for remote vocabulary lookups.

One breaker guards every ontology fetch and URL term check. It trips after
3 consecutive failures and recovers after 60 seconds, so a dead ontology
host fails the remaining lookups of a validation pass immediately.
"""

import logging

from pybreaker import CircuitBreaker, CircuitBreakerListener

logger = logging.getLogger(__name__)

_RECOVERY_TIMEOUT = 60
_FAIL_MAX = 3


class LoggingCircuitBreakerListener(CircuitBreakerListener):
    """Log circuit breaker state changes."""

    def state_change(self, cb, old_state, new_state):  # type: ignore[override]
        """Handle circuit breaker state change by logging it."""
        old_name = getattr(old_state, "name", old_state)
        new_name = getattr(new_state, "name", new_state)
        if old_name == new_name:
            return
        logger.warning(
            "Circuit breaker %s changed state: %s -> %s (failures: %d)",
            cb.name,
            old_name,
            new_name,
            cb.fail_counter,
        )


ontology_breaker = CircuitBreaker(
    fail_max=_FAIL_MAX,
    reset_timeout=_RECOVERY_TIMEOUT,
    name="ontology",
    listeners=[LoggingCircuitBreakerListener()],
)
