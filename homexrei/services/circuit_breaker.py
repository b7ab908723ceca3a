"""
Redis-backed circuit breakers (pybreaker) for outbound HTTP dependencies.
Every API process shares the breaker state, so one worker seeing the video
endpoint fail opens it for all of them.
"""
import logging

import pybreaker
import redis

from homexrei.core.config import settings
from homexrei.utils.metrics import circuit_breaker_state

logger = logging.getLogger(__name__)

# Gauge values per breaker state
_STATE_VALUES = {
    pybreaker.STATE_CLOSED: 0,
    pybreaker.STATE_HALF_OPEN: 0.5,
    pybreaker.STATE_OPEN: 1,
}


def _state_name(state) -> str:
    return getattr(state, "name", str(state))


class BreakerEventListener(pybreaker.CircuitBreakerListener):
    def __init__(self, name: str) -> None:
        self.name = name

    def state_change(self, cb: pybreaker.CircuitBreaker, old_state, new_state) -> None:
        new_name = _state_name(new_state)
        circuit_breaker_state.labels(name=self.name).set(_STATE_VALUES.get(new_name, 0))
        log = logger.error if new_name == pybreaker.STATE_OPEN else logger.info
        log(
            "circuit_breaker_state_change",
            extra={"breaker_name": self.name, "old_state": _state_name(old_state), "new_state": new_name},
        )

    def failure(self, cb: pybreaker.CircuitBreaker, exc: BaseException) -> None:
        logger.warning(
            "circuit_breaker_failure",
            extra={"breaker_name": self.name, "error": f"{type(exc).__name__}: {exc}"[:300]},
        )


_breakers: dict[str, pybreaker.CircuitBreaker] = {}


def get_circuit_breaker(name: str) -> pybreaker.CircuitBreaker:
    """Named breaker, built on first use (CircuitRedisStorage talks to Redis on init)."""
    breaker = _breakers.get(name)
    if breaker is None:
        # CircuitRedisStorage needs a client without decode_responses
        storage = pybreaker.CircuitRedisStorage(
            pybreaker.STATE_CLOSED,
            redis.Redis.from_url(settings.redis_url),
            namespace=f"homexrei:{name}",
        )
        breaker = pybreaker.CircuitBreaker(
            fail_max=settings.cb_failure_threshold,
            reset_timeout=settings.cb_open_seconds,
            state_storage=storage,
            listeners=[BreakerEventListener(name)],
            name=name,
        )
        _breakers[name] = breaker
    return breaker
