"""
Circuit Breaker configuration for external availability services.

This module builds the Circuit Breakers that protect calls to the staff
availability service and the resource directory, so a slow or failing
collaborator makes bookings fail fast instead of piling up requests.

Circuit Breaker Pattern:
- CLOSED: Normal operation, requests pass through
- OPEN: Too many failures, requests fail immediately
- HALF_OPEN: Testing if service recovered, limited requests allowed

Configuration:
- fail_max: Number of consecutive failures before opening circuit
- reset_timeout: Seconds to wait before attempting recovery (HALF_OPEN)

pybreaker only wraps synchronous callables reliably, so gateways run their
blocking HTTP call through `breaker.call` inside a worker thread.
"""

import asyncio
import logging
from typing import Any, Callable, TypeVar

from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

logger = logging.getLogger(__name__)

T = TypeVar("T")


def log_circuit_state_change(breaker_name: str, old_state: str, new_state: str) -> None:
    """Log circuit breaker state changes for monitoring and alerting."""
    logger.warning(
        "Circuit breaker state changed",
        extra={
            "breaker_name": breaker_name,
            "old_state": old_state,
            "new_state": new_state,
        },
    )


class StateChangeLogger(CircuitBreakerListener):
    """Listener for circuit breaker state changes."""

    def __init__(self, name: str):
        self.name = name

    def state_change(self, cb, old_state, new_state):
        log_circuit_state_change(
            self.name,
            getattr(old_state, "name", str(old_state)),
            getattr(new_state, "name", str(new_state)),
        )


def build_breaker(name: str, fail_max: int = 5, reset_timeout: int = 60) -> CircuitBreaker:
    """Crea un breaker con el listener de cambios de estado registrado."""
    return CircuitBreaker(
        fail_max=fail_max,
        reset_timeout=reset_timeout,
        name=f"{name}_circuit_breaker",
        listeners=[StateChangeLogger(name)],
    )


async def call_in_thread(breaker: CircuitBreaker, func: Callable[..., T], *args: Any) -> T:
    """
    Ejecuta `func` protegido por el breaker en un hilo del executor.

    Raises:
        CircuitBreakerError: Si el circuito está abierto.
    """
    return await asyncio.to_thread(breaker.call, func, *args)


__all__ = [
    "build_breaker",
    "call_in_thread",
    "CircuitBreakerError",
    "StateChangeLogger",
]
