import logging
from datetime import datetime
from typing import Any

import httpx
from pybreaker import CircuitBreaker

from app.application.interfaces.availability_gateway import (
    ActorAvailability,
    ActorConflict,
    StaffAvailabilityGateway,
)
from app.domain.value_objects.time_range import TimeRange
from app.infrastructure.circuit_breaker import CircuitBreakerError, build_breaker, call_in_thread

logger = logging.getLogger(__name__)


class StaffAvailabilityHTTPGateway(StaffAvailabilityGateway):
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        breaker: CircuitBreaker | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        HTTP-based staff availability gateway, fail closed.

        Args:
            base_url: Base URL of the staff service
            timeout_seconds: Request timeout in seconds
            breaker: Circuit breaker shared by all calls to the staff service
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._breaker = breaker or build_breaker("staff")
        self._transport = transport

    async def get_actor_availability(
        self,
        actor_id: str,
        time_range: TimeRange,
        role: str,
    ) -> ActorAvailability:
        """
        Check staff availability, protected by Circuit Breaker.

        Any error, timeout or open circuit yields a deterministic
        "not available" result.
        """
        payload = {
            "staff_id": actor_id,
            "start_time": time_range.start.isoformat(),
            "end_time": time_range.end.isoformat(),
            "staff_type": role,
        }

        try:
            body = await call_in_thread(self._breaker, self._post, payload)
        except CircuitBreakerError:
            logger.warning(
                "Staff circuit breaker is open - failing closed",
                extra={"actor_id": actor_id},
            )
            return ActorAvailability.denied("Servicio de staff temporalmente no disponible")
        except httpx.TimeoutException:
            logger.warning(
                "Staff availability request timeout",
                extra={"actor_id": actor_id, "timeout": self._timeout},
            )
            return ActorAvailability.denied("Timeout al verificar disponibilidad del staff")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Staff availability request failed",
                exc_info=exc,
                extra={"actor_id": actor_id},
            )
            return ActorAvailability.denied("Error al verificar disponibilidad del staff")

        return _parse_availability(body)

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        with httpx.Client(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        ) as client:
            response = client.post("/staff/availability", json=payload)
            response.raise_for_status()
            body = response.json()
        if not isinstance(body, dict):
            raise ValueError("Unexpected staff availability response")
        return body


def _parse_availability(body: dict[str, Any]) -> ActorAvailability:
    conflicts = [
        ActorConflict(
            start=datetime.fromisoformat(item["start_time"]),
            end=datetime.fromisoformat(item["end_time"]),
            reservation_id=item.get("reservation_id"),
            description=item.get("description"),
        )
        for item in body.get("conflicts") or []
    ]
    return ActorAvailability(
        available=bool(body.get("available", False)),
        reason=body.get("reason") or None,
        conflicts=conflicts,
    )
