import logging
from typing import Any

import httpx
from pybreaker import CircuitBreaker

from app.application.interfaces.availability_gateway import ResourceDirectoryGateway
from app.infrastructure.circuit_breaker import CircuitBreakerError, build_breaker, call_in_thread

logger = logging.getLogger(__name__)

UNUSABLE_STATUSES = {"maintenance", "inactive", "out_of_service"}


class ResourceDirectoryHTTPGateway(ResourceDirectoryGateway):
    """Consulta el directorio de quirófanos; ante cualquier fallo responde False."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        breaker: CircuitBreaker | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._breaker = breaker or build_breaker("resource_directory")
        self._transport = transport

    async def is_resource_usable(self, resource_id: str) -> bool:
        try:
            body = await call_in_thread(self._breaker, self._fetch, resource_id)
        except CircuitBreakerError:
            logger.warning(
                "Resource directory circuit breaker is open - failing closed",
                extra={"resource_id": resource_id},
            )
            return False
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Resource directory request failed",
                exc_info=exc,
                extra={"resource_id": resource_id},
            )
            return False

        if body is None:
            return False
        status = str(body.get("status", "")).lower()
        return bool(body.get("is_active", False)) and status not in UNUSABLE_STATUSES

    def _fetch(self, resource_id: str) -> dict[str, Any] | None:
        with httpx.Client(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        ) as client:
            response = client.get(f"/operating-rooms/{resource_id}")
            # Un recurso desconocido no es un fallo del servicio.
            if response.status_code == 404:
                return None
            response.raise_for_status()
            body = response.json()
        if not isinstance(body, dict):
            raise ValueError("Unexpected resource directory response")
        return body
