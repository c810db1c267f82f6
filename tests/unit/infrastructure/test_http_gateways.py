"""
Tests de los adaptadores HTTP de disponibilidad.

Usan httpx.MockTransport; ningún test sale a la red.
"""

import json

import httpx
import pytest

from app.domain.value_objects.time_range import TimeRange
from app.infrastructure.circuit_breaker import build_breaker
from app.infrastructure.gateways.resource_directory_http import ResourceDirectoryHTTPGateway
from app.infrastructure.gateways.staff_availability_http import StaffAvailabilityHTTPGateway
from reservation_factories import at

SLOT = TimeRange(at(10), at(11))


class RecordingHandler:
    """Handler de MockTransport que guarda las peticiones recibidas."""

    def __init__(self, responder):
        self.responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


def _staff_gateway(handler, fail_max: int = 5) -> StaffAvailabilityHTTPGateway:
    return StaffAvailabilityHTTPGateway(
        base_url="http://staff.test/",
        timeout_seconds=1,
        breaker=build_breaker("staff-test", fail_max=fail_max, reset_timeout=60),
        transport=httpx.MockTransport(handler),
    )


def _directory_gateway(handler, fail_max: int = 5) -> ResourceDirectoryHTTPGateway:
    return ResourceDirectoryHTTPGateway(
        base_url="http://directory.test",
        timeout_seconds=1,
        breaker=build_breaker("directory-test", fail_max=fail_max, reset_timeout=60),
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
class TestStaffAvailabilityHTTPGateway:
    async def test_available_surgeon(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, json={"available": True}))

        result = await _staff_gateway(handler).get_actor_availability("surgeon-1", SLOT, "surgeon")

        assert result.available
        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/staff/availability"
        assert json.loads(request.content) == {
            "staff_id": "surgeon-1",
            "start_time": at(10).isoformat(),
            "end_time": at(11).isoformat(),
            "staff_type": "surgeon",
        }

    async def test_busy_surgeon_with_conflicts(self):
        body = {
            "available": False,
            "reason": "Cirugía programada",
            "conflicts": [
                {
                    "start_time": at(9, 30).isoformat(),
                    "end_time": at(10, 30).isoformat(),
                    "reservation_id": "res-9",
                    "description": "Colecistectomía",
                }
            ],
        }
        handler = RecordingHandler(lambda request: httpx.Response(200, json=body))

        result = await _staff_gateway(handler).get_actor_availability("surgeon-1", SLOT, "surgeon")

        assert not result.available
        assert result.reason == "Cirugía programada"
        assert result.conflicts[0].reservation_id == "res-9"
        assert result.conflicts[0].start == at(9, 30)

    async def test_server_error_fails_closed(self):
        handler = RecordingHandler(lambda request: httpx.Response(500))

        result = await _staff_gateway(handler).get_actor_availability("surgeon-1", SLOT, "surgeon")

        assert not result.available
        assert result.reason

    async def test_timeout_fails_closed(self):
        def responder(request):
            raise httpx.ReadTimeout("slow", request=request)

        result = await _staff_gateway(RecordingHandler(responder)).get_actor_availability(
            "surgeon-1", SLOT, "surgeon"
        )

        assert not result.available

    async def test_malformed_body_fails_closed(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, content=b"not json"))

        result = await _staff_gateway(handler).get_actor_availability("surgeon-1", SLOT, "surgeon")

        assert not result.available

    async def test_open_circuit_skips_the_call(self):
        handler = RecordingHandler(lambda request: httpx.Response(503))
        gateway = _staff_gateway(handler, fail_max=2)

        for _ in range(3):
            result = await gateway.get_actor_availability("surgeon-1", SLOT, "surgeon")
            assert not result.available

        assert len(handler.requests) == 2


@pytest.mark.asyncio
class TestResourceDirectoryHTTPGateway:
    async def test_active_room_is_usable(self):
        handler = RecordingHandler(
            lambda request: httpx.Response(200, json={"id": "OR-1", "is_active": True, "status": "available"})
        )

        assert await _directory_gateway(handler).is_resource_usable("OR-1") is True
        assert handler.requests[0].url.path == "/operating-rooms/OR-1"

    @pytest.mark.parametrize(
        "body",
        [
            {"is_active": False, "status": "available"},
            {"is_active": True, "status": "maintenance"},
            {"is_active": True, "status": "OUT_OF_SERVICE"},
            {"status": "available"},
        ],
    )
    async def test_inactive_or_maintenance_room_is_unusable(self, body):
        handler = RecordingHandler(lambda request: httpx.Response(200, json=body))
        assert await _directory_gateway(handler).is_resource_usable("OR-1") is False

    async def test_unknown_room_does_not_trip_the_breaker(self):
        handler = RecordingHandler(lambda request: httpx.Response(404))
        gateway = _directory_gateway(handler, fail_max=1)

        assert await gateway.is_resource_usable("OR-404") is False
        assert await gateway.is_resource_usable("OR-404") is False
        assert len(handler.requests) == 2

    async def test_connection_error_fails_closed(self):
        def responder(request):
            raise httpx.ConnectError("refused", request=request)

        assert await _directory_gateway(RecordingHandler(responder)).is_resource_usable("OR-1") is False

    async def test_open_circuit_skips_the_call(self):
        handler = RecordingHandler(lambda request: httpx.Response(500))
        gateway = _directory_gateway(handler, fail_max=1)

        assert await gateway.is_resource_usable("OR-1") is False
        assert await gateway.is_resource_usable("OR-1") is False
        assert len(handler.requests) == 1
