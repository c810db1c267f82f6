"""Ticker explícito para los trabajos periódicos del servicio."""

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Ejecuta `job()` cada `interval_seconds` hasta que se llame a `stop()`.

    Una excepción en un ciclo se registra y el bucle continúa. `stop()`
    espera a que termine el ciclo en curso.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        job: Callable[[], Awaitable[Any]],
    ) -> None:
        self._name = name
        self._interval = interval_seconds
        self._job = job
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._runs = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def runs(self) -> int:
        """Ciclos completados (con o sin error)."""
        return self._runs

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name=f"periodic:{self._name}")
        logger.info(
            "Periodic task started",
            extra={"task": self._name, "interval_seconds": self._interval},
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("Periodic task stopped", extra={"task": self._name})

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self._job()
            except Exception:
                logger.exception("Periodic task cycle failed", extra={"task": self._name})
            self._runs += 1

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue
