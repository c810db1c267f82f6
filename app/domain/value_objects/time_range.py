"""Value Object TimeRange - intervalo semiabierto [start, end) de una reserva."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from app.domain.errors import InvalidTimeRangeError


def as_utc(value: datetime) -> datetime:
    """Normaliza un datetime a UTC con tzinfo (los naive se asumen UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class TimeRange:
    """
    Value Object inmutable que representa un intervalo semiabierto [start, end).

    Una reserva que termina a las 11:00 no choca con otra que empieza a las 11:00.

    Attributes:
        start: Inicio del intervalo (incluido).
        end: Fin del intervalo (excluido).
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if self.start >= self.end:
            raise InvalidTimeRangeError(
                f"La fecha de inicio debe ser anterior a la fecha de fin: "
                f"{self.start.isoformat()} >= {self.end.isoformat()}"
            )

    @property
    def duration(self) -> timedelta:
        """Retorna la duración del intervalo."""
        return self.end - self.start

    def overlaps_with(self, other: "TimeRange") -> bool:
        """Verifica si este intervalo comparte algún instante con otro."""
        return self.start < other.end and other.start < self.end

    def contains(self, dt: datetime) -> bool:
        """Verifica si un instante cae dentro del intervalo."""
        return self.start <= as_utc(dt) < self.end

    def starts_before(self, moment: datetime) -> bool:
        return self.start < as_utc(moment)

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"
