"""Value Objects del dominio de reservas."""

from app.domain.value_objects.time_range import TimeRange, as_utc

__all__ = [
    "TimeRange",
    "as_utc",
]
