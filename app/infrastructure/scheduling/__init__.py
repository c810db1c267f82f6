from app.infrastructure.scheduling.periodic import PeriodicTask

__all__ = ["PeriodicTask"]
