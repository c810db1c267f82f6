"""Servicios de aplicación del sistema de reservas."""

from app.application.services.conflict_detector import ConflictDetector
from app.application.services.idempotency_guard import Admission, AdmissionKind, IdempotencyGuard
from app.application.services.outbox_admin import OutboxAdmin
from app.application.services.reservation_ledger import ReservationLedger

__all__ = [
    "Admission",
    "AdmissionKind",
    "ConflictDetector",
    "IdempotencyGuard",
    "OutboxAdmin",
    "ReservationLedger",
]
