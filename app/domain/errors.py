"""Excepciones de dominio para el sistema de reservas de quirófanos."""


class DomainError(Exception):
    """Clase base para todos los errores de dominio."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# === Errores de Validación ===


class ValidationError(DomainError):
    """Error de validación de datos de entrada."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=f"Validación fallida en '{field}': {message}",
            code="VALIDATION_ERROR",
        )
        self.field = field


class InvalidTimeRangeError(ValidationError):
    """Rango de tiempo inválido (orden incorrecto o en el pasado)."""

    def __init__(self, message: str):
        super().__init__(field="time_range", message=message)
        self.code = "INVALID_TIME_RANGE"


# === Errores de Conflicto ===


class ConflictError(DomainError):
    """La operación choca con el estado actual del sistema."""

    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message=message, code=code)


class ReservationConflictError(ConflictError):
    """Existe un solapamiento de horario con otra reserva activa."""

    def __init__(self, resource_id: str, conflicting_ids: list[str]):
        super().__init__(
            message=(
                f"Conflicto de horario en el recurso {resource_id} con "
                f"{len(conflicting_ids)} reserva(s) activa(s)"
            ),
            code="RESERVATION_CONFLICT",
        )
        self.resource_id = resource_id
        self.conflicting_ids = conflicting_ids


class IdempotencyInProgressError(ConflictError):
    """Otra petición con la misma clave de idempotencia está en curso."""

    def __init__(self, idem_key: str):
        super().__init__(
            message=f"Procesando reserva con la clave de idempotencia '{idem_key}'",
            code="IDEMPOTENCY_IN_PROGRESS",
        )
        self.idem_key = idem_key


class StaleReservationError(ConflictError):
    """Conflicto de concurrencia al actualizar la reserva."""

    def __init__(self, reservation_id: str, expected_version: int, actual_version: int | None = None):
        actual = "desconocida" if actual_version is None else str(actual_version)
        super().__init__(
            message=f"Conflicto de concurrencia en reserva {reservation_id}: "
            f"versión esperada {expected_version}, versión actual {actual}",
            code="STALE_RESERVATION",
        )
        self.reservation_id = reservation_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class InvalidStatusTransitionError(ConflictError):
    """El estado de la reserva no permite la transición solicitada."""

    def __init__(self, reservation_id: str, current_status: str, target_status: str):
        super().__init__(
            message=f"No se puede pasar la reserva {reservation_id} de "
            f"'{current_status}' a '{target_status}'",
            code="INVALID_STATUS_TRANSITION",
        )
        self.reservation_id = reservation_id
        self.current_status = current_status
        self.target_status = target_status


class InvalidOutboxStatusError(ConflictError):
    """El evento del outbox no está en un estado que permita la operación."""

    def __init__(self, event_id: str, current_status: str, operation: str):
        super().__init__(
            message=f"No se puede {operation} el evento {event_id}: estado actual '{current_status}'",
            code="INVALID_OUTBOX_STATUS",
        )
        self.event_id = event_id
        self.current_status = current_status


# === Errores de estado terminal ===


class AlreadyTerminalError(DomainError):
    """La reserva ya está en un estado terminal (cancelada o expirada)."""

    def __init__(self, reservation_id: str, current_status: str, code: str = "ALREADY_TERMINAL"):
        super().__init__(
            message=f"La reserva {reservation_id} ya está en estado terminal '{current_status}'",
            code=code,
        )
        self.reservation_id = reservation_id
        self.current_status = current_status


class AlreadyCancelledError(AlreadyTerminalError):
    """La reserva ya está cancelada."""

    def __init__(self, reservation_id: str):
        super().__init__(reservation_id, "cancelled", code="ALREADY_CANCELLED")
        self.message = f"La reserva {reservation_id} ya está cancelada"
        self.args = (self.message,)


# === Errores de búsqueda ===


class ReservationNotFoundError(DomainError):
    """La reserva no existe."""

    def __init__(self, reservation_id: str):
        super().__init__(
            message=f"Reserva no encontrada: {reservation_id}",
            code="RESERVATION_NOT_FOUND",
        )
        self.reservation_id = reservation_id


class OutboxEventNotFoundError(DomainError):
    """El evento del outbox no existe."""

    def __init__(self, event_id: str):
        super().__init__(
            message=f"Evento de outbox no encontrado: {event_id}",
            code="OUTBOX_EVENT_NOT_FOUND",
        )
        self.event_id = event_id


# === Errores de dependencias externas ===


class UnavailableError(DomainError):
    """Una dependencia externa reporta no disponibilidad o no respondió a tiempo."""

    def __init__(self, dependency: str, reason: str):
        super().__init__(
            message=f"{dependency} no disponible: {reason}",
            code="UNAVAILABLE",
        )
        self.dependency = dependency
        self.reason = reason


# === Errores de persistencia ===


class StorageError(DomainError):
    """Fallo transitorio de persistencia."""

    def __init__(self, message: str):
        super().__init__(message=message, code="STORAGE_ERROR")
