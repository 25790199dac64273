"""Error taxonomy for scheduling operations."""


class SchedulingError(Exception):
    """Base error for operations that must abort before any write."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed or missing input."""


class NotFoundError(SchedulingError):
    """Unknown session, user or catalog entry."""

    status_code = 404


class ConflictError(SchedulingError):
    """The requested window overlaps another booking."""

    status_code = 409


class AvailabilityError(SchedulingError):
    """The requested window is outside the photographer's availability."""

    status_code = 409


class CrossDayError(AvailabilityError):
    """Start and end fall on different calendar days."""


class OutsideAvailabilityError(AvailabilityError):
    """No availability slot contains the requested window."""


class PolicyWindowError(SchedulingError):
    """The operation falls inside the policy's protected lead time."""

    status_code = 409


class InvalidTransitionError(SchedulingError):
    """The session status does not allow the requested operation."""


class DeliveryError(Exception):
    """Notification or email delivery failed.

    Never surfaced as an operation failure; callers downgrade it to
    ``notification_sent=False``.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
