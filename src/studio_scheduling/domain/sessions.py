"""Domain models for booked photo sessions."""

from dataclasses import dataclass
from datetime import datetime

from studio_scheduling.domain.policies import PolicySnapshot

SCHEDULED = "scheduled"
CONFIRMED = "confirmed"
CLIENT_CONFIRMED = "client-confirmed"
COMPLETED = "completed"
CANCELLED = "cancelled"

SESSION_STATUSES = frozenset(
    {SCHEDULED, CONFIRMED, CLIENT_CONFIRMED, COMPLETED, CANCELLED}
)
ACTIVE_STATUSES = frozenset({SCHEDULED, CONFIRMED, CLIENT_CONFIRMED})


@dataclass(frozen=True)
class SessionRecord:
    """Represents a persisted session booking."""

    id: str
    photographer_id: str
    client_id: str
    type: str
    session_type_id: str | None
    location: str
    notes: str | None
    start: datetime
    end: datetime
    status: str
    policy_snapshot: PolicySnapshot | None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    photographer_confirmed_at: datetime | None = None
    client_confirmed_at: datetime | None = None
    reminder_48_sent: bool = False
    reminder_24_sent: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class SessionFilter:
    """Query options for listing sessions."""

    photographer_id: str | None = None
    client_id: str | None = None
    status: str | None = None
    start_from: datetime | None = None
    start_to: datetime | None = None


@dataclass(frozen=True)
class SessionOutcome:
    """Result of a state-changing operation on a session."""

    session: SessionRecord
    notification_sent: bool
    notification_error: str | None = None
    message: str | None = None


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Return True when two half-open intervals share any instant."""
    return start_a < end_b and start_b < end_a
