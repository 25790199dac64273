"""Pydantic models for the scheduling HTTP API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from studio_scheduling.domain.availability import AvailabilitySlot
from studio_scheduling.domain.policies import Policy, PolicySnapshot
from studio_scheduling.domain.sessions import SessionOutcome, SessionRecord


class ApiModel(BaseModel):
    """Base model exchanging camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateSessionRequest(ApiModel):
    """Payload for booking a session."""

    client_id: str
    start: datetime
    end: datetime
    location: str
    session_type: str | None = Field(default=None, alias="type")
    session_type_id: str | None = None
    notes: str | None = None


class UpdateSessionRequest(ApiModel):
    """Partial session edit; omitted fields are left unchanged."""

    start: datetime | None = None
    end: datetime | None = None
    location: str | None = None
    notes: str | None = None
    session_type: str | None = Field(default=None, alias="type")
    session_type_id: str | None = None


class CancelSessionRequest(ApiModel):
    reason: str | None = None


class AvailabilitySlotPayload(ApiModel):
    id: str | None = None
    day_of_week: int
    start_time: str
    end_time: str


class AvailabilityRequest(ApiModel):
    availability: list[AvailabilitySlotPayload] = Field(default_factory=list)


class PolicySettingsRequest(ApiModel):
    """New cancellation policy values; omitted values fall back to defaults."""

    min_hours_cancel: float | None = None
    min_hours_reschedule: float | None = None
    tolerance_minutes: float | None = None


class PolicySnapshotResponse(ApiModel):
    version: int
    min_hours_cancel: float
    min_hours_reschedule: float
    tolerance_minutes: float


class SessionResponse(ApiModel):
    """Session representation returned by the API."""

    id: str
    photographer_id: str
    client_id: str
    session_type: str = Field(alias="type")
    session_type_id: str | None
    location: str
    notes: str | None
    start: datetime
    end: datetime
    status: str
    cancellation_reason: str | None
    cancelled_at: datetime | None
    photographer_confirmed_at: datetime | None
    client_confirmed_at: datetime | None
    reminder_48_sent: bool
    reminder_24_sent: bool
    policy_snapshot: PolicySnapshotResponse | None
    created_at: datetime | None
    updated_at: datetime | None


class SessionOutcomeResponse(ApiModel):
    success: bool = True
    session: SessionResponse
    notification_sent: bool
    notification_error: str | None = None
    message: str | None = None


class SessionDetailResponse(ApiModel):
    success: bool = True
    session: SessionResponse


class SessionListResponse(ApiModel):
    success: bool = True
    sessions: list[SessionResponse]


class AvailabilityResponse(ApiModel):
    success: bool = True
    availability: list[AvailabilitySlotPayload]


class PolicyResponse(ApiModel):
    success: bool = True
    id: str
    version: int
    settings: dict[str, object]
    created_by: str | None = None
    created_at: datetime | None = None


def session_response(session: SessionRecord) -> SessionResponse:
    """Build the API representation of a session."""
    return SessionResponse(
        id=session.id,
        photographer_id=session.photographer_id,
        client_id=session.client_id,
        session_type=session.type,
        session_type_id=session.session_type_id,
        location=session.location,
        notes=session.notes,
        start=session.start,
        end=session.end,
        status=session.status,
        cancellation_reason=session.cancellation_reason,
        cancelled_at=session.cancelled_at,
        photographer_confirmed_at=session.photographer_confirmed_at,
        client_confirmed_at=session.client_confirmed_at,
        reminder_48_sent=session.reminder_48_sent,
        reminder_24_sent=session.reminder_24_sent,
        policy_snapshot=_snapshot_response(session.policy_snapshot),
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


def outcome_response(outcome: SessionOutcome) -> SessionOutcomeResponse:
    return SessionOutcomeResponse(
        session=session_response(outcome.session),
        notification_sent=outcome.notification_sent,
        notification_error=outcome.notification_error,
        message=outcome.message,
    )


def availability_response(slots: list[AvailabilitySlot]) -> AvailabilityResponse:
    return AvailabilityResponse(
        availability=[
            AvailabilitySlotPayload(
                id=slot.id,
                day_of_week=slot.day_of_week,
                start_time=slot.start_time,
                end_time=slot.end_time,
            )
            for slot in slots
        ]
    )


def policy_response(policy: Policy) -> PolicyResponse:
    return PolicyResponse(
        id=policy.id,
        version=policy.version,
        settings=policy.settings,
        created_by=policy.created_by,
        created_at=policy.created_at,
    )


def _snapshot_response(
    snapshot: PolicySnapshot | None,
) -> PolicySnapshotResponse | None:
    if snapshot is None:
        return None
    return PolicySnapshotResponse(
        version=snapshot.version,
        min_hours_cancel=snapshot.min_hours_cancel,
        min_hours_reschedule=snapshot.min_hours_reschedule,
        tolerance_minutes=snapshot.tolerance_minutes,
    )
