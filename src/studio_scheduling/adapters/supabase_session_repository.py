"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client, PostgrestAPIError

from studio_scheduling.domain.errors import ConflictError
from studio_scheduling.domain.policies import PolicySnapshot
from studio_scheduling.domain.sessions import (
    CANCELLED,
    SessionFilter,
    SessionRecord,
)
from studio_scheduling.services.scheduling import SessionRepository

# Raised by the sessions_no_overlap exclusion constraint.
_EXCLUSION_VIOLATION = "23P01"

_COLUMNS = (
    "id, photographer_id, client_id, type, session_type_id, location, notes, "
    "starts_at, ends_at, status, cancellation_reason, cancelled_at, "
    "photographer_confirmed_at, client_confirmed_at, reminder_48_sent, "
    "reminder_24_sent, policy_snapshot, created_at, updated_at"
)


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for session bookings."""

    client: Client

    def create_session(self, session: SessionRecord) -> SessionRecord:
        """Insert a session row and return it."""
        payload = _mutable_fields(session)
        payload.update(
            {
                "id": session.id,
                "photographer_id": session.photographer_id,
                "client_id": session.client_id,
                "policy_snapshot": (
                    session.policy_snapshot.to_dict()
                    if session.policy_snapshot
                    else None
                ),
                "created_at": _iso(session.created_at),
                "reminder_48_sent": session.reminder_48_sent,
                "reminder_24_sent": session.reminder_24_sent,
            }
        )
        try:
            response = self.client.table("sessions").insert(payload).execute()
        except PostgrestAPIError as exc:
            _raise_for_overlap(exc)
            raise
        if not response.data:
            raise RuntimeError("Failed to create session")
        return _parse_session(response.data[0])

    def get_session(self, session_id: str) -> SessionRecord | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("sessions")
            .select(_COLUMNS)
            .eq("id", session_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def list_sessions(self, filters: SessionFilter) -> list[SessionRecord]:
        """Return sessions matching the filter ordered by start."""
        query = self.client.table("sessions").select(_COLUMNS)
        if filters.photographer_id:
            query = query.eq("photographer_id", filters.photographer_id)
        if filters.client_id:
            query = query.eq("client_id", filters.client_id)
        if filters.status:
            query = query.eq("status", filters.status)
        if filters.start_from:
            query = query.gte("starts_at", filters.start_from.isoformat())
        if filters.start_to:
            query = query.lte("starts_at", filters.start_to.isoformat())
        response = query.order("starts_at", desc=False).execute()
        return [_parse_session(row) for row in response.data or []]

    def find_conflict(
        self,
        photographer_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: str | None = None,
    ) -> SessionRecord | None:
        """Return a non-cancelled session overlapping [start, end)."""
        query = (
            self.client.table("sessions")
            .select(_COLUMNS)
            .eq("photographer_id", photographer_id)
            .neq("status", CANCELLED)
            .lt("starts_at", end.isoformat())
            .gt("ends_at", start.isoformat())
        )
        if exclude_session_id:
            query = query.neq("id", exclude_session_id)
        response = query.limit(1).execute()
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def save_session(
        self, session: SessionRecord, reset_reminders: bool = False
    ) -> SessionRecord:
        """Update mutable fields; the snapshot and reminder flags are not written."""
        payload = _mutable_fields(session)
        if reset_reminders:
            payload.update({"reminder_48_sent": False, "reminder_24_sent": False})
        try:
            response = (
                self.client.table("sessions")
                .update(payload)
                .eq("id", session.id)
                .execute()
            )
        except PostgrestAPIError as exc:
            _raise_for_overlap(exc)
            raise
        if not response.data:
            return session
        return _parse_session(response.data[0])

    def list_upcoming_sessions(
        self, statuses: frozenset[str], after: datetime
    ) -> list[SessionRecord]:
        """Return sessions in the given statuses that start after ``after``."""
        response = (
            self.client.table("sessions")
            .select(_COLUMNS)
            .in_("status", sorted(statuses))
            .gt("starts_at", after.isoformat())
            .order("starts_at", desc=False)
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]

    def mark_reminders_sent(
        self,
        session_id: str,
        reminder_48_sent: bool,
        reminder_24_sent: bool,
        updated_at: datetime,
    ) -> None:
        """Write only the reminder flags and update timestamp."""
        self.client.table("sessions").update(
            {
                "reminder_48_sent": reminder_48_sent,
                "reminder_24_sent": reminder_24_sent,
                "updated_at": updated_at.isoformat(),
            }
        ).eq("id", session_id).execute()


def _raise_for_overlap(exc: PostgrestAPIError) -> None:
    if getattr(exc, "code", None) == _EXCLUSION_VIOLATION:
        raise ConflictError("Another session is already booked in that window.") from exc


def _mutable_fields(session: SessionRecord) -> dict[str, object]:
    return {
        "type": session.type,
        "session_type_id": session.session_type_id,
        "location": session.location,
        "notes": session.notes,
        "starts_at": session.start.isoformat(),
        "ends_at": session.end.isoformat(),
        "status": session.status,
        "cancellation_reason": session.cancellation_reason,
        "cancelled_at": _iso(session.cancelled_at),
        "photographer_confirmed_at": _iso(session.photographer_confirmed_at),
        "client_confirmed_at": _iso(session.client_confirmed_at),
        "updated_at": _iso(session.updated_at),
    }


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_datetime(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_session(row: dict[str, object]) -> SessionRecord:
    snapshot_raw = row.get("policy_snapshot")
    return SessionRecord(
        id=str(row["id"]),
        photographer_id=str(row["photographer_id"]),
        client_id=str(row["client_id"]),
        type=str(row["type"]),
        session_type_id=(
            str(row["session_type_id"]) if row.get("session_type_id") else None
        ),
        location=str(row.get("location") or ""),
        notes=row.get("notes"),  # type: ignore[arg-type]
        start=datetime.fromisoformat(str(row["starts_at"])),
        end=datetime.fromisoformat(str(row["ends_at"])),
        status=str(row["status"]),
        policy_snapshot=(
            PolicySnapshot.from_dict(snapshot_raw)
            if isinstance(snapshot_raw, dict)
            else None
        ),
        cancellation_reason=row.get("cancellation_reason"),  # type: ignore[arg-type]
        cancelled_at=_parse_datetime(row.get("cancelled_at")),
        photographer_confirmed_at=_parse_datetime(row.get("photographer_confirmed_at")),
        client_confirmed_at=_parse_datetime(row.get("client_confirmed_at")),
        reminder_48_sent=bool(row.get("reminder_48_sent")),
        reminder_24_sent=bool(row.get("reminder_24_sent")),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )
