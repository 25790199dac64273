"""Session lifecycle: create, reschedule, confirm and cancel bookings."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, tzinfo
from typing import Protocol
from uuid import uuid4

from studio_scheduling.adapters.email_client import EmailClient
from studio_scheduling.domain.availability import fits_availability
from studio_scheduling.domain.errors import (
    ConflictError,
    DeliveryError,
    InvalidTransitionError,
    NotFoundError,
    PolicyWindowError,
    ValidationError,
)
from studio_scheduling.domain.notifications import (
    SESSION_CANCELLED,
    SESSION_CLIENT_CONFIRMED,
    SESSION_CONFIRMED,
    SESSION_CREATED,
    SESSION_UPDATED,
    TEMPLATE_CHANGE,
    TEMPLATE_CONFIRMATION,
)
from studio_scheduling.domain.policies import (
    DEFAULT_SNAPSHOT,
    PolicyKind,
    PolicySnapshot,
    evaluate_policy_window,
)
from studio_scheduling.domain.sessions import (
    CANCELLED,
    CLIENT_CONFIRMED,
    COMPLETED,
    CONFIRMED,
    SCHEDULED,
    SessionFilter,
    SessionOutcome,
    SessionRecord,
)
from studio_scheduling.domain.timeline import (
    EVENT_SESSION_CANCELLED,
    EVENT_SESSION_CLIENT_CONFIRMED,
    EVENT_SESSION_CONFIRMED,
    EVENT_SESSION_CREATED,
    EVENT_SESSION_RESCHEDULED,
    EVENT_SESSION_UPDATED,
)
from studio_scheduling.domain.users import UserRecord
from studio_scheduling.services.audit import AuditService
from studio_scheduling.services.catalog import CatalogService
from studio_scheduling.services.clock import Clock
from studio_scheduling.services.locks import PhotographerLocks
from studio_scheduling.services.notifications import NotificationService
from studio_scheduling.services.policies import PolicyService
from studio_scheduling.services.templates import TemplateRenderer, format_session_date
from studio_scheduling.services.timeline import TimelineService
from studio_scheduling.services.users import UserRepository

_logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence interface for session bookings."""

    def create_session(self, session: SessionRecord) -> SessionRecord:
        """Persist a new session and return it."""

    def get_session(self, session_id: str) -> SessionRecord | None:
        """Return a session by id, if present."""

    def list_sessions(self, filters: SessionFilter) -> list[SessionRecord]:
        """Return sessions matching the filter, ordered by start."""

    def find_conflict(
        self,
        photographer_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: str | None = None,
    ) -> SessionRecord | None:
        """Return a non-cancelled session overlapping [start, end), if any."""

    def save_session(
        self, session: SessionRecord, reset_reminders: bool = False
    ) -> SessionRecord:
        """Persist mutable session fields.

        The policy snapshot and reminder flags are never written, except that
        ``reset_reminders`` clears both flags in the same write.
        """

    def list_upcoming_sessions(
        self, statuses: frozenset[str], after: datetime
    ) -> list[SessionRecord]:
        """Return sessions in the given statuses starting after an instant."""

    def mark_reminders_sent(
        self,
        session_id: str,
        reminder_48_sent: bool,
        reminder_24_sent: bool,
        updated_at: datetime,
    ) -> None:
        """Persist only the reminder flags and the update timestamp."""


@dataclass(frozen=True)
class _Email:
    subject: str
    text: str
    html: str


@dataclass
class SchedulingService:
    """State machine for session bookings."""

    session_repository: SessionRepository
    user_repository: UserRepository
    catalog_service: CatalogService
    policy_service: PolicyService
    notification_service: NotificationService
    template_renderer: TemplateRenderer
    email_client: EmailClient
    audit_service: AuditService
    timeline_service: TimelineService
    clock: Clock
    timezone: tzinfo
    locks: PhotographerLocks = field(default_factory=PhotographerLocks)

    def get_session(self, session_id: str) -> SessionRecord:
        """Return a session or raise NotFoundError."""
        session = self.session_repository.get_session(session_id)
        if session is None:
            raise NotFoundError("Session not found.")
        return session

    def list_sessions(self, filters: SessionFilter) -> list[SessionRecord]:
        """Return sessions matching the filter."""
        return self.session_repository.list_sessions(filters)

    async def create_session(  # noqa: PLR0913
        self,
        photographer_id: str,
        client_id: str,
        start: datetime,
        end: datetime,
        location: str,
        session_type_name: str | None = None,
        session_type_id: str | None = None,
        notes: str | None = None,
    ) -> SessionOutcome:
        """Book a session after availability and conflict checks."""
        clean_location = clean_text(location)
        if (
            not clean_text(client_id)
            or not clean_location
            or (not clean_text(session_type_name) and not session_type_id)
        ):
            raise ValidationError("Incomplete data to create the session.")
        start = self._localize(start)
        end = self._localize(end)
        if end <= start:
            raise ValidationError("The end time must be after the start time.")

        photographer = self.user_repository.get_user(photographer_id)
        if photographer is None:
            raise NotFoundError("Photographer not found.")
        client = self.user_repository.get_user(client_id.strip())
        if client is None or client.role != "client":
            raise NotFoundError("Client not found.")
        session_type = self.catalog_service.resolve(session_type_name, session_type_id)

        async with self.locks.hold(photographer.id):
            fits_availability(photographer.availability, start, end, self.timezone)
            self._ensure_no_conflict(photographer.id, start, end)
            snapshot = self.policy_service.capture_snapshot()
            now = self.clock.now()
            session = self.session_repository.create_session(
                SessionRecord(
                    id=str(uuid4()),
                    photographer_id=photographer.id,
                    client_id=client.id,
                    type=session_type.name,
                    session_type_id=session_type.id,
                    location=clean_location,
                    notes=clean_text(notes),
                    start=start,
                    end=end,
                    status=SCHEDULED,
                    policy_snapshot=snapshot,
                    created_at=now,
                    updated_at=now,
                )
            )
        _logger.info(
            "Session created",
            extra={"session_id": session.id, "photographer_id": photographer.id},
        )

        when = format_session_date(start, self.timezone)
        sent, error = await self._deliver(
            client,
            type_=SESSION_CREATED,
            title="New session scheduled",
            message=(
                f"A session with {photographer.name} was scheduled for {when} "
                f"at {session.location}."
            ),
            session_id=session.id,
            metadata={
                "start": start.isoformat(),
                "location": session.location,
                "type": session.type,
            },
            email=_Email(
                subject="New session scheduled",
                text=(
                    f"Hi {client.name},\n\nA new session with {photographer.name} "
                    f"was scheduled for {when} at {session.location}.\n\n"
                    f"Session type: {session.type}.\n\n"
                    "Please confirm your availability."
                ),
                html=(
                    f"<p>Hi {client.name},</p><p>A new session with "
                    f"<strong>{photographer.name}</strong> was scheduled.</p>"
                    f"<ul><li><strong>Date:</strong> {when}</li>"
                    f"<li><strong>Type:</strong> {session.type}</li>"
                    f"<li><strong>Location:</strong> {session.location}</li></ul>"
                    "<p>Please confirm your availability.</p>"
                ),
            ),
        )
        self.audit_service.record(
            actor_id=photographer.id,
            action="sessions:create",
            status=self._audit_status(sent),
            message=_audit_message(f"Session {session.id} scheduled", sent, error),
            target_id=session.id,
            metadata={
                "client_id": client.id,
                "start": start.isoformat(),
                "end": end.isoformat(),
            },
        )
        self.timeline_service.record(
            EVENT_SESSION_CREATED,
            session,
            actor_id=photographer.id,
            title="Session scheduled",
            description=f"Session scheduled for {when} at {session.location}.",
            payload={
                "start": start.isoformat(),
                "end": end.isoformat(),
                "type": session.type,
                "location": session.location,
            },
        )
        return SessionOutcome(
            session=session, notification_sent=sent, notification_error=error
        )

    async def update_session(  # noqa: PLR0912, PLR0913
        self,
        session_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        location: str | None = None,
        notes: str | None = None,
        session_type_name: str | None = None,
        session_type_id: str | None = None,
        actor_id: str | None = None,
    ) -> SessionOutcome:
        """Edit a session; a time change is a reschedule and is re-validated."""
        session = self.get_session(session_id)
        if session.status in {CANCELLED, COMPLETED}:
            raise InvalidTransitionError(
                f"Sessions that are {session.status} cannot be edited."
            )
        next_start = self._localize(start) if start is not None else session.start
        next_end = self._localize(end) if end is not None else session.end
        schedule_changed = next_start != session.start or next_end != session.end
        if next_end <= next_start:
            raise ValidationError("The end time must be after the start time.")

        next_type, next_type_id = session.type, session.session_type_id
        if session_type_id or clean_text(session_type_name):
            entry = self.catalog_service.resolve(session_type_name, session_type_id)
            next_type, next_type_id = entry.name, entry.id

        next_location = session.location
        if location is not None:
            next_location = clean_text(location)
            if not next_location:
                raise ValidationError("The location cannot be empty.")
        next_notes = session.notes
        if notes is not None:
            next_notes = clean_text(notes)

        photographer = self.user_repository.get_user(session.photographer_id)
        client = self.user_repository.get_user(session.client_id)

        async with self.locks.hold(session.photographer_id):
            if schedule_changed:
                self._check_policy(
                    session.policy_snapshot or DEFAULT_SNAPSHOT,
                    session.start,
                    "reschedule",
                )
                fits_availability(
                    photographer.availability if photographer else (),
                    next_start,
                    next_end,
                    self.timezone,
                )
                self._ensure_no_conflict(
                    session.photographer_id,
                    next_start,
                    next_end,
                    exclude_session_id=session.id,
                )
            updated = replace(
                session,
                start=next_start,
                end=next_end,
                type=next_type,
                session_type_id=next_type_id,
                location=next_location,
                notes=next_notes,
                updated_at=self.clock.now(),
            )
            updated = self.session_repository.save_session(
                updated, reset_reminders=schedule_changed
            )

        changes = _describe_changes(session, updated)
        photographer_name = photographer.name if photographer else ""
        when = format_session_date(updated.start, self.timezone)
        if schedule_changed:
            title = "Session rescheduled"
            fallback = (
                f"Your session with {photographer_name} was rescheduled for "
                f"{when} at {updated.location}."
            )
        else:
            title = "Session updated"
            fallback = (
                f"Details of your session with {photographer_name} for {when} "
                "were updated."
            )
        message = self.template_renderer.render(
            TEMPLATE_CHANGE,
            _template_context(updated, photographer, client, when),
            fallback,
        )
        sent, error = await self._deliver(
            client,
            type_=SESSION_UPDATED,
            title=title,
            message=message,
            session_id=updated.id,
            metadata={
                "start": updated.start.isoformat(),
                "end": updated.end.isoformat(),
                "schedule_changed": schedule_changed,
                "changes": changes,
            },
            email=_Email(subject=title, text=fallback, html=f"<p>{fallback}</p>"),
        )
        self.audit_service.record(
            actor_id=actor_id or session.photographer_id,
            action="sessions:update",
            status=self._audit_status(sent),
            message=_audit_message(f"Session {updated.id} updated", sent, error),
            target_id=updated.id,
            metadata={"schedule_changed": schedule_changed, "changes": changes},
        )
        self.timeline_service.record(
            EVENT_SESSION_RESCHEDULED if schedule_changed else EVENT_SESSION_UPDATED,
            updated,
            actor_id=actor_id or session.photographer_id,
            title=title,
            description=fallback,
            payload={"changes": changes},
        )
        return SessionOutcome(
            session=updated, notification_sent=sent, notification_error=error
        )

    async def cancel_session(
        self,
        session_id: str,
        reason: str | None = None,
        actor_id: str | None = None,
    ) -> SessionOutcome:
        """Cancel a session if the policy's lead time still allows it."""
        session = self.get_session(session_id)
        if session.status == CANCELLED:
            return SessionOutcome(
                session=session,
                notification_sent=False,
                message="Session was already cancelled.",
            )
        if session.status == COMPLETED:
            raise InvalidTransitionError("Completed sessions cannot be cancelled.")
        snapshot = session.policy_snapshot or DEFAULT_SNAPSHOT
        self._check_policy(snapshot, session.start, "cancel")

        now = self.clock.now()
        cleaned_reason = clean_text(reason)
        cancelled = self.session_repository.save_session(
            replace(
                session,
                status=CANCELLED,
                cancellation_reason=cleaned_reason,
                cancelled_at=now,
                updated_at=now,
            )
        )
        _logger.info("Session cancelled", extra={"session_id": cancelled.id})

        photographer = self.user_repository.get_user(cancelled.photographer_id)
        client = self.user_repository.get_user(cancelled.client_id)
        photographer_name = photographer.name if photographer else ""
        when = format_session_date(cancelled.start, self.timezone)
        suffix = f" ({cleaned_reason})" if cleaned_reason else ""
        fallback = (
            f"Your session with {photographer_name} for {when} was cancelled{suffix}."
        )
        message = self.template_renderer.render(
            TEMPLATE_CHANGE,
            _template_context(cancelled, photographer, client, when),
            fallback,
        )
        sent, error = await self._deliver(
            client,
            type_=SESSION_CANCELLED,
            title="Session cancelled",
            message=message,
            session_id=cancelled.id,
            metadata={"reason": cleaned_reason, "policy_version": snapshot.version},
            email=_Email(
                subject="Session cancelled",
                text=f"{fallback}\n\nContact your photographer to reschedule.",
                html=(
                    f"<p>{fallback}</p>"
                    "<p>Contact your photographer to reschedule.</p>"
                ),
            ),
        )
        self.audit_service.record(
            actor_id=actor_id or cancelled.photographer_id,
            action="sessions:cancel",
            status=self._audit_status(sent),
            message=_audit_message(f"Session {cancelled.id} cancelled", sent, error),
            target_id=cancelled.id,
            metadata={"reason": cleaned_reason, "policy_version": snapshot.version},
        )
        self.timeline_service.record(
            EVENT_SESSION_CANCELLED,
            cancelled,
            actor_id=actor_id or cancelled.photographer_id,
            title="Session cancelled",
            description=f"Session cancelled for {when}.",
            payload={"reason": cleaned_reason},
        )
        return SessionOutcome(
            session=cancelled, notification_sent=sent, notification_error=error
        )

    async def confirm_session(
        self, session_id: str, actor_id: str | None = None
    ) -> SessionOutcome:
        """Record the photographer's confirmation."""
        session = self.get_session(session_id)
        if session.status in {CANCELLED, COMPLETED}:
            raise InvalidTransitionError(
                f"Sessions that are {session.status} cannot be confirmed."
            )
        if session.status in {CONFIRMED, CLIENT_CONFIRMED}:
            return SessionOutcome(
                session=session,
                notification_sent=False,
                message="Session was already confirmed.",
            )
        now = self.clock.now()
        confirmed = self.session_repository.save_session(
            replace(
                session,
                status=CONFIRMED,
                photographer_confirmed_at=now,
                updated_at=now,
            )
        )
        photographer = self.user_repository.get_user(confirmed.photographer_id)
        client = self.user_repository.get_user(confirmed.client_id)
        photographer_name = photographer.name if photographer else ""
        when = format_session_date(confirmed.start, self.timezone)
        message = self.template_renderer.render(
            TEMPLATE_CONFIRMATION,
            _template_context(confirmed, photographer, client, when),
            (
                f"Your session with {photographer_name} for {when} at "
                f"{confirmed.location} has been confirmed."
            ),
        )
        sent, error = await self._deliver(
            client,
            type_=SESSION_CONFIRMED,
            title="Session confirmed",
            message=message,
            session_id=confirmed.id,
            metadata={
                "start": confirmed.start.isoformat(),
                "location": confirmed.location,
            },
        )
        self.audit_service.record(
            actor_id=actor_id or confirmed.photographer_id,
            action="sessions:confirm",
            status=self._audit_status(sent),
            message=_audit_message(f"Session {confirmed.id} confirmed", sent, error),
            target_id=confirmed.id,
            metadata={"notified": sent},
        )
        self.timeline_service.record(
            EVENT_SESSION_CONFIRMED,
            confirmed,
            actor_id=actor_id or confirmed.photographer_id,
            title="Session confirmed",
            description=f"Session confirmed for {when}.",
            payload={"notification_sent": sent},
        )
        return SessionOutcome(
            session=confirmed, notification_sent=sent, notification_error=error
        )

    async def client_confirm_session(
        self, session_id: str, client_id: str
    ) -> SessionOutcome:
        """Record the client's attendance confirmation."""
        session = self.session_repository.get_session(session_id)
        if session is None or session.client_id != client_id:
            raise NotFoundError("Session not found for this client.")
        if session.status in {CANCELLED, COMPLETED}:
            raise InvalidTransitionError(
                f"Sessions that are {session.status} cannot be confirmed."
            )
        now = self.clock.now()
        confirmed = self.session_repository.save_session(
            replace(
                session,
                status=CLIENT_CONFIRMED,
                client_confirmed_at=now,
                updated_at=now,
            )
        )
        client = self.user_repository.get_user(client_id)
        photographer = self.user_repository.get_user(confirmed.photographer_id)
        client_name = client.name if client else "The client"
        when = format_session_date(confirmed.start, self.timezone)
        sent, error = await self._deliver(
            photographer,
            type_=SESSION_CLIENT_CONFIRMED,
            title="Client confirmed attendance",
            message=(
                f"{client_name} confirmed attendance for the session on {when} "
                f"at {confirmed.location}."
            ),
            session_id=confirmed.id,
            metadata={"client_id": client_id},
        )
        self.audit_service.record(
            actor_id=client_id,
            action="sessions:client-confirm",
            status=self._audit_status(sent),
            message=_audit_message(
                f"Client confirmed session {confirmed.id}", sent, error
            ),
            target_id=confirmed.id,
            metadata={"photographer_id": confirmed.photographer_id},
        )
        self.timeline_service.record(
            EVENT_SESSION_CLIENT_CONFIRMED,
            confirmed,
            actor_id=client_id,
            title="Client confirmed attendance",
            description=f"{client_name} confirmed attendance for the session.",
            payload={"notification_sent": sent},
        )
        return SessionOutcome(
            session=confirmed, notification_sent=sent, notification_error=error
        )

    def _localize(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self.timezone)
        return value

    def _ensure_no_conflict(
        self,
        photographer_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: str | None = None,
    ) -> None:
        conflict = self.session_repository.find_conflict(
            photographer_id, start, end, exclude_session_id=exclude_session_id
        )
        if conflict is not None:
            raise ConflictError("Another session is already booked in that window.")

    def _check_policy(
        self, snapshot: PolicySnapshot, start: datetime, kind: PolicyKind
    ) -> None:
        decision = evaluate_policy_window(snapshot, start, kind, self.clock.now())
        if not decision.allowed:
            raise PolicyWindowError(decision.message or "Outside the policy window.")

    def _audit_status(self, sent: bool) -> str:
        if sent or not self.email_client.enabled:
            return "success"
        return "error"

    async def _deliver(  # noqa: PLR0913
        self,
        recipient: UserRecord | None,
        *,
        type_: str,
        title: str,
        message: str,
        session_id: str,
        metadata: dict[str, object],
        email: _Email | None = None,
    ) -> tuple[bool, str | None]:
        """Notify a user in-app and by email; returns (sent, error reason)."""
        email_sent = False
        email_error: str | None = None
        if recipient is not None and email is not None and self.email_client.enabled:
            try:
                await self._send_email(recipient, email)
                email_sent = True
            except DeliveryError as exc:
                email_error = exc.reason
        result = self.notification_service.send(
            recipient,
            type=type_,
            title=title,
            message=message,
            session_id=session_id,
            metadata=metadata,
        )
        sent = email_sent or result.delivered
        if sent:
            return True, None
        return False, result.reason or email_error

    async def _send_email(self, recipient: UserRecord, email: _Email) -> None:
        try:
            await self.email_client.send_email(
                to=recipient.email,
                subject=email.subject,
                text=email.text,
                html=email.html,
            )
        except Exception as exc:
            _logger.warning(
                "Email delivery failed: %s", exc, extra={"user_id": recipient.id}
            )
            raise DeliveryError(str(exc) or type(exc).__name__) from exc


def clean_text(value: str | None) -> str | None:
    """Return the stripped string, or None when empty or not a string."""
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _template_context(
    session: SessionRecord,
    photographer: UserRecord | None,
    client: UserRecord | None,
    when: str,
) -> dict[str, str]:
    return {
        "clientName": client.name if client else "",
        "photographerName": photographer.name if photographer else "",
        "sessionDate": when,
        "sessionLocation": session.location,
        "sessionType": session.type,
        "sessionNotes": session.notes or "-",
    }


def _describe_changes(
    before: SessionRecord, after: SessionRecord
) -> dict[str, dict[str, object]]:
    changes: dict[str, dict[str, object]] = {}
    if before.start != after.start or before.end != after.end:
        changes["schedule"] = {
            "from": {"start": before.start.isoformat(), "end": before.end.isoformat()},
            "to": {"start": after.start.isoformat(), "end": after.end.isoformat()},
        }
    if before.type != after.type or before.session_type_id != after.session_type_id:
        changes["type"] = {"from": before.type, "to": after.type}
    if before.location != after.location:
        changes["location"] = {"from": before.location, "to": after.location}
    if before.notes != after.notes:
        changes["notes"] = {"from": before.notes, "to": after.notes}
    return changes


def _audit_message(summary: str, sent: bool, error: str | None) -> str:
    if sent:
        return f"{summary} and notified."
    return f"{summary}; notification not delivered ({error or 'unknown reason'})."
