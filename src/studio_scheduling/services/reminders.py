"""Background sweep that sends 48h and 24h session reminders."""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo

from studio_scheduling.domain.notifications import (
    SESSION_REMINDER_24H,
    SESSION_REMINDER_48H,
    TEMPLATE_REMINDER_24H,
    TEMPLATE_REMINDER_48H,
)
from studio_scheduling.domain.sessions import ACTIVE_STATUSES, SessionRecord
from studio_scheduling.domain.users import UserRecord
from studio_scheduling.services.audit import AuditService
from studio_scheduling.services.clock import Clock
from studio_scheduling.services.notifications import NotificationService
from studio_scheduling.services.scheduling import SessionRepository
from studio_scheduling.services.templates import TemplateRenderer, format_session_date
from studio_scheduling.services.users import UserRepository

_logger = logging.getLogger(__name__)

_SECONDS_PER_HOUR = 3600


@dataclass
class SweepReport:
    """Counters for a single sweep run."""

    scanned: int = 0
    reminders_48: int = 0
    reminders_24: int = 0
    skipped: int = 0
    failed: int = 0


@dataclass
class ReminderSweep:
    """Advances reminder flags forward for upcoming active sessions.

    A flag records that delivery was attempted, not that it succeeded, so each
    session gets at most one attempt per threshold.
    """

    session_repository: SessionRepository
    user_repository: UserRepository
    notification_service: NotificationService
    template_renderer: TemplateRenderer
    audit_service: AuditService
    clock: Clock
    timezone: tzinfo

    def run(self) -> SweepReport:
        """Scan upcoming sessions once and fire due reminders."""
        now = self.clock.now()
        sessions = self.session_repository.list_upcoming_sessions(ACTIVE_STATUSES, now)
        users: dict[str, UserRecord | None] = {}
        report = SweepReport()
        for session in sessions:
            report.scanned += 1
            try:
                self._process(session, now, users, report)
            except Exception:
                report.failed += 1
                _logger.exception(
                    "Reminder processing failed", extra={"session_id": session.id}
                )
        _logger.info(
            "Reminder sweep finished: scanned=%s 48h=%s 24h=%s skipped=%s failed=%s",
            report.scanned,
            report.reminders_48,
            report.reminders_24,
            report.skipped,
            report.failed,
        )
        return report

    def _process(
        self,
        session: SessionRecord,
        now: datetime,
        users: dict[str, UserRecord | None],
        report: SweepReport,
    ) -> None:
        hours_until = (session.start - now).total_seconds() / _SECONDS_PER_HOUR
        if hours_until <= 0:
            return
        photographer = self._load_user(session.photographer_id, users)
        client = self._load_user(session.client_id, users)
        if photographer is None or client is None:
            report.skipped += 1
            return
        preferences = photographer.notification_preferences

        sent_48 = session.reminder_48_sent
        sent_24 = session.reminder_24_sent
        if not sent_48 and 24 < hours_until <= 48 and preferences.reminder_48h:  # noqa: PLR2004
            self._send_reminder(session, photographer, client, hours=48)
            sent_48 = True
            report.reminders_48 += 1
        if not sent_24 and hours_until <= 24 and preferences.reminder_24h:  # noqa: PLR2004
            self._send_reminder(session, photographer, client, hours=24)
            sent_24 = True
            report.reminders_24 += 1

        if (sent_48, sent_24) != (session.reminder_48_sent, session.reminder_24_sent):
            self.session_repository.mark_reminders_sent(
                session.id,
                reminder_48_sent=sent_48,
                reminder_24_sent=sent_24,
                updated_at=self.clock.now(),
            )

    def _send_reminder(
        self,
        session: SessionRecord,
        photographer: UserRecord,
        client: UserRecord,
        hours: int,
    ) -> None:
        when = format_session_date(session.start, self.timezone)
        if hours == 48:  # noqa: PLR2004
            template_key = TEMPLATE_REMINDER_48H
            notification_type = SESSION_REMINDER_48H
            fallback = (
                f"Reminder: your session with {photographer.name} is on {when} "
                f"at {session.location}."
            )
        else:
            template_key = TEMPLATE_REMINDER_24H
            notification_type = SESSION_REMINDER_24H
            fallback = (
                f"Your session with {photographer.name} is on {when}. "
                "Please confirm your attendance."
            )
        message = self.template_renderer.render(
            template_key,
            {
                "clientName": client.name,
                "photographerName": photographer.name,
                "sessionDate": when,
                "sessionLocation": session.location,
                "sessionType": session.type,
                "sessionNotes": session.notes or "-",
            },
            fallback,
        )
        result = self.notification_service.send(
            client,
            type=notification_type,
            title=f"Session reminder ({hours}h)",
            message=message,
            session_id=session.id,
            metadata={"reminder_hours": hours},
        )
        if result.delivered:
            audit_message = f"{hours}h reminder sent for session {session.id}."
        else:
            audit_message = (
                f"{hours}h reminder not delivered "
                f"({result.reason or 'unknown reason'})."
            )
        self.audit_service.record(
            actor_id=photographer.id,
            action=f"sessions:reminder-{hours}h",
            status="success" if result.delivered else "error",
            message=audit_message,
            target_id=session.id,
            metadata={"reminder_hours": hours},
        )

    def _load_user(
        self, user_id: str, cache: dict[str, UserRecord | None]
    ) -> UserRecord | None:
        if user_id not in cache:
            cache[user_id] = self.user_repository.get_user(user_id)
        return cache[user_id]


@dataclass
class ReminderScheduler:
    """Runs the reminder sweep immediately and then on a fixed interval."""

    sweep: ReminderSweep
    interval_seconds: float
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> SweepReport | None:
        """Run one sweep unless another is in progress."""
        if self._lock.locked():
            _logger.info("Reminder sweep already running; skipping tick")
            return None
        async with self._lock:
            try:
                return await asyncio.to_thread(self.sweep.run)
            except Exception:
                _logger.exception("Reminder sweep failed")
                return None

    def start(self) -> None:
        """Start the background loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)
