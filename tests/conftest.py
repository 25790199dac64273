"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from studio_scheduling.adapters.email_client import EmailClient
from studio_scheduling.adapters.supabase_template_renderer import render_template
from studio_scheduling.config import Settings
from studio_scheduling.containers import AppContainer
from studio_scheduling.domain.availability import AvailabilitySlot
from studio_scheduling.domain.catalog import SessionType, normalize_type_name
from studio_scheduling.domain.policies import Policy
from studio_scheduling.domain.sessions import (
    CANCELLED,
    SessionFilter,
    SessionRecord,
    intervals_overlap,
)
from studio_scheduling.domain.users import NotificationPreferences, UserRecord
from studio_scheduling.services.audit import AuditRepository, AuditService
from studio_scheduling.services.availability import AvailabilityService
from studio_scheduling.services.catalog import CatalogService, SessionTypeRepository
from studio_scheduling.services.clock import Clock
from studio_scheduling.services.notifications import (
    NotificationRepository,
    NotificationService,
)
from studio_scheduling.services.policies import PolicyRepository, PolicyService
from studio_scheduling.services.reminders import ReminderScheduler, ReminderSweep
from studio_scheduling.services.scheduling import SchedulingService, SessionRepository
from studio_scheduling.services.templates import TemplateRenderer
from studio_scheduling.services.timeline import TimelineRepository, TimelineService
from studio_scheduling.services.users import UserRepository

PHOTOGRAPHER_ID = "photographer-1"
CLIENT_ID = "client-1"
PORTRAIT_TYPE_ID = "type-portrait"

# 2025-03-03 and 2025-03-10 are Mondays.
NOW = datetime(2025, 3, 3, 9, 0, tzinfo=UTC)
NEXT_MONDAY = datetime(2025, 3, 10, tzinfo=UTC)

MONDAY_SLOT = AvailabilitySlot(
    id="slot-monday", day_of_week=1, start_time="09:00", end_time="18:00"
)


def at(hour: int, minute: int = 0, day: datetime = NEXT_MONDAY) -> datetime:
    return day.replace(hour=hour, minute=minute)


@dataclass
class FrozenClock(Clock):
    """Clock that only moves when told to."""

    current: datetime = NOW

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current = self.current + timedelta(**kwargs)


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[str, UserRecord] = field(default_factory=dict)
    lookups: list[str] = field(default_factory=list)

    def add(self, user: UserRecord) -> UserRecord:
        self.users[user.id] = user
        return user

    def get_user(self, user_id: str) -> UserRecord | None:
        self.lookups.append(user_id)
        return self.users.get(user_id)

    def update_availability(
        self, user_id: str, slots: list[AvailabilitySlot]
    ) -> None:
        self.users[user_id] = replace(self.users[user_id], availability=tuple(slots))


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository for tests."""

    sessions: dict[str, SessionRecord] = field(default_factory=dict)
    flag_writes: list[tuple[str, bool, bool]] = field(default_factory=list)

    def add(self, session: SessionRecord) -> SessionRecord:
        self.sessions[session.id] = session
        return session

    def create_session(self, session: SessionRecord) -> SessionRecord:
        return self.add(session)

    def get_session(self, session_id: str) -> SessionRecord | None:
        return self.sessions.get(session_id)

    def list_sessions(self, filters: SessionFilter) -> list[SessionRecord]:
        results = [
            session
            for session in self.sessions.values()
            if (
                filters.photographer_id is None
                or session.photographer_id == filters.photographer_id
            )
            and (filters.client_id is None or session.client_id == filters.client_id)
            and (filters.status is None or session.status == filters.status)
            and (filters.start_from is None or session.start >= filters.start_from)
            and (filters.start_to is None or session.start <= filters.start_to)
        ]
        return sorted(results, key=lambda session: session.start)

    def find_conflict(
        self,
        photographer_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: str | None = None,
    ) -> SessionRecord | None:
        for session in self.sessions.values():
            if (
                session.photographer_id == photographer_id
                and session.status != CANCELLED
                and session.id != exclude_session_id
                and intervals_overlap(session.start, session.end, start, end)
            ):
                return session
        return None

    def save_session(
        self, session: SessionRecord, reset_reminders: bool = False
    ) -> SessionRecord:
        stored = self.sessions[session.id]
        saved = replace(
            session,
            policy_snapshot=stored.policy_snapshot,
            reminder_48_sent=False if reset_reminders else stored.reminder_48_sent,
            reminder_24_sent=False if reset_reminders else stored.reminder_24_sent,
        )
        self.sessions[session.id] = saved
        return saved

    def list_upcoming_sessions(
        self, statuses: frozenset[str], after: datetime
    ) -> list[SessionRecord]:
        return sorted(
            (
                session
                for session in self.sessions.values()
                if session.status in statuses and session.start > after
            ),
            key=lambda session: session.start,
        )

    def mark_reminders_sent(
        self,
        session_id: str,
        reminder_48_sent: bool,
        reminder_24_sent: bool,
        updated_at: datetime,
    ) -> None:
        self.flag_writes.append((session_id, reminder_48_sent, reminder_24_sent))
        self.sessions[session_id] = replace(
            self.sessions[session_id],
            reminder_48_sent=reminder_48_sent,
            reminder_24_sent=reminder_24_sent,
            updated_at=updated_at,
        )


@dataclass
class InMemoryPolicyRepository(PolicyRepository):
    """In-memory policy repository for tests."""

    policies: list[Policy] = field(default_factory=list)

    def get_latest_policy(self, policy_type: str) -> Policy | None:
        matching = [policy for policy in self.policies if policy.type == policy_type]
        if not matching:
            return None
        return max(matching, key=lambda policy: policy.version)

    def create_policy(
        self,
        policy_type: str,
        version: int,
        settings: dict[str, object],
        created_by: str | None,
    ) -> Policy:
        policy = Policy(
            id=str(uuid4()),
            type=policy_type,
            version=version,
            settings=dict(settings),
            created_by=created_by,
            created_at=NOW,
        )
        self.policies.append(policy)
        return policy


@dataclass
class InMemorySessionTypeRepository(SessionTypeRepository):
    """In-memory session type catalog for tests."""

    types: list[SessionType] = field(default_factory=list)

    def get_active_by_id(self, type_id: str) -> SessionType | None:
        for entry in self.types:
            if entry.id == type_id and not entry.archived:
                return entry
        return None

    def get_active_by_name(self, normalized_name: str) -> SessionType | None:
        for entry in self.types:
            if normalize_type_name(entry.name) == normalized_name and not entry.archived:
                return entry
        return None


@dataclass
class InMemoryNotificationRepository(NotificationRepository):
    """In-memory notification store for tests."""

    notifications: list[dict[str, object]] = field(default_factory=list)
    fail: bool = False

    def create_notification(  # noqa: PLR0913
        self,
        user_id: str,
        type: str,  # noqa: A002
        title: str,
        message: str,
        session_id: str | None,
        channels: list[str],
        metadata: dict[str, object] | None,
    ) -> str:
        if self.fail:
            raise RuntimeError("notifications table unavailable")
        notification_id = str(uuid4())
        self.notifications.append(
            {
                "id": notification_id,
                "user_id": user_id,
                "type": type,
                "title": title,
                "message": message,
                "session_id": session_id,
                "channels": channels,
                "metadata": metadata,
            }
        )
        return notification_id

    def of_type(self, type_: str) -> list[dict[str, object]]:
        return [item for item in self.notifications if item["type"] == type_]


@dataclass
class InMemoryAuditRepository(AuditRepository):
    """In-memory audit repository for tests."""

    events: list[dict[str, object]] = field(default_factory=list)

    def create_event(  # noqa: PLR0913
        self,
        actor_id: str | None,
        action: str,
        status: str,
        message: str,
        target_id: str | None,
        metadata: dict[str, object] | None,
    ) -> None:
        self.events.append(
            {
                "actor_id": actor_id,
                "action": action,
                "status": status,
                "message": message,
                "target_id": target_id,
                "metadata": metadata,
            }
        )

    def actions(self) -> list[str]:
        return [str(event["action"]) for event in self.events]


@dataclass
class InMemoryTimelineRepository(TimelineRepository):
    """In-memory timeline store for tests."""

    events: list[dict[str, object]] = field(default_factory=list)

    def create_event(  # noqa: PLR0913
        self,
        type: str,  # noqa: A002
        session_id: str,
        client_id: str,
        photographer_id: str,
        actor_id: str | None,
        title: str,
        description: str,
        payload: dict[str, object] | None,
    ) -> None:
        self.events.append(
            {
                "type": type,
                "session_id": session_id,
                "client_id": client_id,
                "photographer_id": photographer_id,
                "actor_id": actor_id,
                "title": title,
                "description": description,
                "payload": payload,
            }
        )

    def types(self) -> list[str]:
        return [str(event["type"]) for event in self.events]


@dataclass
class StaticTemplateRenderer(TemplateRenderer):
    """Template renderer backed by a dict of template bodies."""

    templates: dict[str, str] = field(default_factory=dict)

    def render(self, key: str, context: dict[str, str], fallback: str) -> str:
        body = self.templates.get(key)
        if body is None:
            return fallback
        return render_template(body, context)


@dataclass
class FakeEmailClient(EmailClient):
    """Email client that records messages instead of sending them."""

    configured: bool = True
    fail: bool = False
    sent: list[dict[str, str]] = field(default_factory=list)

    @property
    def enabled(self) -> bool:
        return self.configured

    async def send_email(self, to: str, subject: str, text: str, html: str) -> None:
        if self.fail:
            raise RuntimeError("provider unavailable")
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})


def make_user(
    user_id: str,
    role: str,
    name: str | None = None,
    availability: tuple[AvailabilitySlot, ...] = (),
    preferences: NotificationPreferences | None = None,
) -> UserRecord:
    return UserRecord(
        id=user_id,
        name=name or user_id.title(),
        email=f"{user_id}@example.com",
        role=role,
        availability=availability,
        notification_preferences=preferences or NotificationPreferences(),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        admin_token="admin-token",
        reminders_enabled=False,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    repository = InMemoryUserRepository()
    repository.add(
        make_user(
            PHOTOGRAPHER_ID,
            role="photographer",
            name="Ana Lens",
            availability=(MONDAY_SLOT,),
        )
    )
    repository.add(make_user(CLIENT_ID, role="client", name="Bruno Client"))
    return repository


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def policy_repository() -> InMemoryPolicyRepository:
    return InMemoryPolicyRepository()


@pytest.fixture
def notification_repository() -> InMemoryNotificationRepository:
    return InMemoryNotificationRepository()


@pytest.fixture
def audit_repository() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def timeline_repository() -> InMemoryTimelineRepository:
    return InMemoryTimelineRepository()


@pytest.fixture
def email_client() -> FakeEmailClient:
    return FakeEmailClient()


@pytest.fixture
def template_renderer() -> StaticTemplateRenderer:
    return StaticTemplateRenderer()


@pytest.fixture
def catalog_service() -> CatalogService:
    return CatalogService(
        InMemorySessionTypeRepository(
            types=[
                SessionType(id=PORTRAIT_TYPE_ID, name="Portrait"),
                SessionType(id="type-wedding", name="Wedding", archived=True),
            ]
        )
    )


@pytest.fixture
def scheduling_service(  # noqa: PLR0913
    session_repository: InMemorySessionRepository,
    user_repository: InMemoryUserRepository,
    catalog_service: CatalogService,
    policy_repository: InMemoryPolicyRepository,
    notification_repository: InMemoryNotificationRepository,
    template_renderer: StaticTemplateRenderer,
    email_client: FakeEmailClient,
    audit_repository: InMemoryAuditRepository,
    timeline_repository: InMemoryTimelineRepository,
    clock: FrozenClock,
) -> SchedulingService:
    return SchedulingService(
        session_repository=session_repository,
        user_repository=user_repository,
        catalog_service=catalog_service,
        policy_service=PolicyService(policy_repository),
        notification_service=NotificationService(notification_repository),
        template_renderer=template_renderer,
        email_client=email_client,
        audit_service=AuditService(audit_repository),
        timeline_service=TimelineService(timeline_repository),
        clock=clock,
        timezone=UTC,
    )


@pytest.fixture
def reminder_sweep(  # noqa: PLR0913
    session_repository: InMemorySessionRepository,
    user_repository: InMemoryUserRepository,
    notification_repository: InMemoryNotificationRepository,
    template_renderer: StaticTemplateRenderer,
    audit_repository: InMemoryAuditRepository,
    clock: FrozenClock,
) -> ReminderSweep:
    return ReminderSweep(
        session_repository=session_repository,
        user_repository=user_repository,
        notification_service=NotificationService(notification_repository),
        template_renderer=template_renderer,
        audit_service=AuditService(audit_repository),
        clock=clock,
        timezone=UTC,
    )


@pytest.fixture
def container(
    settings: Settings,
    scheduling_service: SchedulingService,
    reminder_sweep: ReminderSweep,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        scheduling_service=scheduling_service,
        availability_service=AvailabilityService(
            user_repository=scheduling_service.user_repository,
            audit_service=scheduling_service.audit_service,
        ),
        policy_service=scheduling_service.policy_service,
        reminder_scheduler=ReminderScheduler(sweep=reminder_sweep, interval_seconds=60),
        close_resources=close_resources,
    )
