"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest
from supabase import PostgrestAPIError

from studio_scheduling.adapters.supabase_audit_repository import (
    SupabaseAuditRepository,
)
from studio_scheduling.adapters.supabase_notification_repository import (
    SupabaseNotificationRepository,
)
from studio_scheduling.adapters.supabase_policy_repository import (
    SupabasePolicyRepository,
)
from studio_scheduling.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from studio_scheduling.adapters.supabase_session_type_repository import (
    SupabaseSessionTypeRepository,
)
from studio_scheduling.adapters.supabase_template_renderer import (
    SupabaseTemplateRenderer,
)
from studio_scheduling.adapters.supabase_timeline_repository import (
    SupabaseTimelineRepository,
)
from studio_scheduling.adapters.supabase_user_repository import SupabaseUserRepository
from studio_scheduling.domain.availability import AvailabilitySlot
from studio_scheduling.domain.errors import ConflictError
from studio_scheduling.domain.policies import DEFAULT_SNAPSHOT
from studio_scheduling.domain.sessions import ACTIVE_STATUSES, SCHEDULED, SessionRecord


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, str, object]] = field(default_factory=list)
    error: Exception | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        self.last_filters = []
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        self.last_filters = []
        return self

    def _filter(self, op: str, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((op, column, value))
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("eq", column, value)

    def neq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("neq", column, value)

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("in", column, value)

    def gt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("gt", column, value)

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("gte", column, value)

    def lt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("lt", column, value)

    def lte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self._filter("lte", column, value)

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        if self.error is not None:
            raise self.error
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


START = datetime(2025, 3, 10, 10, 0, tzinfo=UTC)
END = datetime(2025, 3, 10, 11, 0, tzinfo=UTC)


def _session_row(**overrides) -> dict[str, object]:  # type: ignore[no-untyped-def]
    row: dict[str, object] = {
        "id": "session-1",
        "photographer_id": "photographer-1",
        "client_id": "client-1",
        "type": "Portrait",
        "session_type_id": "type-portrait",
        "location": "Studio A",
        "notes": None,
        "starts_at": START.isoformat(),
        "ends_at": END.isoformat(),
        "status": SCHEDULED,
        "cancellation_reason": None,
        "cancelled_at": None,
        "photographer_confirmed_at": None,
        "client_confirmed_at": None,
        "reminder_48_sent": False,
        "reminder_24_sent": False,
        "policy_snapshot": DEFAULT_SNAPSHOT.to_dict(),
        "created_at": START.isoformat(),
        "updated_at": None,
    }
    row.update(overrides)
    return row


def _session_record() -> SessionRecord:
    return SessionRecord(
        id="session-1",
        photographer_id="photographer-1",
        client_id="client-1",
        type="Portrait",
        session_type_id="type-portrait",
        location="Studio A",
        notes=None,
        start=START,
        end=END,
        status=SCHEDULED,
        policy_snapshot=DEFAULT_SNAPSHOT,
        created_at=START,
    )


def test_session_repository_create_writes_snapshot() -> None:
    client = FakeSupabaseClient()
    sessions = client.table("sessions")
    sessions.queue("insert", [_session_row()])
    repository = SupabaseSessionRepository(client)

    created = repository.create_session(_session_record())

    assert created.start == START
    assert created.policy_snapshot == DEFAULT_SNAPSHOT
    assert sessions.last_payload["policy_snapshot"] == DEFAULT_SNAPSHOT.to_dict()
    assert sessions.last_payload["starts_at"] == START.isoformat()


def test_session_repository_save_never_writes_snapshot() -> None:
    client = FakeSupabaseClient()
    sessions = client.table("sessions")
    sessions.queue("update", [_session_row(status="confirmed")])
    repository = SupabaseSessionRepository(client)

    saved = repository.save_session(_session_record())

    assert saved.status == "confirmed"
    assert "policy_snapshot" not in sessions.last_payload
    assert ("eq", "id", "session-1") in sessions.last_filters


def test_session_repository_save_leaves_reminder_flags_alone() -> None:
    client = FakeSupabaseClient()
    sessions = client.table("sessions")
    repository = SupabaseSessionRepository(client)

    repository.save_session(_session_record())
    plain_payload = sessions.last_payload
    repository.save_session(_session_record(), reset_reminders=True)

    assert "reminder_48_sent" not in plain_payload
    assert "reminder_24_sent" not in plain_payload
    assert sessions.last_payload["reminder_48_sent"] is False
    assert sessions.last_payload["reminder_24_sent"] is False


def test_session_repository_conflict_query() -> None:
    client = FakeSupabaseClient()
    sessions = client.table("sessions")
    repository = SupabaseSessionRepository(client)

    conflict = repository.find_conflict(
        "photographer-1", START, END, exclude_session_id="session-9"
    )

    assert conflict is None
    assert sessions.last_filters == [
        ("eq", "photographer_id", "photographer-1"),
        ("neq", "status", "cancelled"),
        ("lt", "starts_at", END.isoformat()),
        ("gt", "ends_at", START.isoformat()),
        ("neq", "id", "session-9"),
    ]


def test_session_repository_maps_exclusion_violation() -> None:
    client = FakeSupabaseClient()
    client.table("sessions").error = PostgrestAPIError(
        {"code": "23P01", "message": "conflicting key value", "hint": None, "details": None}
    )
    repository = SupabaseSessionRepository(client)

    with pytest.raises(ConflictError):
        repository.create_session(_session_record())


def test_session_repository_reraises_other_errors() -> None:
    client = FakeSupabaseClient()
    client.table("sessions").error = PostgrestAPIError(
        {"code": "42501", "message": "permission denied", "hint": None, "details": None}
    )
    repository = SupabaseSessionRepository(client)

    with pytest.raises(PostgrestAPIError):
        repository.save_session(_session_record())


def test_session_repository_upcoming_and_flags() -> None:
    client = FakeSupabaseClient()
    sessions = client.table("sessions")
    sessions.queue("select", [_session_row(reminder_48_sent=True)])
    repository = SupabaseSessionRepository(client)

    upcoming = repository.list_upcoming_sessions(ACTIVE_STATUSES, START)
    repository.mark_reminders_sent(
        "session-1", reminder_48_sent=True, reminder_24_sent=True, updated_at=END
    )

    assert upcoming[0].reminder_48_sent is True
    assert sessions.last_payload == {
        "reminder_48_sent": True,
        "reminder_24_sent": True,
        "updated_at": END.isoformat(),
    }


def test_session_repository_handles_legacy_rows() -> None:
    client = FakeSupabaseClient()
    client.table("sessions").queue("select", [_session_row(policy_snapshot=None)])
    repository = SupabaseSessionRepository(client)

    session = repository.get_session("session-1")

    assert session is not None
    assert session.policy_snapshot is None
    assert repository.get_session("missing") is None


def test_user_repository_parses_preferences_and_availability() -> None:
    client = FakeSupabaseClient()
    users = client.table("users")
    users.queue(
        "select",
        [
            {
                "id": "photographer-1",
                "name": "Ana",
                "email": "ana@example.com",
                "role": "photographer",
                "availability": [
                    {
                        "id": "slot-1",
                        "day_of_week": 1,
                        "start_time": "09:00",
                        "end_time": "18:00",
                    }
                ],
                "notification_preferences": {"reminder_48h": False, "push_enabled": "no"},
            }
        ],
    )
    repository = SupabaseUserRepository(client)

    user = repository.get_user("photographer-1")
    repository.update_availability(
        "photographer-1",
        [AvailabilitySlot(id="slot-2", day_of_week=2, start_time="08:00", end_time="10:00")],
    )

    assert user is not None
    assert user.availability[0].day_of_week == 1
    assert user.notification_preferences.reminder_48h is False
    assert user.notification_preferences.push_enabled is True
    assert users.last_payload["availability"] == [
        {"id": "slot-2", "day_of_week": 2, "start_time": "08:00", "end_time": "10:00"}
    ]


def test_policy_repository_latest_and_create() -> None:
    client = FakeSupabaseClient()
    policies = client.table("policies")
    row = {
        "id": "policy-2",
        "type": "cancellation",
        "version": 2,
        "settings": {"min_hours_cancel": 48},
        "created_by": "admin-1",
        "created_at": START.isoformat(),
    }
    policies.queue("select", [row])
    policies.queue("insert", [{**row, "id": "policy-3", "version": 3}])
    repository = SupabasePolicyRepository(client)

    latest = repository.get_latest_policy("cancellation")
    created = repository.create_policy("cancellation", 3, {"min_hours_cancel": 12}, None)

    assert latest is not None
    assert latest.version == 2
    assert latest.created_at == START
    assert created.version == 3
    assert policies.last_payload["version"] == 3


def test_session_type_repository_excludes_archived() -> None:
    client = FakeSupabaseClient()
    types = client.table("session_types")
    types.queue("select", [{"id": "type-portrait", "name": "Portrait", "archived": False}])
    repository = SupabaseSessionTypeRepository(client)

    entry = repository.get_active_by_name("portrait")

    assert entry is not None
    assert entry.name == "Portrait"
    assert ("eq", "archived", False) in types.last_filters
    assert repository.get_active_by_id("type-missing") is None


def test_notification_repository_returns_id() -> None:
    client = FakeSupabaseClient()
    notifications = client.table("notifications")
    notifications.queue("insert", [{"id": "notification-1"}])
    repository = SupabaseNotificationRepository(client)

    notification_id = repository.create_notification(
        user_id="client-1",
        type="session-created",
        title="New session scheduled",
        message="See you soon",
        session_id="session-1",
        channels=["in-app"],
        metadata=None,
    )

    assert notification_id == "notification-1"
    assert notifications.last_payload["metadata"] == {}


def test_template_renderer_uses_allow_listed_placeholders() -> None:
    client = FakeSupabaseClient()
    templates = client.table("notification_templates")
    templates.queue(
        "select", [{"key": "session-change", "body": "{{clientName}} {{other}}"}]
    )
    templates.queue("select", [{"key": "session-change", "body": "   "}])
    renderer = SupabaseTemplateRenderer(client)

    rendered = renderer.render("session-change", {"clientName": "Bruno"}, "fallback")
    blank = renderer.render("session-change", {}, "fallback")
    missing = renderer.render("session-change", {}, "fallback")

    assert rendered == "Bruno {{other}}"
    assert blank == "fallback"
    assert missing == "fallback"


def test_audit_repository_inserts_event() -> None:
    client = FakeSupabaseClient()
    repository = SupabaseAuditRepository(client)

    repository.create_event(
        actor_id="photographer-1",
        action="sessions:create",
        status="success",
        message="Session created",
        target_id="session-1",
        metadata={"client_id": "client-1"},
    )

    payload = client.table("audit_events").last_payload
    assert payload["action"] == "sessions:create"
    assert payload["target_id"] == "session-1"


def test_timeline_repository_inserts_event() -> None:
    client = FakeSupabaseClient()
    repository = SupabaseTimelineRepository(client)

    repository.create_event(
        type="session-cancelled",
        session_id="session-1",
        client_id="client-1",
        photographer_id="photographer-1",
        actor_id="client-1",
        title="Session cancelled",
        description="Session cancelled for 10/03/2025 10:00.",
        payload={"reason": "Rain"},
    )

    payload = client.table("timeline_events").last_payload
    assert payload["type"] == "session-cancelled"
    assert payload["actor_id"] == "client-1"
    assert payload["payload"] == {"reason": "Rain"}
