"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from studio_scheduling.adapters.email_client import HttpxEmailClient
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
from studio_scheduling.config import Settings
from studio_scheduling.services.audit import AuditService
from studio_scheduling.services.availability import AvailabilityService
from studio_scheduling.services.catalog import CatalogService
from studio_scheduling.services.clock import SystemClock
from studio_scheduling.services.notifications import NotificationService
from studio_scheduling.services.policies import PolicyService
from studio_scheduling.services.reminders import ReminderScheduler, ReminderSweep
from studio_scheduling.services.scheduling import SchedulingService
from studio_scheduling.services.timeline import TimelineService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    scheduling_service: SchedulingService
    availability_service: AvailabilityService
    policy_service: PolicyService
    reminder_scheduler: ReminderScheduler
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    timezone = resolved_settings.tzinfo
    clock = SystemClock()
    user_repository = SupabaseUserRepository(supabase_client)
    session_repository = SupabaseSessionRepository(supabase_client)
    template_renderer = SupabaseTemplateRenderer(supabase_client)
    audit_service = AuditService(SupabaseAuditRepository(supabase_client))
    notification_service = NotificationService(
        SupabaseNotificationRepository(supabase_client)
    )
    policy_service = PolicyService(SupabasePolicyRepository(supabase_client))
    catalog_service = CatalogService(SupabaseSessionTypeRepository(supabase_client))
    email_client = HttpxEmailClient.create(
        api_key=resolved_settings.email_api_key,
        sender=resolved_settings.email_from,
        base_url=resolved_settings.email_base_url,
    )
    scheduling_service = SchedulingService(
        session_repository=session_repository,
        user_repository=user_repository,
        catalog_service=catalog_service,
        policy_service=policy_service,
        notification_service=notification_service,
        template_renderer=template_renderer,
        email_client=email_client,
        audit_service=audit_service,
        timeline_service=TimelineService(SupabaseTimelineRepository(supabase_client)),
        clock=clock,
        timezone=timezone,
    )
    availability_service = AvailabilityService(
        user_repository=user_repository,
        audit_service=audit_service,
    )
    reminder_scheduler = ReminderScheduler(
        sweep=ReminderSweep(
            session_repository=session_repository,
            user_repository=user_repository,
            notification_service=notification_service,
            template_renderer=template_renderer,
            audit_service=audit_service,
            clock=clock,
            timezone=timezone,
        ),
        interval_seconds=resolved_settings.reminder_interval_seconds,
    )

    async def close_resources() -> None:
        await reminder_scheduler.stop()
        await email_client.close()

    return AppContainer(
        settings=resolved_settings,
        scheduling_service=scheduling_service,
        availability_service=availability_service,
        policy_service=policy_service,
        reminder_scheduler=reminder_scheduler,
        close_resources=close_resources,
    )
