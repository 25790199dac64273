"""In-app and push notification dispatch gated by user preferences."""

import logging
from dataclasses import dataclass
from typing import Protocol

from studio_scheduling.domain.notifications import (
    SESSION_CANCELLED,
    SESSION_CLIENT_CONFIRMED,
    SESSION_CONFIRMED,
    SESSION_CREATED,
    SESSION_REMINDER_24H,
    SESSION_REMINDER_48H,
    SESSION_UPDATED,
    DeliveryResult,
)
from studio_scheduling.domain.users import NotificationPreferences, UserRecord

_logger = logging.getLogger(__name__)


class NotificationRepository(Protocol):
    """Persistence interface for stored notifications."""

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
        """Store a notification and return its id."""


@dataclass
class NotificationService:
    """Delivers notifications over the channels a user has enabled."""

    repository: NotificationRepository

    def send(  # noqa: PLR0913
        self,
        user: UserRecord | None,
        type: str,  # noqa: A002
        title: str,
        message: str,
        session_id: str | None = None,
        metadata: dict[str, object] | None = None,
    ) -> DeliveryResult:
        """Dispatch a notification; failures are reported, never raised."""
        if user is None:
            return DeliveryResult(delivered=False, reason="user-not-found")
        preferences = user.notification_preferences
        if not is_type_enabled(preferences, type):
            return DeliveryResult(delivered=False, reason="type-disabled")
        channels = enabled_channels(preferences)
        if not channels:
            return DeliveryResult(delivered=False, reason="channels-disabled")
        try:
            notification_id = self.repository.create_notification(
                user_id=user.id,
                type=type,
                title=title,
                message=message,
                session_id=session_id,
                channels=channels,
                metadata=metadata,
            )
        except Exception:
            _logger.exception(
                "Failed to store notification",
                extra={"user_id": user.id, "type": type},
            )
            return DeliveryResult(delivered=False, reason="dispatch-failed")
        if "push" in channels:
            _logger.info("Push notification to %s: %s", user.email, title)
        return DeliveryResult(delivered=True, notification_id=notification_id)


def is_type_enabled(preferences: NotificationPreferences, type_: str) -> bool:
    """Return True when the user accepts notifications of this type."""
    if type_ in {SESSION_CREATED, SESSION_CONFIRMED, SESSION_CLIENT_CONFIRMED}:
        return preferences.confirmation
    if type_ == SESSION_REMINDER_48H:
        return preferences.reminder_48h
    if type_ == SESSION_REMINDER_24H:
        return preferences.reminder_24h
    if type_ in {SESSION_UPDATED, SESSION_CANCELLED}:
        return preferences.changes
    return True


def enabled_channels(preferences: NotificationPreferences) -> list[str]:
    channels = []
    if preferences.in_app_enabled:
        channels.append("in-app")
    if preferences.push_enabled:
        channels.append("push")
    return channels
