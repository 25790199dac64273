"""User-facing records consumed from the account store."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from studio_scheduling.domain.availability import AvailabilitySlot


@dataclass(frozen=True)
class NotificationPreferences:
    """Per-user notification switches; everything is on by default."""

    push_enabled: bool = True
    in_app_enabled: bool = True
    confirmation: bool = True
    reminder_48h: bool = True
    reminder_24h: bool = True
    changes: bool = True


@dataclass(frozen=True)
class UserRecord:
    """Represents a photographer or client."""

    id: str
    name: str
    email: str
    role: str
    availability: tuple[AvailabilitySlot, ...] = ()
    notification_preferences: NotificationPreferences = field(
        default_factory=NotificationPreferences
    )


def merge_preferences(raw: Mapping[str, object] | None) -> NotificationPreferences:
    """Overlay stored boolean preferences on the defaults."""
    defaults = NotificationPreferences()
    if not raw:
        return defaults
    values = {
        name: raw[name] if isinstance(raw.get(name), bool) else getattr(defaults, name)
        for name in (
            "push_enabled",
            "in_app_enabled",
            "confirmation",
            "reminder_48h",
            "reminder_24h",
            "changes",
        )
    }
    return NotificationPreferences(**values)
