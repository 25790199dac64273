"""Notification domain models."""

from dataclasses import dataclass

SESSION_CREATED = "session-created"
SESSION_CONFIRMED = "session-confirmed"
SESSION_CLIENT_CONFIRMED = "session-client-confirmed"
SESSION_UPDATED = "session-updated"
SESSION_CANCELLED = "session-cancelled"
SESSION_REMINDER_48H = "session-reminder-48h"
SESSION_REMINDER_24H = "session-reminder-24h"

TEMPLATE_REMINDER_48H = "session-reminder-48h"
TEMPLATE_REMINDER_24H = "session-reminder-24h"
TEMPLATE_CONFIRMATION = "session-confirmation"
TEMPLATE_CHANGE = "session-change"

TEMPLATE_PLACEHOLDERS = (
    "photographerName",
    "clientName",
    "sessionDate",
    "sessionLocation",
    "sessionType",
    "sessionNotes",
)


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a notification dispatch."""

    delivered: bool
    reason: str | None = None
    notification_id: str | None = None
