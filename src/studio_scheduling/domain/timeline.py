"""Session timeline event types."""

EVENT_SESSION_CREATED = "session-created"
EVENT_SESSION_RESCHEDULED = "session-rescheduled"
EVENT_SESSION_UPDATED = "session-updated"
EVENT_SESSION_CONFIRMED = "session-confirmed"
EVENT_SESSION_CLIENT_CONFIRMED = "session-client-confirmed"
EVENT_SESSION_CANCELLED = "session-cancelled"
