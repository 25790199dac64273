"""Notification template rendering interface."""

from datetime import datetime, tzinfo
from typing import Protocol


class TemplateRenderer(Protocol):
    """Renders a stored notification template with named values."""

    def render(self, key: str, context: dict[str, str], fallback: str) -> str:
        """Return rendered text, or ``fallback`` when no template is stored."""


def format_session_date(value: datetime, tz: tzinfo) -> str:
    """Format a session start for messages in the studio timezone."""
    local = value.astimezone(tz) if value.tzinfo else value
    return local.strftime("%d/%m/%Y %H:%M")
