"""Notification templates stored in Supabase."""

import logging
import re
from dataclasses import dataclass

from supabase import Client

from studio_scheduling.domain.notifications import TEMPLATE_PLACEHOLDERS
from studio_scheduling.services.templates import TemplateRenderer

_logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z]+)\s*\}\}")


@dataclass
class SupabaseTemplateRenderer(TemplateRenderer):
    """Renders templates from the notification_templates table."""

    client: Client

    def render(self, key: str, context: dict[str, str], fallback: str) -> str:
        """Return the stored template with placeholders filled in."""
        try:
            response = (
                self.client.table("notification_templates")
                .select("key, body")
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except Exception:
            _logger.exception("Failed to load template", extra={"template": key})
            return fallback
        if not response.data:
            return fallback
        body = response.data[0].get("body")
        if not isinstance(body, str) or not body.strip():
            return fallback
        return render_template(body, context)


def render_template(body: str, context: dict[str, str]) -> str:
    """Substitute allow-listed ``{{name}}`` placeholders; others are left as is."""

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in TEMPLATE_PLACEHOLDERS:
            return match.group(0)
        return context.get(name, "")

    return _PLACEHOLDER.sub(_substitute, body)
