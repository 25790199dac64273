"""Audit logging service."""

import logging
from dataclasses import dataclass
from typing import Protocol

_logger = logging.getLogger(__name__)


class AuditRepository(Protocol):
    """Persistence interface for audit events."""

    def create_event(  # noqa: PLR0913
        self,
        actor_id: str | None,
        action: str,
        status: str,
        message: str,
        target_id: str | None,
        metadata: dict[str, object] | None,
    ) -> None:
        """Create an audit event row."""


@dataclass
class AuditService:
    """Fire-and-forget recorder for state-changing operations."""

    repository: AuditRepository

    def record(  # noqa: PLR0913
        self,
        actor_id: str | None,
        action: str,
        status: str,
        message: str,
        target_id: str | None = None,
        metadata: dict[str, object] | None = None,
    ) -> None:
        """Persist an audit event, logging instead of raising on failure."""
        try:
            self.repository.create_event(
                actor_id=actor_id,
                action=action,
                status=status,
                message=message,
                target_id=target_id,
                metadata=metadata,
            )
        except Exception:
            _logger.exception("Failed to record audit event", extra={"action": action})
