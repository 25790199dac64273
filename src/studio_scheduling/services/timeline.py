"""Session timeline recording."""

import logging
from dataclasses import dataclass
from typing import Protocol

from studio_scheduling.domain.sessions import SessionRecord

_logger = logging.getLogger(__name__)


class TimelineRepository(Protocol):
    """Persistence interface for session timeline events."""

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
        """Create a timeline event row."""


@dataclass
class TimelineService:
    """Appends one event per session lifecycle change."""

    repository: TimelineRepository

    def record(  # noqa: PLR0913
        self,
        type: str,  # noqa: A002
        session: SessionRecord,
        actor_id: str | None,
        title: str,
        description: str,
        payload: dict[str, object] | None = None,
    ) -> None:
        """Persist a timeline event, logging instead of raising on failure."""
        try:
            self.repository.create_event(
                type=type,
                session_id=session.id,
                client_id=session.client_id,
                photographer_id=session.photographer_id,
                actor_id=actor_id,
                title=title,
                description=description,
                payload=payload,
            )
        except Exception:
            _logger.exception(
                "Failed to record timeline event",
                extra={"session_id": session.id, "event_type": type},
            )
