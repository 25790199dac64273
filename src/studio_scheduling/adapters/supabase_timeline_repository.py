"""Supabase repository for session timeline events."""

from dataclasses import dataclass

from supabase import Client

from studio_scheduling.services.timeline import TimelineRepository


@dataclass
class SupabaseTimelineRepository(TimelineRepository):
    """Supabase-backed timeline repository."""

    client: Client

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
        self.client.table("timeline_events").insert(
            {
                "type": type,
                "session_id": session_id,
                "client_id": client_id,
                "photographer_id": photographer_id,
                "actor_id": actor_id,
                "title": title,
                "description": description,
                "payload": payload,
            }
        ).execute()
