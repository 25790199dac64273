"""Supabase repository for stored notifications."""

from dataclasses import dataclass

from supabase import Client

from studio_scheduling.services.notifications import NotificationRepository


@dataclass
class SupabaseNotificationRepository(NotificationRepository):
    """Stores in-app notifications in the notifications table."""

    client: Client

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
        """Insert a notification row and return its id."""
        response = (
            self.client.table("notifications")
            .insert(
                {
                    "user_id": user_id,
                    "type": type,
                    "title": title,
                    "message": message,
                    "session_id": session_id,
                    "channels": channels,
                    "metadata": metadata or {},
                    "read": False,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create notification")
        return str(response.data[0]["id"])
