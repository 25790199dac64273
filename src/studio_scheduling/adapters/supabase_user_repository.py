"""Supabase-backed user repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from studio_scheduling.domain.availability import (
    AvailabilitySlot,
    slot_from_dict,
    slot_to_dict,
)
from studio_scheduling.domain.users import UserRecord, merge_preferences
from studio_scheduling.services.users import UserRepository


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user lookups."""

    client: Client

    def get_user(self, user_id: str) -> UserRecord | None:
        """Return the user for an id, if present."""
        response = (
            self.client.table("users")
            .select("id, name, email, role, availability, notification_preferences")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        availability = row.get("availability") or []
        return UserRecord(
            id=str(row["id"]),
            name=str(row.get("name") or ""),
            email=str(row.get("email") or ""),
            role=str(row.get("role") or ""),
            availability=tuple(slot_from_dict(slot) for slot in availability),
            notification_preferences=merge_preferences(
                row.get("notification_preferences")
            ),
        )

    def update_availability(
        self, user_id: str, slots: list[AvailabilitySlot]
    ) -> None:
        """Replace the availability column for a user."""
        self.client.table("users").update(
            {
                "availability": [slot_to_dict(slot) for slot in slots],
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("id", user_id).execute()
