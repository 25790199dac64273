"""Supabase repository for the session type catalog."""

from dataclasses import dataclass

from supabase import Client

from studio_scheduling.domain.catalog import SessionType
from studio_scheduling.services.catalog import SessionTypeRepository


@dataclass
class SupabaseSessionTypeRepository(SessionTypeRepository):
    """Supabase-backed session type catalog."""

    client: Client

    def get_active_by_id(self, type_id: str) -> SessionType | None:
        """Return a non-archived entry by id."""
        response = (
            self.client.table("session_types")
            .select("id, name, archived")
            .eq("id", type_id)
            .eq("archived", False)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_type(response.data[0])

    def get_active_by_name(self, normalized_name: str) -> SessionType | None:
        """Return a non-archived entry by normalized name."""
        response = (
            self.client.table("session_types")
            .select("id, name, archived")
            .eq("normalized_name", normalized_name)
            .eq("archived", False)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_type(response.data[0])


def _parse_type(row: dict[str, object]) -> SessionType:
    return SessionType(
        id=str(row["id"]),
        name=str(row["name"]),
        archived=bool(row.get("archived")),
    )
