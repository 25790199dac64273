"""Supabase repository for versioned policies."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from studio_scheduling.domain.policies import Policy
from studio_scheduling.services.policies import PolicyRepository


@dataclass
class SupabasePolicyRepository(PolicyRepository):
    """Supabase-backed policy repository."""

    client: Client

    def get_latest_policy(self, policy_type: str) -> Policy | None:
        """Return the highest version stored for a policy type."""
        response = (
            self.client.table("policies")
            .select("id, type, version, settings, created_by, created_at")
            .eq("type", policy_type)
            .order("version", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_policy(response.data[0])

    def create_policy(
        self,
        policy_type: str,
        version: int,
        settings: dict[str, object],
        created_by: str | None,
    ) -> Policy:
        """Insert a new policy version."""
        response = (
            self.client.table("policies")
            .insert(
                {
                    "type": policy_type,
                    "version": version,
                    "settings": settings,
                    "created_by": created_by,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create policy")
        return _parse_policy(response.data[0])


def _parse_policy(row: dict[str, object]) -> Policy:
    created_at_raw = row.get("created_at")
    settings = row.get("settings")
    return Policy(
        id=str(row["id"]),
        type=str(row["type"]),
        version=int(row["version"]),  # type: ignore[arg-type]
        settings=dict(settings) if isinstance(settings, dict) else {},
        created_by=str(row["created_by"]) if row.get("created_by") else None,
        created_at=(
            datetime.fromisoformat(created_at_raw)
            if isinstance(created_at_raw, str) and created_at_raw
            else None
        ),
    )
