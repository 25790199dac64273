"""Supabase repository for audit events."""

from dataclasses import dataclass

from supabase import Client

from studio_scheduling.services.audit import AuditRepository


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Supabase-backed audit repository."""

    client: Client

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
        self.client.table("audit_events").insert(
            {
                "actor_id": actor_id,
                "action": action,
                "status": status,
                "message": message,
                "target_id": target_id,
                "metadata": metadata,
            }
        ).execute()
