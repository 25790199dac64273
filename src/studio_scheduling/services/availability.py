"""Photographer availability management."""

from collections.abc import Mapping
from dataclasses import dataclass

from studio_scheduling.domain.availability import (
    AvailabilitySlot,
    normalize_availability,
)
from studio_scheduling.domain.errors import NotFoundError
from studio_scheduling.services.audit import AuditService
from studio_scheduling.services.users import UserRepository


@dataclass
class AvailabilityService:
    """Reads and replaces a photographer's weekly availability."""

    user_repository: UserRepository
    audit_service: AuditService

    def get_availability(self, user_id: str) -> list[AvailabilitySlot]:
        """Return the user's configured slots."""
        user = self.user_repository.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return list(user.availability)

    def replace_availability(
        self, user_id: str, raw_slots: list[Mapping[str, object]] | None
    ) -> list[AvailabilitySlot]:
        """Validate and store a full replacement set of slots."""
        if self.user_repository.get_user(user_id) is None:
            raise NotFoundError("User not found.")
        slots = normalize_availability(raw_slots)
        self.user_repository.update_availability(user_id, slots)
        self.audit_service.record(
            actor_id=user_id,
            action="availability:update",
            status="success",
            message="Availability updated",
            metadata={"slots": len(slots)},
        )
        return slots
