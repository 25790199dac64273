"""User lookups consumed by the scheduling core."""

from typing import Protocol

from studio_scheduling.domain.availability import AvailabilitySlot
from studio_scheduling.domain.users import UserRecord


class UserRepository(Protocol):
    """Persistence interface for user data."""

    def get_user(self, user_id: str) -> UserRecord | None:
        """Return a user by id, if present."""

    def update_availability(
        self, user_id: str, slots: list[AvailabilitySlot]
    ) -> None:
        """Replace a user's availability slots."""
