"""Session type catalog lookups."""

from dataclasses import dataclass
from typing import Protocol

from studio_scheduling.domain.catalog import SessionType, normalize_type_name
from studio_scheduling.domain.errors import ValidationError


class SessionTypeRepository(Protocol):
    """Persistence interface for the session type catalog."""

    def get_active_by_id(self, type_id: str) -> SessionType | None:
        """Return a non-archived catalog entry by id."""

    def get_active_by_name(self, normalized_name: str) -> SessionType | None:
        """Return a non-archived catalog entry by normalized name."""


@dataclass
class CatalogService:
    """Resolves session type names or ids to canonical catalog entries."""

    repository: SessionTypeRepository

    def resolve(self, type_name: str | None, type_id: str | None) -> SessionType:
        """Return the catalog entry for an id or a display name."""
        if type_id:
            entry = self.repository.get_active_by_id(type_id)
            if entry is None:
                raise ValidationError("Session type not found or archived.")
            return entry
        normalized = normalize_type_name(type_name)
        if not normalized:
            raise ValidationError("A session type is required.")
        entry = self.repository.get_active_by_name(normalized)
        if entry is None:
            raise ValidationError(
                "The session type is not in the catalog. Update the catalog first."
            )
        return entry
