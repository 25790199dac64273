"""Session type catalog models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionType:
    """Canonical catalog entry for a kind of session."""

    id: str
    name: str
    archived: bool = False


def normalize_type_name(value: str | None) -> str:
    return value.strip().lower() if isinstance(value, str) else ""
