"""Cancellation policy records, snapshots and lead-time evaluation."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

CANCELLATION_POLICY = "cancellation"

DEFAULT_CANCELLATION_SETTINGS: dict[str, float] = {
    "min_hours_cancel": 24,
    "min_hours_reschedule": 24,
    "tolerance_minutes": 30,
}

PolicyKind = Literal["cancel", "reschedule"]


@dataclass(frozen=True)
class Policy:
    """Versioned policy row; the highest version of a type is active."""

    id: str
    type: str
    version: int
    settings: dict[str, object]
    created_by: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class PolicySnapshot:
    """Copy of the cancellation rules taken when a session is booked."""

    version: int
    min_hours_cancel: float
    min_hours_reschedule: float
    tolerance_minutes: float

    def to_dict(self) -> dict[str, object]:
        return {
            "version": self.version,
            "min_hours_cancel": self.min_hours_cancel,
            "min_hours_reschedule": self.min_hours_reschedule,
            "tolerance_minutes": self.tolerance_minutes,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "PolicySnapshot":
        return cls(
            version=int(payload["version"]),
            min_hours_cancel=_setting(payload, "min_hours_cancel"),
            min_hours_reschedule=_setting(payload, "min_hours_reschedule"),
            tolerance_minutes=_setting(payload, "tolerance_minutes"),
        )


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of a lead-time check."""

    allowed: bool
    message: str | None = None


DEFAULT_SNAPSHOT = PolicySnapshot(
    version=1,
    min_hours_cancel=DEFAULT_CANCELLATION_SETTINGS["min_hours_cancel"],
    min_hours_reschedule=DEFAULT_CANCELLATION_SETTINGS["min_hours_reschedule"],
    tolerance_minutes=DEFAULT_CANCELLATION_SETTINGS["tolerance_minutes"],
)


def build_policy_snapshot(policy: Policy) -> PolicySnapshot:
    """Copy a policy's settings into an immutable snapshot."""
    return PolicySnapshot(
        version=policy.version,
        min_hours_cancel=_setting(policy.settings, "min_hours_cancel"),
        min_hours_reschedule=_setting(policy.settings, "min_hours_reschedule"),
        tolerance_minutes=_setting(policy.settings, "tolerance_minutes"),
    )


def evaluate_policy_window(
    snapshot: PolicySnapshot,
    session_start: datetime,
    kind: PolicyKind,
    now: datetime,
) -> PolicyDecision:
    """Check that ``now`` is still far enough ahead of ``session_start``."""
    lead_minutes = (session_start - now).total_seconds() / 60
    if kind == "cancel":
        required_hours = snapshot.min_hours_cancel
        label = "Cancellation"
    else:
        required_hours = snapshot.min_hours_reschedule
        label = "Rescheduling"
    threshold = required_hours * 60 - snapshot.tolerance_minutes
    if lead_minutes >= threshold:
        return PolicyDecision(allowed=True)
    return PolicyDecision(
        allowed=False,
        message=(
            f"{label} policy requires at least "
            f"{format_lead_time(required_hours * 60)} notice."
        ),
    )


def format_lead_time(minutes: float) -> str:
    """Format a lead time as minutes, hours or days."""
    if minutes < 60:  # noqa: PLR2004
        return f"{round(minutes)} minutes"
    hours = minutes / 60
    if hours < 24:  # noqa: PLR2004
        return f"{hours:.1f} hours"
    return f"{hours / 24:.1f} days"


def _setting(settings: Mapping[str, object], key: str) -> float:
    value = settings.get(key)
    if value is None:
        return float(DEFAULT_CANCELLATION_SETTINGS[key])
    return float(value)  # type: ignore[arg-type]
