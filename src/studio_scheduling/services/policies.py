"""Cancellation policy lookups and publication."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from studio_scheduling.domain.errors import ValidationError
from studio_scheduling.domain.policies import (
    CANCELLATION_POLICY,
    DEFAULT_CANCELLATION_SETTINGS,
    Policy,
    PolicySnapshot,
    build_policy_snapshot,
)

_logger = logging.getLogger(__name__)


class PolicyRepository(Protocol):
    """Persistence interface for versioned policies."""

    def get_latest_policy(self, policy_type: str) -> Policy | None:
        """Return the highest version of a policy type, if any."""

    def create_policy(
        self,
        policy_type: str,
        version: int,
        settings: dict[str, object],
        created_by: str | None,
    ) -> Policy:
        """Persist a new policy version and return it."""


@dataclass
class PolicyService:
    """Reads the active cancellation policy and snapshots it for bookings."""

    repository: PolicyRepository

    def get_active_policy(self) -> Policy:
        """Return the active cancellation policy, seeding defaults if missing."""
        policy = self.repository.get_latest_policy(CANCELLATION_POLICY)
        if policy is not None:
            return policy
        _logger.info("Seeding default cancellation policy")
        return self.repository.create_policy(
            CANCELLATION_POLICY,
            version=1,
            settings=dict(DEFAULT_CANCELLATION_SETTINGS),
            created_by=None,
        )

    def capture_snapshot(self) -> PolicySnapshot:
        """Snapshot the active policy for a new session."""
        return build_policy_snapshot(self.get_active_policy())

    def publish_cancellation_policy(
        self, actor_id: str | None, settings: Mapping[str, object]
    ) -> Policy:
        """Store a new cancellation policy version on top of the active one."""
        values: dict[str, object] = {}
        for key, default in DEFAULT_CANCELLATION_SETTINGS.items():
            raw = settings.get(key)
            if raw is None:
                values[key] = default
                continue
            if isinstance(raw, bool) or not isinstance(raw, int | float):
                raise ValidationError(f"Policy setting '{key}' must be a number.")
            if raw < 0:
                raise ValidationError("Policy values must be non-negative numbers.")
            values[key] = raw
        current = self.repository.get_latest_policy(CANCELLATION_POLICY)
        next_version = current.version + 1 if current else 1
        return self.repository.create_policy(
            CANCELLATION_POLICY,
            version=next_version,
            settings=values,
            created_by=actor_id,
        )
