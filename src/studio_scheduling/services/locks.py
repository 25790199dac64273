"""Per-photographer locks for check-then-write scheduling."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class PhotographerLocks:
    """Serializes conflict checks and writes for the same photographer."""

    _locks: dict[str, asyncio.Lock] = field(default_factory=dict)

    @asynccontextmanager
    async def hold(self, photographer_id: str) -> AsyncIterator[None]:
        """Hold the photographer's lock for the duration of the block."""
        lock = self._locks.setdefault(photographer_id, asyncio.Lock())
        async with lock:
            yield
