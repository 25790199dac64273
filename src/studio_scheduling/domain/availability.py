"""Recurring weekly availability for photographers."""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, tzinfo
from uuid import uuid4

from studio_scheduling.domain.errors import (
    CrossDayError,
    OutsideAvailabilityError,
    ValidationError,
)

_CLOCK_TIME = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True)
class AvailabilitySlot:
    """Weekly open hours; day_of_week is 0=Sunday .. 6=Saturday."""

    id: str
    day_of_week: int
    start_time: str
    end_time: str


def parse_clock_time(value: object) -> int | None:
    """Return minutes since midnight for a zero-padded HH:MM string."""
    if not isinstance(value, str):
        return None
    match = _CLOCK_TIME.match(value.strip())
    if match is None:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def day_of_week(value: datetime) -> int:
    """Return the Sunday-based weekday index of an instant."""
    return (value.weekday() + 1) % 7


def minutes_since_midnight(value: datetime) -> int:
    return value.hour * 60 + value.minute


def fits_availability(
    slots: Iterable[AvailabilitySlot],
    start: datetime,
    end: datetime,
    tz: tzinfo,
) -> None:
    """Raise when [start, end) is not fully inside one availability slot.

    No configured slots means no constraint.
    """
    slots = list(slots)
    if not slots:
        return
    local_start = _to_local(start, tz)
    local_end = _to_local(end, tz)
    if local_start.date() != local_end.date():
        raise CrossDayError("Sessions must start and end on the same day.")

    day = day_of_week(local_start)
    start_min = minutes_since_midnight(local_start)
    end_min = minutes_since_midnight(local_end)
    candidates = [slot for slot in slots if slot.day_of_week == day]
    if not candidates:
        raise OutsideAvailabilityError("No availability is configured for that day.")
    for slot in candidates:
        slot_start = parse_clock_time(slot.start_time)
        slot_end = parse_clock_time(slot.end_time)
        if slot_start is None or slot_end is None:
            continue
        if slot_start <= start_min and end_min <= slot_end:
            return
    raise OutsideAvailabilityError(
        "The session is outside the configured available hours."
    )


def normalize_availability(
    raw_slots: Iterable[Mapping[str, object]] | None,
) -> list[AvailabilitySlot]:
    """Validate raw slot payloads for a replace-all availability update."""
    if not raw_slots:
        return []
    normalized: list[AvailabilitySlot] = []
    for raw in raw_slots:
        day = _parse_day(raw.get("day_of_week"))
        if day is None:
            raise ValidationError("Invalid day of week.")
        start_time = str(raw.get("start_time") or "").strip()
        end_time = str(raw.get("end_time") or "").strip()
        start_min = parse_clock_time(start_time)
        end_min = parse_clock_time(end_time)
        if start_min is None or end_min is None:
            raise ValidationError("Invalid time. Use 24-hour HH:MM format.")
        if start_min >= end_min:
            raise ValidationError("The end time must be after the start time.")
        slot_id = raw.get("id")
        normalized.append(
            AvailabilitySlot(
                id=str(slot_id) if slot_id else str(uuid4()),
                day_of_week=day,
                start_time=start_time,
                end_time=end_time,
            )
        )
    return normalized


def slot_to_dict(slot: AvailabilitySlot) -> dict[str, object]:
    return {
        "id": slot.id,
        "day_of_week": slot.day_of_week,
        "start_time": slot.start_time,
        "end_time": slot.end_time,
    }


def slot_from_dict(row: Mapping[str, object]) -> AvailabilitySlot:
    return AvailabilitySlot(
        id=str(row["id"]),
        day_of_week=int(row["day_of_week"]),
        start_time=str(row["start_time"]),
        end_time=str(row["end_time"]),
    )


def _parse_day(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        day = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return day if 0 <= day <= 6 else None  # noqa: PLR2004


def _to_local(value: datetime, tz: tzinfo) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(tz)
