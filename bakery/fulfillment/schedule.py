"""Fulfillment schedule: which dates and time slots are currently offered"""

import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel

STORE_TIME_ZONE = "America/New_York"
DAY_KEYS = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]
DEFAULT_SLOTS = ["10:00", "12:00", "14:00", "16:00", "18:00"]

TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ScheduleConfig(BaseModel):
    """Version 1 of the stored fulfillment schedule"""
    version: int = 1
    timezone: str = STORE_TIME_ZONE
    min_days_ahead: int = 1
    max_days_ahead: int = 21
    # Once store-local time reaches this, tomorrow is no longer offered.
    next_day_cutoff_time: Optional[str] = "17:00"
    pickup: Dict[str, List[str]]
    delivery: Dict[str, List[str]]


def is_valid_time_slot(value: str) -> bool:
    return bool(TIME_RE.match(value))


def parse_date(value: str) -> Optional[date]:
    """Parse a strict YYYY-MM-DD string, rejecting impossible dates"""
    if not DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def default_schedule_config() -> ScheduleConfig:
    weekly = {day: list(DEFAULT_SLOTS) for day in DAY_KEYS}
    return ScheduleConfig(pickup=weekly, delivery=dict(weekly))


def _normalize_weekly_slots(value: Any) -> Dict[str, List[str]]:
    if not isinstance(value, dict):
        return {day: [] for day in DAY_KEYS}

    weekly = {}
    for day in DAY_KEYS:
        raw = value.get(day)
        entries = raw if isinstance(raw, list) else []
        slots = {entry.strip() for entry in entries if isinstance(entry, str)}
        weekly[day] = sorted(slot for slot in slots if is_valid_time_slot(slot))
    return weekly


def _clamped_int(value: Any, low: int, high: int, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if isinstance(value, float) and not value.is_integer():
        return default
    return min(high, max(low, number))


def normalize_schedule_config(value: Any) -> ScheduleConfig:
    """Coerce a stored (possibly malformed) schedule into a usable config"""
    defaults = default_schedule_config()
    if not isinstance(value, dict):
        return defaults

    cutoff = value.get("next_day_cutoff_time", defaults.next_day_cutoff_time)
    if cutoff is not None:
        cutoff = cutoff.strip() if isinstance(cutoff, str) else ""
        if not is_valid_time_slot(cutoff):
            cutoff = defaults.next_day_cutoff_time

    return ScheduleConfig(
        version=1,
        timezone=STORE_TIME_ZONE,
        min_days_ahead=_clamped_int(value.get("min_days_ahead"), 0, 60, defaults.min_days_ahead),
        max_days_ahead=_clamped_int(value.get("max_days_ahead"), 1, 60, defaults.max_days_ahead),
        next_day_cutoff_time=cutoff,
        pickup=_normalize_weekly_slots(value.get("pickup")),
        delivery=_normalize_weekly_slots(value.get("delivery")),
    )


def _store_now(schedule: ScheduleConfig, now: Optional[datetime]) -> datetime:
    tz = ZoneInfo(schedule.timezone)
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo("UTC"))
    return now.astimezone(tz)


def earliest_allowed_date(schedule: ScheduleConfig, now: Optional[datetime] = None) -> date:
    local_now = _store_now(schedule, now)
    today = local_now.date()
    earliest = today + timedelta(days=schedule.min_days_ahead)

    cutoff = schedule.next_day_cutoff_time
    if earliest == today + timedelta(days=1) and cutoff and is_valid_time_slot(cutoff):
        if local_now.strftime("%H:%M") >= cutoff:
            return today + timedelta(days=2)
    return earliest


def slots_for_date(
    schedule: ScheduleConfig,
    fulfillment: str,
    date_string: str,
    now: Optional[datetime] = None,
) -> List[str]:
    requested = parse_date(date_string)
    if requested is None:
        return []

    today = _store_now(schedule, now).date()
    latest = today + timedelta(days=schedule.max_days_ahead)
    if requested < earliest_allowed_date(schedule, now) or requested > latest:
        return []

    weekly = schedule.delivery if fulfillment == "delivery" else schedule.pickup
    return weekly.get(DAY_KEYS[requested.weekday()], [])


def is_slot_available(
    schedule: ScheduleConfig,
    fulfillment: str,
    date_string: str,
    time_slot: str,
    now: Optional[datetime] = None,
) -> bool:
    """Return True when the slot is currently offered for that mode and date"""
    if not is_valid_time_slot(time_slot):
        return False
    return time_slot in slots_for_date(schedule, fulfillment, date_string, now)
