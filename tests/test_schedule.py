"""Tests for the fulfillment schedule"""

from datetime import datetime
from zoneinfo import ZoneInfo

from bakery.fulfillment.schedule import (
    default_schedule_config,
    earliest_allowed_date,
    is_slot_available,
    normalize_schedule_config,
    parse_date,
    slots_for_date,
)

STORE_TZ = ZoneInfo("America/New_York")

# Monday 2026-10-19, 09:00 store time
MORNING = datetime(2026, 10, 19, 9, 0, tzinfo=STORE_TZ)
# Same Monday, after the next-day cutoff
EVENING = datetime(2026, 10, 19, 18, 30, tzinfo=STORE_TZ)


def test_next_day_open_before_cutoff():
    schedule = default_schedule_config()
    assert earliest_allowed_date(schedule, MORNING).isoformat() == "2026-10-20"
    assert is_slot_available(schedule, "pickup", "2026-10-20", "10:00", now=MORNING)


def test_next_day_closes_after_cutoff():
    schedule = default_schedule_config()
    assert earliest_allowed_date(schedule, EVENING).isoformat() == "2026-10-21"
    assert not is_slot_available(schedule, "pickup", "2026-10-20", "10:00", now=EVENING)
    assert is_slot_available(schedule, "pickup", "2026-10-21", "10:00", now=EVENING)


def test_same_day_never_offered_by_default():
    schedule = default_schedule_config()
    assert not is_slot_available(schedule, "pickup", "2026-10-19", "16:00", now=MORNING)


def test_dates_past_window_rejected():
    schedule = default_schedule_config()
    assert is_slot_available(schedule, "pickup", "2026-11-09", "10:00", now=MORNING)
    assert not is_slot_available(schedule, "pickup", "2026-11-10", "10:00", now=MORNING)


def test_slot_must_be_listed_for_weekday_and_mode():
    schedule = normalize_schedule_config(
        {
            "min_days_ahead": 1,
            "max_days_ahead": 14,
            "pickup": {"tue": ["09:00", "13:00"]},
            "delivery": {"wed": ["15:00"]},
        }
    )
    assert is_slot_available(schedule, "pickup", "2026-10-20", "13:00", now=MORNING)
    assert not is_slot_available(schedule, "pickup", "2026-10-20", "15:00", now=MORNING)
    assert not is_slot_available(schedule, "delivery", "2026-10-20", "09:00", now=MORNING)
    assert is_slot_available(schedule, "delivery", "2026-10-21", "15:00", now=MORNING)


def test_invalid_dates_and_times_rejected():
    schedule = default_schedule_config()
    assert parse_date("2026-02-30") is None
    assert parse_date("10/20/2026") is None
    assert not is_slot_available(schedule, "pickup", "2026-02-30", "10:00", now=MORNING)
    assert not is_slot_available(schedule, "pickup", "2026-10-20", "25:00", now=MORNING)
    assert slots_for_date(schedule, "pickup", "not-a-date", now=MORNING) == []


def test_normalize_cleans_malformed_config():
    schedule = normalize_schedule_config(
        {
            "min_days_ahead": -4,
            "max_days_ahead": 500,
            "next_day_cutoff_time": "late",
            "pickup": {"mon": ["12:00", "10:00", "10:00", "nope", 7], "tue": "10:00"},
            "delivery": None,
        }
    )
    assert schedule.min_days_ahead == 0
    assert schedule.max_days_ahead == 60
    assert schedule.next_day_cutoff_time == "17:00"
    assert schedule.pickup["mon"] == ["10:00", "12:00"]
    assert schedule.pickup["tue"] == []
    assert all(slots == [] for slots in schedule.delivery.values())


def test_null_cutoff_keeps_next_day_open():
    schedule = normalize_schedule_config(
        {**default_schedule_config().model_dump(), "next_day_cutoff_time": None}
    )
    assert is_slot_available(schedule, "pickup", "2026-10-20", "10:00", now=EVENING)


def test_non_dict_config_uses_defaults():
    assert normalize_schedule_config("garbage") == default_schedule_config()
