from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from app.services.ai_engine.errors import EmptyScheduleAfterValidation, MalformedItem, NoScheduleFound
from app.services.ai_engine.normalizer import (
    DEFAULT_TITLE,
    event_window,
    extract_event_list,
    normalize_event,
    normalize_events,
    normalize_type,
)
from tests.conftest import assert_in_domain


def _one(raw, now):
    return normalize_event(raw, seen_ids=set(), now=now)


@pytest.mark.parametrize("raw_day, expected", [(-1, 0), (9, 6), (3, 3), ("4", 4), (2.6, 3)])
def test_day_is_clamped(raw_day, expected, now):
    assert _one({"title": "x", "day": raw_day}, now).day == expected


@pytest.mark.parametrize("raw_duration, expected", [(0, 0.25), (-3, 0.25), (100, 24), ("1.5", 1.5)])
def test_duration_is_clamped(raw_duration, expected, now):
    assert _one({"title": "x", "duration": raw_duration}, now).duration == expected


@pytest.mark.parametrize("raw_hour, expected", [(-2, 0), (30, 23), (7.5, 7.5), (" 14 ", 14)])
def test_hour_is_clamped(raw_hour, expected, now):
    assert _one({"title": "x", "hour": raw_hour}, now).hour == expected


def test_missing_or_non_numeric_fields_get_canonical_defaults(now):
    event = _one({"title": "  ", "day": "monday", "hour": True, "duration": float("nan"), "type": "party"}, now)
    assert event.title == DEFAULT_TITLE
    assert (event.day, event.hour, event.duration) == (1, 9, 1)
    assert event.type == "personal"
    assert event.description == ""


@pytest.mark.parametrize("raw, expected", [
    ("work", "work"),
    (" Deep Work ", "deep-work"),
    ("deep_work", "deep-work"),
    ("Meetings", "meeting"),
    ("meal", "meals"),
    ("exercise", "workout"),
    ("other", "personal"),
    (None, "personal"),
    (3, "personal"),
])
def test_normalize_type(raw, expected):
    assert normalize_type(raw) == expected


def test_start_and_end_are_derived_not_trusted(now):
    event = _one({
        "title": "Standup",
        "day": 1,
        "hour": 7.5,
        "duration": 1.5,
        "type": "meeting",
        "startTime": "1999-01-01T00:00:00Z",
    }, now)
    assert event.start_time == datetime(2026, 10, 19, 7, 30, tzinfo=ZoneInfo("UTC"))
    assert event.end_time == datetime(2026, 10, 19, 9, 0, tzinfo=ZoneInfo("UTC"))


def test_event_window_uses_the_given_zone(now):
    start, end = event_window(0, 23, 2, ZoneInfo("Europe/Paris"), now)
    assert start.tzinfo == ZoneInfo("Europe/Paris")
    assert (start.year, start.month, start.day, start.hour) == (2026, 10, 18, 23)
    assert (end - start).total_seconds() == 2 * 3600


@pytest.mark.parametrize("raw", ["Lunch", 42, None, [], {}, {"color": "red"}])
def test_unusable_items_are_malformed(raw, now):
    with pytest.raises(MalformedItem):
        _one(raw, now)


def test_items_missing_numbers_are_kept_not_fabricated(now):
    items = [
        {"title": "Deep Work", "day": 1, "hour": 9, "duration": 2, "type": "deep-work"},
        {"title": "Lunch", "day": 1, "hour": 12, "duration": 1, "type": "meals"},
        {"title": "Gym", "type": "workout"},
        {"title": "Dinner", "day": 1, "type": "meals"},
        {"title": "Sleep", "day": 1, "hour": 23, "duration": 8, "type": "sleep"},
    ]
    events = normalize_events(items, now=now)
    assert 3 <= len(events) <= 5
    assert_in_domain(events)


def test_malformed_items_are_skipped_and_order_kept(now):
    items = ["noise", {"title": "A", "day": 2}, 42, {"title": "B", "day": 0}, {}]
    events = normalize_events(items, now=now)
    assert [e.title for e in events] == ["A", "B"]


def test_empty_result_is_fatal(now):
    with pytest.raises(EmptyScheduleAfterValidation):
        normalize_events(["noise", None, {}], now=now)
    with pytest.raises(EmptyScheduleAfterValidation):
        normalize_events([], now=now)


def test_colliding_id_seeds_still_give_unique_ids(now):
    items = [{"title": f"Event {i}", "day": i % 7} for i in range(100)]
    events = normalize_events(items, new_id=lambda: "evt-fixed", now=now)
    assert len(events) == 100
    assert len({e.id for e in events}) == 100
    assert events[0].id == "evt-fixed"


def test_default_ids_are_unique(now):
    events = normalize_events([{"title": "x"}] * 50, now=now)
    assert len({e.id for e in events}) == 50


@pytest.mark.parametrize("parsed, expected", [
    ([{"title": "a"}], [{"title": "a"}]),
    ({"schedule": [1], "events": [2]}, [1]),
    ({"events": [2]}, [2]),
    ({"note": "x", "items": [3], "other": [4]}, [3]),
    ({"schedule": "nope", "days": [5]}, [5]),
])
def test_extract_event_list(parsed, expected):
    assert extract_event_list(parsed) == expected


@pytest.mark.parametrize("parsed", [{"message": "sorry"}, {}, "text", 3, None])
def test_extract_event_list_without_array(parsed):
    with pytest.raises(NoScheduleFound):
        extract_event_list(parsed)
