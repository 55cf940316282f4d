import pytest

from app.db.session import create_db_engine
from app.services.ai_engine.fallback import generate_fallback
from app.services.schedule_store import ScheduleStore


@pytest.fixture
def store():
    store = ScheduleStore(create_db_engine("sqlite://"))
    store.create_tables()
    return store


def test_saved_schedule_becomes_the_only_default(store, preferences, now):
    events = generate_fallback(preferences, now=now)
    first = store.save_generated("user-1", events, preferences, is_fallback=True)
    second = store.save_generated("user-1", events[:3], preferences, title="Focus week")

    assert store.get_default("user-1").id == second.id
    schedules = store.list_for_user("user-1")
    assert [s.id for s in schedules] == [second.id, first.id]
    assert [s.is_default for s in schedules] == [True, False]

    saved = store.get(first.id, "user-1")
    assert saved.title == "Generated Schedule"
    assert saved.is_fallback is True
    assert len(saved.events) == len(events)
    assert saved.events[0]["startTime"]
    assert saved.preferences["workHours"] == "9-5"


def test_schedules_are_scoped_to_their_owner(store, preferences, now):
    saved = store.save_generated("user-1", generate_fallback(preferences, now=now), preferences)
    assert store.get(saved.id, "someone-else") is None
    assert store.list_for_user("someone-else") == []
    assert store.get_default("someone-else") is None
    assert store.delete(saved.id, "someone-else") is False


def test_delete(store, preferences, now):
    saved = store.save_generated("user-1", generate_fallback(preferences, now=now), preferences)
    assert store.delete(saved.id, "user-1") is True
    assert store.get(saved.id, "user-1") is None
    assert store.delete(saved.id, "user-1") is False


def test_update_moves_the_default_and_bumps_updated_at(store, preferences, now):
    events = generate_fallback(preferences, now=now)
    first = store.save_generated("user-1", events, preferences)
    second = store.save_generated("user-1", events, preferences)

    updated = store.update(first.id, "user-1", title="Back to basics", events=events[:2], is_default=True)

    assert updated.title == "Back to basics"
    assert [e["title"] for e in updated.events] == [e.title for e in events[:2]]
    assert updated.updated_at >= first.updated_at
    assert store.get_default("user-1").id == first.id
    assert store.get(second.id, "user-1").is_default is False
    assert [s.id for s in store.list_for_user("user-1")] == [first.id, second.id]


def test_update_leaves_missing_fields_unchanged(store, preferences, now):
    saved = store.save_generated("user-1", generate_fallback(preferences, now=now), preferences, title="Week 1")
    updated = store.update(saved.id, "user-1")
    assert updated.title == "Week 1"
    assert updated.is_default is True
    assert len(updated.events) == len(saved.events)


def test_update_is_scoped_to_the_owner(store, preferences, now):
    saved = store.save_generated("user-1", generate_fallback(preferences, now=now), preferences)
    assert store.update(saved.id, "someone-else", title="Mine now") is None
    assert store.get(saved.id, "user-1").title == "Generated Schedule"
