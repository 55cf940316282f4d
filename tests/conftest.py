import os
from datetime import datetime
from zoneinfo import ZoneInfo

# Avant tout import de app.* : base SQLite en mémoire et pas de clé Gemini
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GOOGLE_API_KEY"] = ""
os.environ["SCHEDULE_TIMEZONE"] = "UTC"

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.schemas.schedule import EventType, Preferences

VALID_TYPES = {t.value for t in EventType}

# Mercredi 21 octobre 2026, 10h UTC (semaine du dimanche 18)
FIXED_NOW = datetime(2026, 10, 21, 10, 0, tzinfo=ZoneInfo("UTC"))


def assert_in_domain(events):
    for event in events:
        assert 0 <= event.day <= 6
        assert 0 <= event.hour <= 23
        assert 0.25 <= event.duration <= 24
        assert event.type in VALID_TYPES
        assert event.title


def content_of(events):
    return [(e.day, e.hour, e.duration, e.type, e.title) for e in events]


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def preferences():
    return Preferences.model_validate({
        "workHours": "9-5",
        "deepWorkHours": 2,
        "personalActivities": ["gym"],
        "meetingPreference": "afternoon",
    })


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
