"""
Planning de secours : un modèle hebdomadaire fixe, construit sans IA.

Il ne respecte volontairement qu'une petite partie des préférences (heure de
début de journée, volume de deep work, moment des réunions et du sport) : le
but est de toujours servir quelque chose de raisonnable.
"""
import re
from datetime import datetime, tzinfo
from typing import List, Optional

from app.schemas.schedule import Preferences, ScheduleEvent
from app.services.ai_engine.normalizer import IdFactory, new_event_id, normalize_events

DEFAULT_WORK_START = 9
WEEKEND = (0, 6)


def work_start_hour(work_hours: Optional[str]) -> int:
    """'9-5' -> 9, '8:30 to 17:00' -> 8, 'early bird' -> 7."""
    text = (work_hours or "").lower()
    match = re.search(r"\d{1,2}", text)
    if match and 5 <= int(match.group(0)) <= 12:
        start = int(match.group(0))
    elif "early" in text:
        start = 7
    elif "late" in text:
        start = 10
    else:
        start = DEFAULT_WORK_START
    return max(6, min(11, start))


def _event(day: int, hour: float, duration: float, title: str, type_: str, description: str = "") -> dict:
    return {
        "day": day,
        "hour": hour,
        "duration": duration,
        "title": title,
        "type": type_,
        "description": description,
    }


def fallback_schedule(preferences: Preferences) -> List[dict]:
    """Modèle brut (dicts) couvrant les 7 jours, dans le domaine des ScheduleEvent par construction."""
    start = work_start_hour(preferences.work_hours)
    end = start + 8
    wake = start - 2
    bedtime = min(start + 14, 23)

    deep_work = preferences.deep_work_hours or 2
    deep_work = max(1.0, min(3.0, float(deep_work)))

    meeting_pref = preferences.meeting_preference or ""
    meeting_hour = 11 if "morning" in meeting_pref else 14

    workout_pref = preferences.workout_time or ""
    morning_workout = "morning" in workout_pref

    events = []
    for day in range(7):
        events.append(_event(day, wake, 0.5, "Wake up & morning routine", "personal"))
        if morning_workout:
            # Sport juste après la routine, petit-déjeuner ensuite
            events.append(_event(day, wake + 0.5, 1, "Morning workout", "workout"))
            events.append(_event(day, wake + 1.5, 0.5, "Breakfast", "meals"))
        else:
            events.append(_event(day, wake + 0.5, 0.5, "Breakfast", "meals"))

        if day in WEEKEND:
            events.append(_event(day, 10, 2, "Learning session", "learning", "Read, take a course or practice a skill"))
            events.append(_event(day, 14, 2, "Personal projects", "personal"))
        else:
            events.append(_event(day, start, deep_work, "Deep Work", "deep-work", "Focused work without interruptions"))
            events.append(_event(day, meeting_hour, 1, "Team meeting", "meeting"))
            events.append(_event(day, 15, 0.25, "Short break", "break"))
            events.append(_event(day, 15.25, max(end - 15.25, 1), "Project work", "work"))

        events.append(_event(day, 12, 1, "Lunch", "meals"))
        if not morning_workout:
            events.append(_event(day, 18, 1, "Evening workout", "workout"))
        events.append(_event(day, 19, 1, "Dinner", "meals"))
        events.append(_event(day, 20, max(bedtime - 20, 1), "Evening relaxation", "relaxation"))
        events.append(_event(day, bedtime, 8, "Sleep", "sleep"))

    return events


def generate_fallback(
    preferences: Preferences,
    *,
    new_id: IdFactory = new_event_id,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> List[ScheduleEvent]:
    """Planning de secours complet (ids et fenêtres start/end compris). Ne lève jamais."""
    return normalize_events(fallback_schedule(preferences), new_id=new_id, tz=tz, now=now)
