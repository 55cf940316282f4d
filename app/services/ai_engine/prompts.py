from typing import Dict

from langchain_core.prompts import ChatPromptTemplate

from app.schemas.schedule import EventType, Preferences

EVENT_TYPES_TEXT = "|".join(t.value for t in EventType)

SYSTEM_PROMPT = (
    "You are an AI scheduler specialized in creating realistic, balanced weekly schedules "
    "that improve productivity and work-life balance. Always respond with valid JSON only, "
    "without markdown fences or any other text."
)

# Les accolades du JSON d'exemple sont doublées pour PromptTemplate
USER_TEMPLATE = """
User context:
{user_context}

Create a detailed weekly schedule based on the following preferences:

Work hours: {work_hours}
Deep work hours: {deep_work_hours}
Personal activities: {personal_activities}
Workout time: {workout_time}
Meeting preference: {meeting_preference}
Meetings per day: {meetings_per_day}
Auto-reschedule: {auto_reschedule}
Additional preferences: {custom_preferences}

GUIDELINES:
- Additional preferences written by the user OVERRIDE every other rule when they conflict.
- Distribute deep work blocks according to the user's specified hours per day.
- Position meetings according to the user's meeting preference.
- Include the requested personal activities at appropriate times.
- Add short breaks between intensive work sessions.
- Schedule meals at appropriate times (breakfast, lunch, dinner).
- Ensure 7-9 hours of sleep per night.
- Include time for relaxation and respect work-life balance.

IMPORTANT: Return a JSON object with a single "schedule" property containing an array of events.
Each event must have these properties:
- title: string (descriptive name of the activity)
- day: number (0=Sunday, 1=Monday, 2=Tuesday, 3=Wednesday, 4=Thursday, 5=Friday, 6=Saturday)
- hour: number (0-23, can be decimal like 7.5 for 7:30)
- duration: number (in hours, can be decimal like 1.5 for 90 minutes)
- type: string ({event_types})
- description: string (optional, additional details)

Example response format:
{{
  "schedule": [
    {{"day": 1, "hour": 6, "title": "Wake up", "duration": 0.5, "type": "relaxation", "description": "Morning routine"}},
    {{"day": 1, "hour": 7, "title": "Breakfast", "duration": 1, "type": "meals"}},
    {{"day": 1, "hour": 9, "title": "Deep Work", "duration": 3, "type": "deep-work"}}
  ]
}}
"""

SCHEDULE_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    ("human", USER_TEMPLATE),
])


def _or(value, default: str) -> str:
    if value is None or value == "" or value == []:
        return default
    return str(value)


def prompt_variables(preferences: Preferences) -> Dict[str, str]:
    """Rend les préférences en texte pour SCHEDULE_PROMPT (déterministe)."""
    context = []
    if preferences.user_name:
        context.append(f"Name: {preferences.user_name}")
    if preferences.user_email:
        context.append(f"Email: {preferences.user_email}")
    if preferences.user_id:
        context.append(f"User ID: {preferences.user_id}")

    deep_work = preferences.deep_work_hours
    if deep_work is not None:
        deep_work = f"{deep_work:g} hours per day"

    return {
        "user_context": "\n".join(context) or "No additional user context provided",
        "work_hours": _or(preferences.work_hours, "Not specified"),
        "deep_work_hours": _or(deep_work, "Not specified"),
        "personal_activities": _or(", ".join(preferences.personal_activities), "None"),
        "workout_time": _or(preferences.workout_time, "Not specified"),
        "meeting_preference": _or(preferences.meeting_preference, "Not specified"),
        "meetings_per_day": _or(preferences.meetings_per_day, "Not specified"),
        "auto_reschedule": "Enabled" if preferences.auto_reschedule else "Disabled",
        "custom_preferences": _or(preferences.custom_preferences, "None"),
        "event_types": EVENT_TYPES_TEXT,
    }
