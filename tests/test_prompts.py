from app.schemas.schedule import Preferences
from app.services.ai_engine.prompts import SCHEDULE_PROMPT, prompt_variables


def test_empty_preferences_render_placeholders():
    variables = prompt_variables(Preferences())
    assert variables["work_hours"] == "Not specified"
    assert variables["deep_work_hours"] == "Not specified"
    assert variables["personal_activities"] == "None"
    assert variables["auto_reschedule"] == "Disabled"
    assert variables["custom_preferences"] == "None"
    assert variables["user_context"] == "No additional user context provided"


def test_preferences_and_user_context_are_rendered():
    prefs = Preferences.model_validate({
        "workHours": "9-5",
        "deepWorkHours": "2-3 hours",
        "personalActivities": ["Reading", "gym", "reading", " Gym "],
        "meetingsPerDay": 3,
        "autoReschedule": True,
        "customPreferences": "No meetings before 10",
        "userName": "Sam",
        "userId": "u-42",
    })
    variables = prompt_variables(prefs)
    assert variables["deep_work_hours"] == "2 hours per day"
    assert variables["personal_activities"] == "Reading, gym"
    assert variables["meetings_per_day"] == "3"
    assert variables["auto_reschedule"] == "Enabled"
    assert variables["user_context"] == "Name: Sam\nUser ID: u-42"


def test_prompt_is_a_system_and_user_pair():
    messages = SCHEDULE_PROMPT.format_messages(**prompt_variables(Preferences(work_hours="8-4")))
    assert [m.type for m in messages] == ["system", "human"]
    assert "Work hours: 8-4" in messages[1].content
    assert '"schedule"' in messages[1].content
    assert "deep-work" in messages[1].content
