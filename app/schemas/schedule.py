import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # Le front (React) parle en camelCase, on accepte aussi le snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EventType(str, Enum):
    WORK = "work"
    MEETING = "meeting"
    DEEP_WORK = "deep-work"
    WORKOUT = "workout"
    MEALS = "meals"
    BREAK = "break"
    PERSONAL = "personal"
    LEARNING = "learning"
    RELAXATION = "relaxation"
    COMMUTE = "commute"
    SLEEP = "sleep"


# Ce que le front envoie pour demander un planning
class Preferences(CamelModel):
    work_hours: str = ""
    deep_work_hours: Optional[float] = None
    personal_activities: List[str] = Field(default_factory=list)
    workout_time: Optional[str] = None
    meeting_preference: Optional[str] = None
    meetings_per_day: Optional[Union[int, str]] = None
    auto_reschedule: bool = False  # déclaré, jamais exploité (pas de détection de conflits)
    custom_preferences: Optional[str] = None

    # Contexte utilisateur (injecté dans le prompt et utilisé comme clé de stockage)
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None

    @field_validator("work_hours", mode="before")
    @classmethod
    def _work_hours_text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("deep_work_hours", mode="before")
    @classmethod
    def _first_number(cls, v: Any) -> Any:
        # "2", "2-3 hours" -> 2.0 ; "" -> None
        if isinstance(v, str):
            match = re.search(r"\d+(?:\.\d+)?", v)
            return float(match.group(0)) if match else None
        return v

    @field_validator("personal_activities", mode="before")
    @classmethod
    def _unique_activities(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        if not isinstance(v, (list, tuple, set)):
            raise ValueError("personalActivities doit être une liste")
        seen = set()
        activities = []
        for item in v:
            label = str(item).strip()
            if label and label.lower() not in seen:
                seen.add(label.lower())
                activities.append(label)
        return activities

    @field_validator("workout_time", "meeting_preference", mode="before")
    @classmethod
    def _category(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip().lower()
        return text or None


# Un créneau du planning hebdomadaire
class ScheduleEvent(CamelModel):
    id: str
    title: str
    day: int = Field(ge=0, le=6)  # 0 = dimanche
    hour: float = Field(ge=0, le=23)  # 7.5 = 7h30
    duration: float = Field(ge=0.25, le=24)  # en heures
    type: EventType
    description: str = ""
    start_time: datetime
    end_time: datetime

    model_config = ConfigDict(use_enum_values=True)


class GenerationRequest(CamelModel):
    # Volontairement non typé : la validation est faite par l'orchestrateur
    preferences: Any = None
    save: bool = False
    title: Optional[str] = None


# L'unique enveloppe renvoyée par la génération (IA ou secours)
class GenerationResult(CamelModel):
    success: bool = True
    source: Literal["ai", "fallback"]
    fallback: bool = False
    data: List[ScheduleEvent]
    message: str
    reason: Optional[str] = None
    schedule_id: Optional[UUID] = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
    message: str


class SyncRequest(CamelModel):
    events: List[ScheduleEvent]
    access_token: str
    timezone: str = "UTC"


class SyncResult(CamelModel):
    success: bool
    synced_count: int
    failed_count: int
    total: int


class ScheduleUpdate(CamelModel):
    # Champs absents = inchangés
    title: Optional[str] = None
    events: Optional[List[ScheduleEvent]] = None
    is_default: Optional[bool] = None


class SavedScheduleRead(CamelModel):
    id: UUID
    user_id: str
    title: str
    events: List[ScheduleEvent]
    preferences: Dict[str, Any]
    is_fallback: bool
    is_default: bool
    created_at: datetime
    updated_at: datetime
