from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

class SavedSchedule(SQLModel, table=True):
    __tablename__ = "schedules"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    user_id: str = Field(index=True)
    title: str = Field(default="Generated Schedule")

    # Le lot d'événements tel que renvoyé au front (camelCase, dates ISO)
    events: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    preferences: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    is_fallback: bool = Field(default=False)
    # Un seul planning par défaut par utilisateur
    is_default: bool = Field(default=False, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
