from fastapi import Request

from app.services.ai_engine.generator import ScheduleGenerator
from app.services.calendar_service import GoogleCalendarService
from app.services.schedule_store import ScheduleStore

# Les services sont créés une seule fois dans le lifespan (app/main.py)
# et rangés dans app.state. Les tests les remplacent via dependency_overrides.

def get_generator(request: Request) -> ScheduleGenerator:
    return request.app.state.generator

def get_store(request: Request) -> ScheduleStore:
    return request.app.state.store

def get_calendar_service(request: Request) -> GoogleCalendarService:
    return request.app.state.calendar
