import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api import deps
from app.models.schedule import SavedSchedule
from app.schemas.schedule import (
    ErrorResponse,
    GenerationRequest,
    GenerationResult,
    SavedScheduleRead,
    ScheduleUpdate,
)
from app.services.ai_engine.generator import ScheduleGenerator
from app.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post(
    "/schedule/generate",
    response_model=GenerationResult,
    responses={400: {"model": ErrorResponse}},
)
async def generate_schedule(
    request: GenerationRequest,
    generator: ScheduleGenerator = Depends(deps.get_generator),
    store: ScheduleStore = Depends(deps.get_store),
):
    """
    Préférences -> planning hebdomadaire (IA, ou secours si l'IA échoue).
    Les préférences invalides remontent en 400 (voir le handler dans main.py).
    """
    prefs = generator.validate_preferences(request.preferences)
    # Vérifié avant l'appel IA, qui peut durer jusqu'au timeout
    if request.save and not prefs.user_id:
        raise HTTPException(status_code=400, detail="userId is required to save a schedule")

    result = await generator.generate(prefs)

    if request.save:
        saved = store.save_generated(
            user_id=prefs.user_id,
            events=result.data,
            preferences=prefs,
            title=request.title,
            is_fallback=result.fallback,
        )
        result.schedule_id = saved.id

    return result

def _read(schedule: SavedSchedule) -> SavedScheduleRead:
    return SavedScheduleRead.model_validate(schedule.model_dump())

@router.get("/schedules", response_model=List[SavedScheduleRead])
def list_schedules(
    user_id: str = Query(..., alias="userId"),
    store: ScheduleStore = Depends(deps.get_store),
):
    return [_read(s) for s in store.list_for_user(user_id)]

@router.get("/schedules/default", response_model=SavedScheduleRead)
def read_default_schedule(
    user_id: str = Query(..., alias="userId"),
    store: ScheduleStore = Depends(deps.get_store),
):
    schedule = store.get_default(user_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="No default schedule")
    return _read(schedule)

@router.get("/schedules/{schedule_id}", response_model=SavedScheduleRead)
def read_schedule(
    schedule_id: UUID,
    user_id: str = Query(..., alias="userId"),
    store: ScheduleStore = Depends(deps.get_store),
):
    schedule = store.get(schedule_id, user_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return _read(schedule)

@router.patch("/schedules/{schedule_id}", response_model=SavedScheduleRead)
def update_schedule(
    schedule_id: UUID,
    update: ScheduleUpdate,
    user_id: str = Query(..., alias="userId"),
    store: ScheduleStore = Depends(deps.get_store),
):
    """Renommer, remplacer les événements ou choisir le planning par défaut."""
    schedule = store.update(
        schedule_id,
        user_id,
        title=update.title,
        events=update.events,
        is_default=update.is_default,
    )
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return _read(schedule)

@router.delete("/schedules/{schedule_id}")
def delete_schedule(
    schedule_id: UUID,
    user_id: str = Query(..., alias="userId"),
    store: ScheduleStore = Depends(deps.get_store),
):
    if not store.delete(schedule_id, user_id):
        raise HTTPException(status_code=404, detail="Schedule not found")
    return {"deleted": True}
