from fastapi import APIRouter, Depends, HTTPException

from app.api import deps
from app.schemas.schedule import SyncRequest, SyncResult
from app.services.ai_engine.errors import CalendarSyncError
from app.services.calendar_service import GoogleCalendarService

router = APIRouter()

@router.post("/sync", response_model=SyncResult)
async def sync_calendar(
    request: SyncRequest,
    calendar: GoogleCalendarService = Depends(deps.get_calendar_service),
):
    """Prend le planning validé par l'utilisateur et le pousse dans Google"""
    try:
        return await calendar.push_events(request.events, request.access_token, request.timezone)
    except CalendarSyncError as e:
        raise HTTPException(status_code=502, detail=str(e))
