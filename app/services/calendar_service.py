import asyncio
import logging
from typing import List, Optional

import httpx

from app.schemas.schedule import ScheduleEvent, SyncResult
from app.services.ai_engine.errors import CalendarSyncError
from app.services.ai_engine.normalizer import event_window, resolve_timezone

logger = logging.getLogger(__name__)

EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"

class GoogleCalendarService:
    """
    Pousse un planning généré dans l'agenda Google principal.
    Le jeton d'accès est fourni par le front (pas de flux OAuth ici).
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 30.0):
        # `transport` permet d'injecter un httpx.MockTransport en test
        self.transport = transport
        self.timeout = timeout

    def _event_body(self, event: ScheduleEvent, timezone: str) -> dict:
        # On recalcule la fenêtre : day/hour/duration font foi, pas startTime/endTime
        start, end = event_window(event.day, event.hour, event.duration, resolve_timezone(timezone))
        return {
            "summary": event.title,
            "description": event.description or "",
            "start": {"dateTime": start.isoformat(), "timeZone": timezone},
            "end": {"dateTime": end.isoformat(), "timeZone": timezone},
            "reminders": {
                "useDefault": False,
                "overrides": [{"method": "popup", "minutes": 30}],
            },
        }

    async def _create_event(self, client: httpx.AsyncClient, event: ScheduleEvent, timezone: str) -> dict:
        response = await client.post(EVENTS_URL, json=self._event_body(event, timezone))
        if response.status_code not in (200, 201):
            logger.error("❌ Erreur Google (%s) pour '%s' : %s", response.status_code, event.title, response.text)
            raise CalendarSyncError(f"Failed to create event '{event.title}' ({response.status_code})")
        return response.json()

    async def push_events(self, events: List[ScheduleEvent], access_token: str, timezone: str = "UTC") -> SyncResult:
        if not access_token:
            raise CalendarSyncError("No access token provided for Google Calendar sync")
        if not events:
            logger.warning("Aucun événement à synchroniser")
            return SyncResult(success=False, synced_count=0, failed_count=0, total=0)

        headers = {"Authorization": f"Bearer {access_token}"}
        async with httpx.AsyncClient(transport=self.transport, headers=headers, timeout=self.timeout) as client:
            results = await asyncio.gather(
                *(self._create_event(client, event, timezone) for event in events),
                return_exceptions=True,
            )

        failures = [r for r in results if isinstance(r, Exception)]
        for failure in failures:
            logger.warning("Événement non synchronisé : %s", failure)
        synced = len(results) - len(failures)

        if failures and not synced:
            raise CalendarSyncError("Failed to sync any events to Google Calendar")

        logger.info("✅ Google Calendar : %d/%d événements ajoutés", synced, len(results))
        return SyncResult(success=True, synced_count=synced, failed_count=len(failures), total=len(results))
