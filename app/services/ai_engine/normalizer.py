"""
Normalisation des événements renvoyés par l'IA.

Transforme une liste d'objets "à peu près" conformes en ScheduleEvent stricts :
valeurs par défaut, bornage des champs numériques, type ramené à l'énumération,
identifiant unique dans le lot et fenêtre start/end recalculée.
"""
import logging
import math
import secrets
import time
from datetime import datetime, timedelta, tzinfo
from typing import Any, Callable, Iterable, List, Mapping, Optional, Set, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.schemas.schedule import EventType, ScheduleEvent
from app.services.ai_engine.errors import EmptyScheduleAfterValidation, MalformedItem, NoScheduleFound

logger = logging.getLogger(__name__)

# Valeurs par défaut canoniques, appliquées partout
DEFAULT_TITLE = "Untitled Event"
DEFAULT_DAY = 1
DEFAULT_HOUR = 9.0
DEFAULT_DURATION = 1.0
DEFAULT_TYPE = EventType.PERSONAL

MIN_DURATION = 0.25
MAX_DURATION = 24.0

EVENT_FIELDS = ("title", "day", "hour", "duration", "type")
EVENT_TYPES = {t.value for t in EventType}

TYPE_ALIASES = {
    "meal": EventType.MEALS,
    "exercise": EventType.WORKOUT,
    "gym": EventType.WORKOUT,
    "study": EventType.LEARNING,
    "rest": EventType.RELAXATION,
    "deepwork": EventType.DEEP_WORK,
}

IdFactory = Callable[[], str]


def new_event_id() -> str:
    """Timestamp (ms) + suffixe aléatoire."""
    return f"evt-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


def resolve_timezone(name: Optional[str]) -> tzinfo:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Fuseau inconnu '%s', fallback sur UTC", name)
        return ZoneInfo("UTC")


def extract_event_list(parsed: Any) -> list:
    """
    Localise le tableau d'événements dans la valeur parsée :
    tableau direct, clé 'schedule', clé 'events', puis premier tableau trouvé.
    """
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, Mapping):
        for key in ("schedule", "events"):
            if isinstance(parsed.get(key), list):
                return parsed[key]
        for key, value in parsed.items():
            if isinstance(value, list):
                logger.info("Tableau d'événements trouvé sous la clé inattendue '%s'", key)
                return value
    raise NoScheduleFound("aucun tableau d'événements dans la réponse")


def _as_number(value: Any) -> Optional[float]:
    # bool est un int en Python : on le refuse explicitement
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def normalize_type(value: Any) -> str:
    if not isinstance(value, str):
        return DEFAULT_TYPE.value
    key = value.strip().lower().replace("_", "-").replace(" ", "-")
    # "meetings" -> "meeting", "Deep Work" -> "deep-work"
    for candidate in (key, key.rstrip("s")):
        if candidate in EVENT_TYPES:
            return candidate
        alias = TYPE_ALIASES.get(candidate.replace("-", ""))
        if alias:
            return alias.value
    return DEFAULT_TYPE.value


def event_window(day: int, hour: float, duration: float, tz: tzinfo, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Projette (day, hour, duration) sur la semaine courante (dimanche -> samedi)
    de `now`. Purement dérivé : day/hour/duration restent la référence.
    """
    now = now.astimezone(tz) if now else datetime.now(tz)
    days_since_sunday = (now.weekday() + 1) % 7  # weekday(): lundi = 0
    week_start = now.replace(hour=0, minute=0, second=0, microsecond=0) - timedelta(days=days_since_sunday)
    start = week_start + timedelta(days=day, minutes=round(hour * 60))
    end = start + timedelta(minutes=round(duration * 60))
    return start, end


def unique_id(seen_ids: Set[str], new_id: IdFactory = new_event_id) -> str:
    candidate = new_id()
    while candidate in seen_ids:
        candidate = f"{candidate}-{secrets.token_hex(2)}"
    seen_ids.add(candidate)
    return candidate


def normalize_event(
    raw: Any,
    *,
    seen_ids: Set[str],
    new_id: IdFactory = new_event_id,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> ScheduleEvent:
    """Convertit un objet brut en ScheduleEvent. Lève MalformedItem s'il est inutilisable."""
    if not isinstance(raw, Mapping):
        raise MalformedItem(f"élément de type {type(raw).__name__}, objet attendu")
    if not any(raw.get(field) not in (None, "") for field in EVENT_FIELDS):
        raise MalformedItem("aucun champ d'événement reconnu")

    title = raw.get("title")
    title = str(title).strip() if title is not None else ""

    day = _as_number(raw.get("day"))
    day = DEFAULT_DAY if day is None else int(_clamp(round(day), 0, 6))

    hour = _as_number(raw.get("hour"))
    hour = DEFAULT_HOUR if hour is None else _clamp(hour, 0, 23)

    duration = _as_number(raw.get("duration"))
    duration = DEFAULT_DURATION if duration is None else _clamp(duration, MIN_DURATION, MAX_DURATION)

    description = raw.get("description")

    start, end = event_window(day, hour, duration, tz or ZoneInfo("UTC"), now)

    return ScheduleEvent(
        id=unique_id(seen_ids, new_id),
        title=title or DEFAULT_TITLE,
        day=day,
        hour=hour,
        duration=duration,
        type=normalize_type(raw.get("type")),
        description=description if isinstance(description, str) else "",
        start_time=start,
        end_time=end,
    )


def normalize_events(
    items: Iterable[Any],
    *,
    new_id: IdFactory = new_event_id,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> List[ScheduleEvent]:
    """
    Normalise un lot en conservant l'ordre d'origine.
    Les éléments inutilisables sont ignorés ; un lot vide lève EmptyScheduleAfterValidation.
    """
    seen_ids: Set[str] = set()
    now = now or datetime.now(tz or ZoneInfo("UTC"))
    events = []
    skipped = 0
    for index, raw in enumerate(items):
        try:
            events.append(normalize_event(raw, seen_ids=seen_ids, new_id=new_id, tz=tz, now=now))
        except MalformedItem as e:
            skipped += 1
            logger.info("Événement #%d ignoré : %s", index, e)

    if skipped:
        logger.warning("%d événement(s) inutilisable(s) ignoré(s) sur %d", skipped, skipped + len(events))
    if not events:
        raise EmptyScheduleAfterValidation("aucun événement exploitable après normalisation")
    return events
