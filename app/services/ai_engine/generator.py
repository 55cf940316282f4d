import asyncio
import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional, Union

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import ValidationError

from app.core.config import settings
from app.schemas.schedule import GenerationResult, Preferences, ScheduleEvent
from app.services.ai_engine.errors import GeneratorUnavailable, InvalidPreferences, ScheduleError
from app.services.ai_engine.fallback import generate_fallback
from app.services.ai_engine.normalizer import (
    IdFactory,
    extract_event_list,
    new_event_id,
    normalize_events,
    resolve_timezone,
)
from app.services.ai_engine.prompts import SCHEDULE_PROMPT, prompt_variables
from app.services.ai_engine.response_parser import parse_ai_response

logger = logging.getLogger(__name__)

AI_MESSAGE = "Your personalized schedule has been created."
FALLBACK_MESSAGE = (
    "The AI assistant is unavailable right now, so we built a standard weekly "
    "schedule from your preferences. You can regenerate it later."
)


def build_llm() -> Optional[BaseChatModel]:
    """Gemini via LangChain, ou None si aucune clé n'est configurée."""
    if not settings.GOOGLE_API_KEY:
        logger.warning("GOOGLE_API_KEY absente : les plannings seront générés par le mode secours")
        return None

    return ChatGoogleGenerativeAI(
        model=settings.AI_MODEL,
        google_api_key=settings.GOOGLE_API_KEY,
        temperature=settings.AI_TEMPERATURE,
        max_output_tokens=settings.AI_MAX_OUTPUT_TOKENS,
        timeout=settings.AI_TIMEOUT_SECONDS,
        max_retries=0,  # un seul appel par requête
        transport="rest",
    )


class ScheduleGenerator:
    """
    Orchestre Préférences -> Prompt -> LLM -> Parsing -> Normalisation.
    Toute erreur après la validation des préférences bascule sur le planning
    de secours : l'appelant reçoit toujours un planning exploitable.
    """

    def __init__(
        self,
        llm: Optional[Any] = None,
        timeout: Optional[float] = None,
        timezone: Optional[str] = None,
        new_id: IdFactory = new_event_id,
    ):
        # `llm` : n'importe quel Runnable LangChain (modèle de chat, fake en test...)
        self.llm = llm
        self.timeout = timeout if timeout is not None else settings.AI_TIMEOUT_SECONDS
        self.tz = resolve_timezone(timezone or settings.SCHEDULE_TIMEZONE)
        self.new_id = new_id

    @staticmethod
    def validate_preferences(preferences: Union[Preferences, Mapping, None]) -> Preferences:
        if preferences is None:
            raise InvalidPreferences("Missing preferences in request body")
        if isinstance(preferences, Preferences):
            return preferences
        if not isinstance(preferences, Mapping):
            raise InvalidPreferences("Preferences must be an object")
        try:
            return Preferences.model_validate(preferences)
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise InvalidPreferences(f"Invalid preferences: {errors}") from e

    async def _call_generator(self, preferences: Preferences) -> str:
        if self.llm is None:
            raise GeneratorUnavailable("aucun modèle configuré")

        chain = SCHEDULE_PROMPT | self.llm | StrOutputParser()
        try:
            content = await asyncio.wait_for(
                chain.ainvoke(prompt_variables(preferences)), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise GeneratorUnavailable(f"pas de réponse après {self.timeout}s") from e
        except Exception as e:
            # Erreurs réseau / HTTP / quota remontées par le client LangChain
            raise GeneratorUnavailable(f"{type(e).__name__}: {e}") from e

        if not content or not content.strip():
            raise GeneratorUnavailable("réponse vide du modèle")
        return content

    def _events_from_content(self, content: str, now: datetime) -> List[ScheduleEvent]:
        parsed = parse_ai_response(content)
        items = extract_event_list(parsed)
        return normalize_events(items, new_id=self.new_id, tz=self.tz, now=now)

    def fallback(self, preferences: Preferences, reason: str, now: Optional[datetime] = None) -> GenerationResult:
        events = generate_fallback(preferences, new_id=self.new_id, tz=self.tz, now=now)
        return GenerationResult(
            source="fallback",
            fallback=True,
            data=events,
            message=FALLBACK_MESSAGE,
            reason=reason,
        )

    async def generate(
        self,
        preferences: Union[Preferences, Mapping, None],
        now: Optional[datetime] = None,
    ) -> GenerationResult:
        """
        Lève InvalidPreferences si les préférences sont absentes ou invalides.
        Dans tous les autres cas renvoie un GenerationResult non vide.
        """
        prefs = self.validate_preferences(preferences)
        now = now or datetime.now(self.tz)

        try:
            logger.info("🧠 IA : génération du planning en cours...")
            content = await self._call_generator(prefs)
            events = self._events_from_content(content, now)
        except ScheduleError as e:
            logger.warning("Planning de secours servi (%s) : %s", e.reason, e)
            return self.fallback(prefs, e.reason, now)

        logger.info("✅ Planning IA généré : %d événements", len(events))
        return GenerationResult(source="ai", data=events, message=AI_MESSAGE)


def create_schedule_generator() -> ScheduleGenerator:
    return ScheduleGenerator(llm=build_llm())
