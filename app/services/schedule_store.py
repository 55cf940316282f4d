import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, select

from app.models.schedule import SavedSchedule
from app.schemas.schedule import Preferences, ScheduleEvent

logger = logging.getLogger(__name__)


class ScheduleStore:
    """
    Persistance des plannings générés.
    Construit une seule fois au démarrage et partagé par référence.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_tables(self) -> None:
        SQLModel.metadata.create_all(self.engine)

    def save_generated(
        self,
        user_id: str,
        events: List[ScheduleEvent],
        preferences: Preferences,
        title: Optional[str] = None,
        is_fallback: bool = False,
    ) -> SavedSchedule:
        """Enregistre un lot et en fait le planning par défaut de l'utilisateur."""
        with Session(self.engine) as session:
            previous = session.exec(
                select(SavedSchedule).where(
                    SavedSchedule.user_id == user_id,
                    SavedSchedule.is_default == True,  # noqa: E712
                )
            ).all()
            for schedule in previous:
                schedule.is_default = False
                session.add(schedule)

            schedule = SavedSchedule(
                user_id=user_id,
                title=title or "Generated Schedule",
                events=[e.model_dump(mode="json", by_alias=True) for e in events],
                preferences=preferences.model_dump(mode="json", by_alias=True),
                is_fallback=is_fallback,
                is_default=True,
            )
            session.add(schedule)
            session.commit()
            session.refresh(schedule)

        logger.info("Planning %s enregistré pour %s (%d événements)", schedule.id, user_id, len(events))
        return schedule

    def get(self, schedule_id: UUID, user_id: str) -> Optional[SavedSchedule]:
        with Session(self.engine) as session:
            return session.exec(
                select(SavedSchedule).where(
                    SavedSchedule.id == schedule_id,
                    SavedSchedule.user_id == user_id,
                )
            ).first()

    def list_for_user(self, user_id: str) -> List[SavedSchedule]:
        # Le planning par défaut d'abord, puis les plus récents
        with Session(self.engine) as session:
            return list(session.exec(
                select(SavedSchedule)
                .where(SavedSchedule.user_id == user_id)
                .order_by(SavedSchedule.is_default.desc(), SavedSchedule.updated_at.desc())
            ).all())

    def get_default(self, user_id: str) -> Optional[SavedSchedule]:
        with Session(self.engine) as session:
            return session.exec(
                select(SavedSchedule).where(
                    SavedSchedule.user_id == user_id,
                    SavedSchedule.is_default == True,  # noqa: E712
                )
            ).first()

    def update(
        self,
        schedule_id: UUID,
        user_id: str,
        *,
        title: Optional[str] = None,
        events: Optional[List[ScheduleEvent]] = None,
        is_default: Optional[bool] = None,
    ) -> Optional[SavedSchedule]:
        """Met à jour les champs fournis. is_default=True retire le défaut aux autres plannings."""
        with Session(self.engine) as session:
            schedule = session.exec(
                select(SavedSchedule).where(
                    SavedSchedule.id == schedule_id,
                    SavedSchedule.user_id == user_id,
                )
            ).first()
            if not schedule:
                return None

            if title:
                schedule.title = title
            if events is not None:
                schedule.events = [e.model_dump(mode="json", by_alias=True) for e in events]
            if is_default:
                others = session.exec(
                    select(SavedSchedule).where(
                        SavedSchedule.user_id == user_id,
                        SavedSchedule.is_default == True,  # noqa: E712
                        SavedSchedule.id != schedule_id,
                    )
                ).all()
                for other in others:
                    other.is_default = False
                    session.add(other)
            if is_default is not None:
                schedule.is_default = is_default

            schedule.updated_at = datetime.now(timezone.utc)
            session.add(schedule)
            session.commit()
            session.refresh(schedule)

        logger.info("Planning %s mis à jour", schedule_id)
        return schedule

    def delete(self, schedule_id: UUID, user_id: str) -> bool:
        with Session(self.engine) as session:
            schedule = session.exec(
                select(SavedSchedule).where(
                    SavedSchedule.id == schedule_id,
                    SavedSchedule.user_id == user_id,
                )
            ).first()
            if not schedule:
                return False
            session.delete(schedule)
            session.commit()
        logger.info("Planning %s supprimé", schedule_id)
        return True
