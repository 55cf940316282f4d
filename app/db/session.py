from typing import Optional

from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from app.core.config import settings

def create_db_engine(database_url: Optional[str] = None, echo: bool = False):
    """
    Crée le moteur de connexion.
    Appelée une seule fois au démarrage (lifespan), le moteur est ensuite
    partagé par référence avec le ScheduleStore.
    """
    url = database_url or settings.DATABASE_URL

    if url.startswith("sqlite"):
        # SQLite en mémoire : une seule connexion partagée entre les threads de FastAPI
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)

    # echo=True permet de voir les requêtes SQL dans le terminal (utile pour le debug)
    return create_engine(url, echo=echo, pool_pre_ping=True)
