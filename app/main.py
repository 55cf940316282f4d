import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging import setup_logging
from app.db.session import create_db_engine
from app.services.ai_engine.errors import InvalidPreferences
from app.services.ai_engine.generator import create_schedule_generator
from app.services.calendar_service import GoogleCalendarService
from app.services.schedule_store import ScheduleStore

from app.api.v1.endpoints import calendar, schedule

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Fonction exécutée au démarrage (avant le yield)
    et à l'arrêt (après le yield) de l'application.
    Les services sont construits ici une seule fois puis partagés par référence.
    """
    setup_logging()
    logger.info("🚀 Démarrage de %s...", settings.PROJECT_NAME)

    engine = create_db_engine()
    app.state.store = ScheduleStore(engine)
    logger.info("🛠️ Vérification des tables de base de données...")
    app.state.store.create_tables()

    app.state.generator = create_schedule_generator()
    app.state.calendar = GoogleCalendarService()
    logger.info("✅ Services prêts.")
    yield
    engine.dispose()
    logger.info("🛑 Arrêt de %s.", settings.PROJECT_NAME)

app = FastAPI(
    title=settings.PROJECT_NAME,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configuration CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(InvalidPreferences)
async def invalid_preferences_handler(request: Request, exc: InvalidPreferences):
    # Seule erreur de génération visible par l'appelant : pas de planning de secours
    logger.info("Requête rejetée : %s", exc)
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": str(exc),
            "message": "Failed to generate schedule. Please check your preferences and try again.",
        },
    )

# Inclusion des routes
app.include_router(schedule.router, prefix="/api/v1", tags=["Schedule"])
app.include_router(calendar.router, prefix="/api/v1/calendar", tags=["Calendar"])

@app.get("/")
def read_root():
    return {"status": "online", "message": f"{settings.PROJECT_NAME} is running 🚀"}

@app.get("/health")
def health_check():
    return {"status": "ok"}
