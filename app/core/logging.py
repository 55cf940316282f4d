import logging
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def setup_logging(level: Optional[str] = None) -> None:
    """Configure le logging racine une seule fois, au démarrage de l'API."""
    level_name = (level or settings.LOG_LEVEL or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    # httpx est très bavard en INFO (une ligne par requête)
    logging.getLogger("httpx").setLevel(logging.WARNING)
