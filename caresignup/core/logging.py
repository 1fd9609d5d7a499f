# caresignup/core/logging.py
import logging

from caresignup.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging() -> None:
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # o access log do uvicorn já cobre as requisições
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
