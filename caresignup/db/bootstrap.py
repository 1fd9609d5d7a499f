# caresignup/db/bootstrap.py
import logging
import os

from alembic import command
from alembic.config import Config

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

logger = logging.getLogger(__name__)


def alembic_config() -> Config:
    # Aponta explicitamente para alembic.ini e migrations/
    cfg = Config(os.path.join(BASE_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(BASE_DIR, "migrations"))
    # logging já foi configurado por setup_logging()
    cfg.attributes["configure_logger"] = False
    return cfg


def run_migrations() -> None:
    logger.info("Applying database migrations")
    command.upgrade(alembic_config(), "head")
