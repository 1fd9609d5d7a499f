# caresignup/core/config.py
import os
from typing import ClassVar

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


def _default_database_url() -> str:
    data_dir = os.path.abspath(os.getenv("DATA_DIR", "./data"))
    os.makedirs(data_dir, exist_ok=True)
    return os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(data_dir, 'signups.db')}")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    # Constante (não vira campo Pydantic)
    DATA_DIR: ClassVar[str] = os.path.abspath(os.getenv("DATA_DIR", "./data"))

    DATABASE_URL: str = Field(default_factory=_default_database_url)
    SECRET_KEY: str = Field(default_factory=lambda: os.getenv("SECRET_KEY", "CHANGE_ME_SUPER_SECRET"))
    ALGORITHM: str = Field(default_factory=lambda: os.getenv("JWT_ALGORITHM", "HS256"))
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30")))
    QR_ROTATION_SECONDS: int = Field(default_factory=lambda: int(os.getenv("QR_ROTATION_SECONDS", "45")))
    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(default_factory=lambda: _env_flag("RUN_MIGRATIONS_ON_STARTUP", "true"))


settings = Settings()
