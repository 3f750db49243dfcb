import logging
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")

APP_NAME = "plantNet"


def _origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:5174")
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseModel):
    database_url: str = Field(default_factory=lambda: os.getenv("DATABASE_URL", "mongodb://localhost:27017"))
    database_name: str = Field(default_factory=lambda: os.getenv("DATABASE_NAME", "plantNet"))

    jwt_secret: str = Field(default_factory=lambda: os.getenv("JWT_SECRET", "dev-secret-change-me"))
    jwt_algo: str = Field(default_factory=lambda: os.getenv("JWT_ALGO", "HS256"))
    token_expire_days: int = Field(default_factory=lambda: int(os.getenv("TOKEN_EXPIRE_DAYS", "365")))

    env: str = Field(default_factory=lambda: os.getenv("ENV", "development"))
    cors_origins: List[str] = Field(default_factory=_origins)
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @property
    def is_production(self) -> bool:
        return self.env.strip().lower() == "production"

    @property
    def cookie_samesite(self) -> str:
        # cross-site frontends need "none", which browsers only accept with secure
        return "none" if self.is_production else "strict"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
