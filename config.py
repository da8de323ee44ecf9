# Settings loaded from the environment (and .env if present).
#
#   from config import get_settings
#   settings = get_settings()
#
# Nothing else in the project reads os.environ; components get their values
# passed in at construction time.
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    # ---------- Auth ----------
    # No default on purpose: without it every login fails.
    ADMIN_PASSWORD: Optional[str] = Field(default=None, description="Shared admin secret")
    TOKEN_SECRET: Optional[str] = Field(
        default=None, description="Key used to sign capability tokens (random per process if unset)"
    )
    TOKEN_TTL_MINUTES: int = Field(default=60, ge=1, le=24 * 60)

    # ---------- Storage ----------
    DB_URL: str = Field(default="sqlite:///db.sqlite3")
    UPLOAD_DIR: Path = Field(default=BASE_DIR / "uploads")
    UPLOAD_URL_PREFIX: str = Field(default="/uploads")
    MAX_UPLOAD_MB: int = Field(default=5, ge=1, le=100)
    ALLOWED_IMAGE_TYPES: str = Field(default="image/jpeg,image/png,image/webp,image/gif")
    ASSET_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # ---------- Server ----------
    CORS_ORIGINS: str = Field(default="*")
    LOG_LEVEL: str = Field(default="INFO")
    PORT: int = Field(default=8080, ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def allowed_image_types(self) -> set[str]:
        return {t.strip().lower() for t in self.ALLOWED_IMAGE_TYPES.split(",") if t.strip()}

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    return Settings()
