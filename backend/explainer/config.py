from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_VERSION: str = "1.0.0"

    DATABASE_URL: str = "sqlite+aiosqlite:///./problems.db"

    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_TIMEOUT_MS: int = 60_000

    GOOGLE_CLIENT_ID: Optional[str] = None

    SESSION_SECRET: str = "fallback-secret-key-change-in-production"
    SESSION_COOKIE_NAME: str = "sessionId"
    SESSION_MAX_AGE_SECONDS: int = 24 * 60 * 60
    SESSION_HTTPS_ONLY: bool = False

    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    ALLOWED_IMAGE_TYPES: List[str] = ["image/jpeg", "image/png", "image/gif", "image/webp"]
    QUESTION_MAX_LENGTH: int = 1000

    CACHE_DEFAULT_TTL_SECONDS: float = 5 * 60
    CACHE_LIST_TTL_SECONDS: float = 3 * 60
    CACHE_DETAIL_TTL_SECONDS: float = 10 * 60
    CACHE_SWEEP_EVERY: int = 50

    CLASSIFIER_CONTEXT_CHARS: int = 200


settings = Settings()
