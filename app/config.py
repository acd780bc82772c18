"""
SUT Badminton Registration – Application configuration.
Reads environment variables from a .env file via pydantic-settings.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "change-me-to-a-random-secret"


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── App ──
    APP_NAME: str = "SUT Badminton Registration"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ── Database ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./badminton.db"

    # ── JWT (admin) ──
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480
    ADMIN_PASSWORD: str = ""

    # ── Supabase Storage ──
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_KEY: str = ""
    STORAGE_BUCKET: str = "photos"

    # ── Local storage fallback (used when SUPABASE_URL is empty) ──
    BACKEND_URL: str = "http://localhost:8000"
    MEDIA_DIR: str = "./media"

    # ── CORS ──
    CORS_ORIGINS: List[str] = ["https://badmintonf2.netlify.app"]
    CORS_ALLOW_LOCALHOST: bool = True

    # ── Tournament ──
    TEAM_CODE_PREFIX: str = "SUT25"
    STUDENT_FEE: int = 150
    NON_STUDENT_FEE: int = 300

    # ── Uploads ──
    MAX_UPLOAD_MB: int = 5
    ALLOWED_UPLOAD_EXTENSIONS: List[str] = ["jpg", "jpeg", "png", "webp", "gif", "heic", "pdf"]

    def admin_unavailable_reason(self) -> str:
        """Why admin access is switched off, or an empty string when it is on."""
        if not self.ADMIN_PASSWORD:
            return "Admin access is disabled"
        if self.SECRET_KEY == DEFAULT_SECRET_KEY and not self.DEBUG:
            return "Admin access is disabled until SECRET_KEY is configured"
        return ""


settings = Settings()
