# config.py
from typing import Optional
import os
from dotenv import load_dotenv

load_dotenv()


def _to_bool(v: Optional[str], default: bool) -> bool:
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y"}


def _to_list(v: Optional[str]) -> list[str]:
    return [r.strip() for r in (v or "").split(",") if r.strip()]


class Settings:
    PORT: int = int(os.getenv("PORT", "5000"))

    # "sql" (self-hosted tables + local bucket) or "supabase" (hosted)
    BACKEND_PROVIDER: str = os.getenv("BACKEND_PROVIDER", "sql").strip().lower()

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./var/pmapp.db")
    DB_ENABLE_LOG: bool = _to_bool(os.getenv("DB_ENABLE_LOG"), False)

    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_SERVICE_KEY: Optional[str] = os.getenv("SUPABASE_SERVICE_KEY") or None

    STORAGE_BUCKET: str = os.getenv("STORAGE_BUCKET", "project-files")
    STORAGE_DIR: str = os.getenv("STORAGE_DIR", "var/storage")
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:5000").rstrip("/")

    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_MIN: int = int(os.getenv("ACCESS_MIN", "60"))

    SESSION_COOKIE: str = os.getenv("SESSION_COOKIE", "access_token")
    SETTINGS_ROW_ID: str = os.getenv("SETTINGS_ROW_ID", "global_settings")
    ALLOWED_FILE_TYPES_DEFAULT: str = os.getenv(
        "ALLOWED_FILE_TYPES_DEFAULT", ".pdf,.doc,.docx,.xls,.xlsx,.csv,.jpg,.png"
    )

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: list[str] = _to_list(os.getenv("CORS_ORIGINS", "*"))


settings = Settings()
