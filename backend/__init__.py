# backend/__init__.py
from __future__ import annotations

from config import settings
from .base import AuthSession, AuthUser, Backend, BackendClient, Row
from .errors import ROW_NOT_FOUND, BackendError


def build_backend(provider: str | None = None) -> Backend:
    """Provider chosen by BACKEND_PROVIDER: "sql" (default) or "supabase"."""
    provider = (provider or settings.BACKEND_PROVIDER).lower()
    if provider == "supabase":
        from .hosted import SupabaseBackend

        return SupabaseBackend(settings.SUPABASE_URL, settings.SUPABASE_KEY, settings.SUPABASE_SERVICE_KEY)
    if provider == "sql":
        from db import SessionLocal, engine
        from .local_storage import LocalBucketStorage
        from .sql import SqlBackend

        storage = LocalBucketStorage(settings.STORAGE_DIR, settings.PUBLIC_BASE_URL)
        return SqlBackend(SessionLocal, storage, engine=engine)
    raise ValueError(f"Unknown BACKEND_PROVIDER: {provider}")


__all__ = [
    "AuthSession",
    "AuthUser",
    "Backend",
    "BackendClient",
    "BackendError",
    "ROW_NOT_FOUND",
    "Row",
    "build_backend",
]
