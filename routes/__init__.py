# routes/__init__.py
from __future__ import annotations
from fastapi import APIRouter

from .auth_router import router as auth_router
from .dashboard import router as dashboard_router
from .projects import router as projects_router
from .files import router as files_router
from .comments import router as comments_router
from .notifications import router as notifications_router
from .reports import router as reports_router
from .profile import router as profile_router
from .users import router as users_router
from .settings import router as settings_router
from .storage_router import router as storage_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(dashboard_router)
api_router.include_router(projects_router)
api_router.include_router(files_router)
api_router.include_router(comments_router)
api_router.include_router(notifications_router)
api_router.include_router(reports_router)
api_router.include_router(profile_router)
api_router.include_router(users_router)
api_router.include_router(settings_router)
api_router.include_router(storage_router)
