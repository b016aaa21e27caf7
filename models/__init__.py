# models/__init__.py
from .base import Base
from .users import AuthAccount, AuthToken, User
from .projects import Project, Activity
from .files import ProjectFile
from .comments import Comment
from .notifications import Notification
from .settings import AppSettings, Vendor

# public table name -> mapped class, as exposed through the backend client
TABLES = {
    "users": User,
    "projects": Project,
    "activities": Activity,
    "files": ProjectFile,
    "comments": Comment,
    "notifications": Notification,
    "settings": AppSettings,
    "vendors": Vendor,
}

__all__ = [
    "Base",
    "AuthAccount",
    "AuthToken",
    "User",
    "Project",
    "Activity",
    "ProjectFile",
    "Comment",
    "Notification",
    "AppSettings",
    "Vendor",
    "TABLES",
]
