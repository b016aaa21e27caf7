# models/base.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from db import Base


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


__all__ = ["Base", "new_id", "utcnow"]
