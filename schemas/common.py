# schemas/common.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel

UTC = timezone.utc


def format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """UTC, 'YYYY-MM-DDTHH:MM:SS'. Naive values are taken as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S")


class Toast(BaseModel):
    variant: Literal["default", "destructive"] = "default"
    title: str
    description: Optional[str] = None


def toast(title: str, description: Optional[str] = None, destructive: bool = False) -> dict:
    return Toast(
        variant="destructive" if destructive else "default",
        title=title,
        description=description,
    ).model_dump()
