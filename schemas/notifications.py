# schemas/notifications.py
from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_serializer

from .common import format_datetime


class NotificationOut(BaseModel):
    id: str
    user_id: str
    message: str
    link: Optional[str] = None
    read: bool = False
    created_at: Optional[datetime] = None

    @field_serializer("created_at", when_used="json")
    def _format_datetime(self, dt: Optional[datetime], _info):
        return format_datetime(dt)

    model_config = {"from_attributes": True}
