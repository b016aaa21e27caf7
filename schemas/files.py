# schemas/files.py
from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_serializer

from .common import format_datetime


class FileOut(BaseModel):
    id: str
    project_id: str
    activity_id: Optional[str] = None
    user_id: Optional[str] = None
    name: str
    url: str
    storage_path: Optional[str] = None
    uploaded_at: Optional[datetime] = None

    @field_serializer("uploaded_at", when_used="json")
    def _format_datetime(self, dt: Optional[datetime], _info):
        return format_datetime(dt)

    model_config = {"from_attributes": True}
