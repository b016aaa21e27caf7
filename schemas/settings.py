# schemas/settings.py
from __future__ import annotations
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, field_serializer, field_validator

from .common import format_datetime


def _clean_list(v: Any) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        v = v.split(",")
    return [str(x).strip() for x in v if str(x).strip()]


def _clean_types(v: Any) -> str:
    items = _clean_list(v)
    return ",".join(x.lower() if x.startswith(".") else f".{x.lower()}" for x in items)


class SettingsIn(BaseModel):
    allowed_file_types: str = ""
    project_types: List[str] = []
    vendor_list: List[str] = []

    @field_validator("allowed_file_types", mode="before")
    @classmethod
    def _types(cls, v: Any) -> str:
        return _clean_types(v)

    @field_validator("project_types", "vendor_list", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> List[str]:
        return _clean_list(v)


class SettingsOut(BaseModel):
    id: str
    allowed_file_types: str
    project_types: List[str] = []
    vendor_list: List[str] = []
    updated_at: Optional[datetime] = None

    @field_serializer("updated_at", when_used="json")
    def _format_datetime(self, dt: Optional[datetime], _info):
        return format_datetime(dt)

    model_config = {"from_attributes": True}
