# schemas/comments.py
from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from .common import format_datetime


class CommentIn(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    parent_comment_id: Optional[str] = None
    activity_id: Optional[str] = None

    @field_validator("content")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v


class CommentOut(BaseModel):
    id: str
    project_id: str
    activity_id: Optional[str] = None
    user_id: Optional[str] = None
    author_name: Optional[str] = None
    content: str
    parent_comment_id: Optional[str] = None
    created_at: Optional[datetime] = None
    replies: List["CommentOut"] = []

    @field_serializer("created_at", when_used="json")
    def _format_datetime(self, dt: Optional[datetime], _info):
        return format_datetime(dt)

    model_config = {"from_attributes": True}
