# schemas/projects.py
from __future__ import annotations
from datetime import date, datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from utils.csv_import import to_number
from .common import format_datetime
from .comments import CommentOut
from .files import FileOut

ProjectStatus = Literal["ongoing", "completed", "delayed"]


class ActivityDraft(BaseModel):
    """One editable row of the activity grid. Blank names are allowed while editing."""
    name: str = ""
    quantity: float = 0
    unit: Optional[str] = ""
    rate: float = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("quantity", "rate", mode="before")
    @classmethod
    def _coerce_number(cls, v: Any) -> float:
        return to_number(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_date(cls, v: Any) -> Any:
        return None if v == "" else v


class ActivityIn(ActivityDraft):
    name: str = Field(..., min_length=1, max_length=255)
    status: str = "not started"
    assigned_to: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Activity name is required")
        return v

    def to_row(self, project_id: str) -> dict:
        return {
            "project_id": project_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit or "",
            "rate": self.rate,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "status": self.status,
            "assigned_to": self.assigned_to,
        }


class ProjectIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    vendor: Optional[str] = Field(None, max_length=255)
    status: ProjectStatus = "ongoing"
    completion_percentage: float = Field(0, ge=0, le=100)
    activities: List[ActivityIn] = []

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Project name is required")
        return v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_date(cls, v: Any) -> Any:
        return None if v == "" else v

    @model_validator(mode="after")
    def _check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date must be on or after the start date")
        return self

    def project_fields(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "vendor": self.vendor,
            "status": self.status,
            "completion_percentage": self.completion_percentage,
        }


class ProjectCreate(ProjectIn):
    # client-chosen id; resubmitting the same value resumes instead of duplicating
    request_id: Optional[str] = Field(None, min_length=1, max_length=36)


class ProjectUpdate(ProjectIn):
    pass


class BudgetIn(BaseModel):
    activities: List[ActivityDraft] = []


class BudgetOut(BaseModel):
    total_budget: float
    rows: List[float]


class ActivityOut(BaseModel):
    id: str
    project_id: str
    name: str
    quantity: float
    unit: Optional[str] = None
    rate: float
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str
    assigned_to: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_serializer("created_at", when_used="json")
    def _format_datetime(self, dt: Optional[datetime], _info):
        return format_datetime(dt)

    model_config = {"from_attributes": True}


class ProjectOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    vendor: Optional[str] = None
    status: str
    completion_percentage: float = 0
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_serializer("created_at", when_used="json")
    def _format_datetime(self, dt: Optional[datetime], _info):
        return format_datetime(dt)

    model_config = {"from_attributes": True}


class ProjectDetailOut(ProjectOut):
    activities: List[ActivityOut] = []
    files: List[FileOut] = []
    comments: List[CommentOut] = []
    total_budget: float = 0
