# schemas/users.py
from __future__ import annotations
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_serializer, field_validator, model_validator

from .common import format_datetime

Role = Literal["pending", "admin", "manager", "vendor", "employee"]
ROLES = ("pending", "admin", "manager", "vendor", "employee")


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class SignupIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    confirm_password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class ProfileUpdate(BaseModel):
    # email and role are not editable here
    name: str = Field(..., min_length=1, max_length=255)

    model_config = {"extra": "ignore"}


class RoleUpdate(BaseModel):
    role: Role


class ApprovalUpdate(BaseModel):
    approved: bool


class UserOut(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    role: str
    approved: bool = False
    created_at: Optional[datetime] = None

    @field_serializer("created_at", when_used="json")
    def _format_datetime(self, dt: Optional[datetime], _info):
        return format_datetime(dt)

    model_config = {"from_attributes": True}
