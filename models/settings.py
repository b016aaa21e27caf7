from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from .base import Base, new_id, utcnow


class AppSettings(Base):
    __tablename__ = "settings"

    # singleton row, keyed by a fixed identifier (see SETTINGS_ROW_ID)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    allowed_file_types: Mapped[Optional[str]] = mapped_column(Text)
    project_types: Mapped[Optional[list]] = mapped_column(JSON)
    vendor_list: Mapped[Optional[list]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Vendor(Base):
    __tablename__ = "vendors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    contact_info: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
