"""SQLAlchemy ORM table models."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class ReadinessConfigModel(Base):
    """Job readiness configuration table, one row per (school, campus)."""

    __tablename__ = "readiness_configs"
    __table_args__ = (UniqueConstraint("school", "scope_key", name="uq_config_school_scope"),)

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    school: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    campus_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    # campus_id or ALL_CAMPUSES; NULLs never collide in a unique index
    scope_key: Mapped[str] = mapped_column(String(36), nullable=False)
    criteria_json: Mapped[list] = mapped_column(JSON, nullable=False)  # type: ignore[type-arg]
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)
    updated_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


class StudentReadinessModel(Base):
    """Per-student readiness progress table."""

    __tablename__ = "student_readiness"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    student_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False, index=True)
    school: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    campus_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    criteria_status_json: Mapped[list] = mapped_column(  # type: ignore[type-arg]
        JSON, nullable=False
    )
    readiness_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    readiness_status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="Not Job Ready"
    )
    is_job_ready: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    approved_as_job_ready: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approval_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
