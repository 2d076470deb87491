"""SQLAlchemy ORM models."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID as PyUUID
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from batch_engine.domain.enums import DeliveryMode, ProjectStatus
from batch_engine.domain.models import BatchVideo, Project


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _project_status(value: str | None) -> ProjectStatus:
    try:
        return ProjectStatus(value)
    except ValueError:
        return ProjectStatus.DRAFT


class ProjectModel(Base):
    """Project (one creator request, single video or batch) ORM model."""

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint("base_price > 0", name="ck_projects_base_price"),
        CheckConstraint("batch_quantity >= 1", name="ck_projects_batch_quantity"),
    )

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    creator_id: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True, index=True)
    assigned_editor_id: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    # Stored only for single-video projects; batch status is always derived
    status: Mapped[str] = mapped_column(String(50), default="draft", server_default="draft", index=True)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_batch: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    batch_quantity: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    batch_delivery_mode: Mapped[str] = mapped_column(
        String(20), default="sequential", server_default="sequential"
    )
    deadline_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_archived: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    videos: Mapped[list["BatchVideoModel"]] = relationship(
        "BatchVideoModel",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="BatchVideoModel.sequence_order",
    )

    def to_domain(self) -> Project:
        """Convert to a domain Project with its videos."""
        return Project(
            id=self.id,
            title=self.title,
            base_price=self.base_price,
            status=_project_status(self.status),
            is_batch=self.is_batch,
            batch_quantity=self.batch_quantity,
            batch_delivery_mode=DeliveryMode.parse(self.batch_delivery_mode),
            deadline_days=self.deadline_days,
            is_archived=self.is_archived,
            creator_id=self.creator_id,
            assigned_editor_id=self.assigned_editor_id,
            videos=[video.to_domain() for video in self.videos],
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class BatchVideoModel(Base):
    """One video slot of a batch project."""

    __tablename__ = "batch_videos"
    __table_args__ = (
        UniqueConstraint("project_id", "sequence_order", name="uq_batch_videos_project_sequence"),
        CheckConstraint("revision_count >= 0", name="ck_batch_videos_revision_count"),
    )

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    sequence_order: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    specific_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="pending", server_default="pending", index=True)
    revision_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    editor_can_choose_timing: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    selected_timestamp_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    selected_timestamp_end: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    project: Mapped["ProjectModel"] = relationship("ProjectModel", back_populates="videos")

    def to_domain(self) -> BatchVideo:
        """Convert to a domain BatchVideo."""
        return BatchVideo(
            id=self.id,
            project_id=self.project_id,
            sequence_order=self.sequence_order,
            title=self.title,
            status=self.status,
            specific_instructions=self.specific_instructions,
            revision_count=self.revision_count or 0,
            editor_can_choose_timing=self.editor_can_choose_timing,
            selected_timestamp_start=self.selected_timestamp_start,
            selected_timestamp_end=self.selected_timestamp_end,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
