"""Domain models - pure Python classes independent of database."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from batch_engine.domain.enums import DeliveryMode, ProjectStatus, VideoStatus


@dataclass
class BatchVideo:
    """One video slot of a batch project.

    `status` may hold a raw string when the row was written with a legacy or
    unknown value; readers resolve it with `VideoStatus.parse`.
    """

    sequence_order: int
    title: str
    status: VideoStatus | str = VideoStatus.PENDING
    id: UUID = field(default_factory=uuid4)
    project_id: UUID | None = None
    specific_instructions: str | None = None
    revision_count: int = 0
    editor_can_choose_timing: bool = False
    selected_timestamp_start: int | None = None
    selected_timestamp_end: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def resolved_status(self) -> VideoStatus | None:
        """Status as a closed enum, or None when unrecognised."""
        return VideoStatus.parse(self.status)


@dataclass
class Project:
    """A creator's request, for one video or for a batch of them."""

    id: UUID
    title: str
    base_price: Decimal
    status: ProjectStatus = ProjectStatus.DRAFT
    is_batch: bool = False
    batch_quantity: int = 1
    batch_delivery_mode: DeliveryMode = DeliveryMode.SEQUENTIAL
    deadline_days: int | None = None
    is_archived: bool = False
    creator_id: UUID | None = None
    assigned_editor_id: UUID | None = None
    videos: list[BatchVideo] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class BatchProgress:
    """Per-status tally of a project's videos."""

    total: int = 0
    completed: int = 0
    in_review: int = 0
    in_progress: int = 0
    revision_requested: int = 0
    pending: int = 0
    cancelled: int = 0
    percentage: int = 0
    has_delayed: bool = False
    delayed_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "completed": self.completed,
            "in_review": self.in_review,
            "in_progress": self.in_progress,
            "revision_requested": self.revision_requested,
            "pending": self.pending,
            "cancelled": self.cancelled,
            "percentage": self.percentage,
            "has_delayed": self.has_delayed,
            "delayed_count": self.delayed_count,
        }


@dataclass(frozen=True)
class BatchPricing:
    """Price breakdown for a project, always derived from its current inputs."""

    base_price: Decimal
    quantity: int
    delivery_mode: DeliveryMode
    discount_percent: Decimal
    subtotal_before_discount: Decimal
    subtotal: Decimal
    urgency_fee: Decimal
    total: Decimal
    platform_fee: Decimal
    editor_earnings_total: Decimal
    editor_earnings_per_video: Decimal
    price_per_video: Decimal
    savings: Decimal

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "base_price": self.base_price,
            "quantity": self.quantity,
            "delivery_mode": self.delivery_mode.value,
            "discount_percent": self.discount_percent,
            "subtotal_before_discount": self.subtotal_before_discount,
            "subtotal": self.subtotal,
            "urgency_fee": self.urgency_fee,
            "total": self.total,
            "platform_fee": self.platform_fee,
            "editor_earnings_total": self.editor_earnings_total,
            "editor_earnings_per_video": self.editor_earnings_per_video,
            "price_per_video": self.price_per_video,
            "savings": self.savings,
        }
