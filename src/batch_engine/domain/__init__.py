"""Domain models and business logic."""

from batch_engine.domain.aggregation import (
    compute_batch_aggregated_status,
    compute_batch_progress,
    effective_status,
)
from batch_engine.domain.archiving import can_archive_batch
from batch_engine.domain.enums import (
    DeliveryMode,
    KanbanColumn,
    ProjectStatus,
    VideoStatus,
)
from batch_engine.domain.kanban import project_to_kanban_column
from batch_engine.domain.models import (
    BatchPricing,
    BatchProgress,
    BatchVideo,
    Project,
)
from batch_engine.domain.pricing import PricingConfig, calculate_batch_pricing

__all__ = [
    "BatchPricing",
    "BatchProgress",
    "BatchVideo",
    "DeliveryMode",
    "KanbanColumn",
    "PricingConfig",
    "Project",
    "ProjectStatus",
    "VideoStatus",
    "calculate_batch_pricing",
    "can_archive_batch",
    "compute_batch_aggregated_status",
    "compute_batch_progress",
    "effective_status",
    "project_to_kanban_column",
]
