"""Stateless batch summary endpoint.

Lets a client that already holds a batch's videos (for example after a
realtime change notification) get the aggregated view without a database
round trip.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from batch_engine.api.schemas import ProgressResponse
from batch_engine.domain.aggregation import compute_batch_aggregated_status, compute_batch_progress
from batch_engine.domain.archiving import archive_rejection_reason
from batch_engine.domain.enums import KanbanColumn, ProjectStatus
from batch_engine.domain.kanban import project_to_kanban_column
from batch_engine.domain.models import BatchVideo

router = APIRouter(prefix="/batches", tags=["Batches"])


class VideoStatusItem(BaseModel):
    """A video as reported by the client."""

    sequence_order: int = Field(..., ge=1)
    status: str = Field(..., min_length=1, max_length=50)
    title: str = ""
    revision_count: int = Field(default=0, ge=0)


class BatchSummaryRequest(BaseModel):
    """Videos of one batch plus its deadline."""

    videos: list[VideoStatusItem] = Field(default_factory=list, max_length=100)
    deadline_days: int | None = None
    is_archived: bool = False


class BatchSummaryResponse(BaseModel):
    """Aggregated view of one batch."""

    status: ProjectStatus
    column: KanbanColumn
    progress: ProgressResponse
    can_archive: bool
    archive_blocked_reason: str | None = None


@router.post(
    "/summary",
    response_model=BatchSummaryResponse,
    summary="Summarize a batch",
    description="Aggregate status, progress and archivability from a list of videos.",
)
async def summarize_batch(request: BatchSummaryRequest) -> BatchSummaryResponse:
    """Aggregate a batch from the videos in the request."""
    videos = [
        BatchVideo(
            sequence_order=item.sequence_order,
            title=item.title,
            status=item.status,
            revision_count=item.revision_count,
        )
        for item in request.videos
    ]
    aggregated = compute_batch_aggregated_status(videos)
    reason = archive_rejection_reason(videos)

    return BatchSummaryResponse(
        status=aggregated,
        column=project_to_kanban_column(aggregated, request.is_archived),
        progress=ProgressResponse.from_progress(compute_batch_progress(videos, request.deadline_days)),
        can_archive=reason is None,
        archive_blocked_reason=reason,
    )
