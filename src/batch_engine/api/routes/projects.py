"""Project management endpoints."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field, model_validator

from batch_engine.api.deps import PricingConfigDep, SessionDep
from batch_engine.api.schemas import PricingResponse, ProgressResponse
from batch_engine.domain.enums import DeliveryMode, KanbanColumn, ProjectStatus, VideoStatus
from batch_engine.domain.errors import (
    ArchiveNotAllowedError,
    InvalidBatchConfigurationError,
    InvalidStateTransitionError,
    InvalidVideoError,
)
from batch_engine.logging import get_logger
from batch_engine.services.batches import (
    DerivedStatusError,
    NotABatchProjectError,
    ProjectNotFoundError,
    ProjectOverview,
    VideoBrief,
    VideoNotFoundError,
    VideoNotReleasedError,
    archive_project,
    build_board,
    build_overview,
    create_batch_project,
    create_single_project,
    get_project,
    list_overviews,
    transition_project,
    transition_video,
    unarchive_project,
    update_batch,
)

router = APIRouter(prefix="/projects", tags=["Projects"])
logger = get_logger(__name__)


# =============================================================================
# Request / Response Models
# =============================================================================


class VideoBriefRequest(BaseModel):
    """Instructions for one video of a new batch."""

    title: str | None = Field(None, max_length=255)
    specific_instructions: str | None = Field(None, max_length=5000)
    editor_can_choose_timing: bool = False
    selected_timestamp_start: int | None = Field(None, ge=0)
    selected_timestamp_end: int | None = Field(None, ge=0)


class CreateProjectRequest(BaseModel):
    """Request to create a project."""

    title: str = Field(..., min_length=1, max_length=255)
    base_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    is_batch: bool = False
    batch_quantity: int = Field(default=1, ge=1)
    batch_delivery_mode: DeliveryMode = DeliveryMode.SEQUENTIAL
    deadline_days: int | None = None
    creator_id: UUID | None = None
    videos: list[VideoBriefRequest] = Field(default_factory=list)

    @model_validator(mode="after")
    def _single_video_has_no_briefs(self) -> "CreateProjectRequest":
        if not self.is_batch and self.videos:
            raise ValueError("Video briefs are only accepted for batch projects")
        return self


class UpdateBatchRequest(BaseModel):
    """Request to resize a batch or change its delivery mode."""

    batch_quantity: int | None = Field(None, ge=1)
    batch_delivery_mode: DeliveryMode | None = None


class TransitionRequest(BaseModel):
    """Request to move a video to a new status."""

    status: VideoStatus


class ProjectTransitionRequest(BaseModel):
    """Request to move a single-video project to a new status."""

    status: ProjectStatus


class VideoResponse(BaseModel):
    """Batch video response model."""

    id: str
    sequence_order: int
    title: str
    status: str
    revision_count: int
    specific_instructions: str | None
    editor_can_choose_timing: bool
    selected_timestamp_start: int | None
    selected_timestamp_end: int | None


class ProjectResponse(BaseModel):
    """Project with its derived state."""

    id: str
    title: str
    is_batch: bool
    batch_quantity: int
    batch_delivery_mode: DeliveryMode
    deadline_days: int | None
    is_archived: bool
    status: ProjectStatus
    column: KanbanColumn
    can_archive: bool
    archive_blocked_reason: str | None
    pricing: PricingResponse
    progress: ProgressResponse | None
    videos: list[VideoResponse]
    created_at: datetime | None


class BoardColumnResponse(BaseModel):
    """One kanban column."""

    column: KanbanColumn
    projects: list[ProjectResponse]


class BoardResponse(BaseModel):
    """Kanban board."""

    columns: list[BoardColumnResponse]


def _overview_to_response(overview: ProjectOverview) -> ProjectResponse:
    """Convert a ProjectOverview to ProjectResponse."""
    project = overview.project
    return ProjectResponse(
        id=str(project.id),
        title=project.title,
        is_batch=project.is_batch,
        batch_quantity=project.batch_quantity,
        batch_delivery_mode=project.batch_delivery_mode,
        deadline_days=project.deadline_days,
        is_archived=project.is_archived,
        status=overview.status,
        column=overview.column,
        can_archive=overview.can_archive,
        archive_blocked_reason=overview.archive_blocked_reason,
        pricing=PricingResponse.from_pricing(overview.pricing),
        progress=ProgressResponse.from_progress(overview.progress) if overview.progress else None,
        videos=[
            VideoResponse(
                id=str(video.id),
                sequence_order=video.sequence_order,
                title=video.title,
                status=str(video.status),
                revision_count=video.revision_count,
                specific_instructions=video.specific_instructions,
                editor_can_choose_timing=video.editor_can_choose_timing,
                selected_timestamp_start=video.selected_timestamp_start,
                selected_timestamp_end=video.selected_timestamp_end,
            )
            for video in sorted(project.videos, key=lambda v: v.sequence_order)
        ],
        created_at=project.created_at,
    )


def _parse_uuid(value: str, label: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} ID format",
        )


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    description="Create a single-video project or a batch together with its videos.",
)
def create_project(
    request: CreateProjectRequest,
    session: SessionDep,
    config: PricingConfigDep,
) -> ProjectResponse:
    """Create a new project."""
    logger.info("create_project", title=request.title, is_batch=request.is_batch)

    try:
        if request.is_batch:
            project = create_batch_project(
                session,
                title=request.title,
                base_price=request.base_price,
                quantity=request.batch_quantity,
                delivery_mode=request.batch_delivery_mode,
                briefs=[VideoBrief(**brief.model_dump()) for brief in request.videos],
                deadline_days=request.deadline_days,
                creator_id=request.creator_id,
                config=config,
            )
        else:
            if request.batch_quantity != 1:
                raise InvalidBatchConfigurationError("A single-video project holds exactly one video")
            project = create_single_project(
                session,
                title=request.title,
                base_price=request.base_price,
                deadline_days=request.deadline_days,
                creator_id=request.creator_id,
                config=config,
            )
    except (InvalidBatchConfigurationError, InvalidVideoError) as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return _overview_to_response(build_overview(project.to_domain(), config))


@router.get(
    "",
    response_model=list[ProjectResponse],
    summary="List projects",
    description="List projects with their derived status and board column.",
)
def list_projects(
    session: SessionDep,
    config: PricingConfigDep,
    archived: bool | None = Query(default=None, description="Filter on archived state"),
) -> list[ProjectResponse]:
    """List all projects."""
    return [_overview_to_response(o) for o in list_overviews(session, archived, config)]


@router.get(
    "/board",
    response_model=BoardResponse,
    summary="Project board",
    description="Projects grouped into kanban columns.",
)
def get_board(
    session: SessionDep,
    config: PricingConfigDep,
    archived: bool = Query(default=False, description="Show the archived view"),
) -> BoardResponse:
    """Get the kanban board."""
    board = build_board(session, archived_view=archived, config=config)
    return BoardResponse(
        columns=[
            BoardColumnResponse(
                column=column,
                projects=[_overview_to_response(o) for o in board.columns[column]],
            )
            for column in board.visible
        ]
    )


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Get project",
    description="Get a project with its freshly computed price, progress and status.",
)
def get_project_overview(
    project_id: str,
    session: SessionDep,
    config: PricingConfigDep,
) -> ProjectResponse:
    """Get a project by ID."""
    project_uuid = _parse_uuid(project_id, "project")
    try:
        project = get_project(session, project_uuid)
    except ProjectNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    return _overview_to_response(build_overview(project.to_domain(), config))


@router.put(
    "/{project_id}/batch",
    response_model=ProjectResponse,
    summary="Update batch",
    description="Resize a batch and/or change its delivery mode; the price is recomputed.",
)
def update_batch_configuration(
    project_id: str,
    request: UpdateBatchRequest,
    session: SessionDep,
    config: PricingConfigDep,
) -> ProjectResponse:
    """Resize a batch or change its delivery mode."""
    project_uuid = _parse_uuid(project_id, "project")
    try:
        project = update_batch(
            session,
            project_uuid,
            quantity=request.batch_quantity,
            delivery_mode=request.batch_delivery_mode,
            config=config,
        )
    except ProjectNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    except (NotABatchProjectError, InvalidBatchConfigurationError) as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return _overview_to_response(build_overview(project.to_domain(), config))


@router.post(
    "/{project_id}/transition",
    response_model=ProjectResponse,
    summary="Transition project",
    description="Move a single-video project to a new status. Batch status follows its videos.",
)
def transition_single_project(
    project_id: str,
    request: ProjectTransitionRequest,
    session: SessionDep,
    config: PricingConfigDep,
) -> ProjectResponse:
    """Apply a project status transition."""
    project_uuid = _parse_uuid(project_id, "project")
    try:
        project = transition_project(session, project_uuid, request.status)
    except ProjectNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    except DerivedStatusError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return _overview_to_response(build_overview(project.to_domain(), config))


@router.post(
    "/{project_id}/videos/{video_id}/transition",
    response_model=ProjectResponse,
    summary="Transition video",
    description="Move one video of a batch to a new status.",
)
def transition_batch_video(
    project_id: str,
    video_id: str,
    request: TransitionRequest,
    session: SessionDep,
    config: PricingConfigDep,
) -> ProjectResponse:
    """Apply a video status transition."""
    project_uuid = _parse_uuid(project_id, "project")
    video_uuid = _parse_uuid(video_id, "video")
    try:
        transition_video(session, project_uuid, video_uuid, request.status)
    except (ProjectNotFoundError, VideoNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except NotABatchProjectError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except (InvalidStateTransitionError, VideoNotReleasedError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    project = get_project(session, project_uuid)
    return _overview_to_response(build_overview(project.to_domain(), config))


@router.post(
    "/{project_id}/archive",
    response_model=ProjectResponse,
    summary="Archive project",
    description="Archive a project once all of its work is finished. Idempotent.",
)
def archive(project_id: str, session: SessionDep, config: PricingConfigDep) -> ProjectResponse:
    """Archive a project."""
    project_uuid = _parse_uuid(project_id, "project")
    try:
        project = archive_project(session, project_uuid)
    except ProjectNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    except ArchiveNotAllowedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.reason)

    return _overview_to_response(build_overview(project.to_domain(), config))


@router.post(
    "/{project_id}/unarchive",
    response_model=ProjectResponse,
    summary="Unarchive project",
    description="Move a project back out of the archive. Always allowed, idempotent.",
)
def unarchive(project_id: str, session: SessionDep, config: PricingConfigDep) -> ProjectResponse:
    """Unarchive a project."""
    project_uuid = _parse_uuid(project_id, "project")
    try:
        project = unarchive_project(session, project_uuid)
    except ProjectNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    return _overview_to_response(build_overview(project.to_domain(), config))
