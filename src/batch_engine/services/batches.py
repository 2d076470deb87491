"""Batch project service.

Performs the writes that the domain rules authorize: creating projects,
resizing a batch, changing its delivery mode, moving a video through its
lifecycle, archiving and unarchiving. Everything shown to a user (price,
progress, status, board column) is recomputed from the stored rows on every
call.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from batch_engine.config import get_settings
from batch_engine.db.models import BatchVideoModel, ProjectModel
from batch_engine.domain.aggregation import (
    check_sequence_integrity,
    compute_batch_progress,
    effective_status,
)
from batch_engine.domain.archiving import ensure_archivable, project_archive_rejection_reason
from batch_engine.domain.enums import DeliveryMode, KanbanColumn, ProjectStatus, VideoStatus
from batch_engine.domain.errors import BatchEngineError, InvalidBatchConfigurationError
from batch_engine.domain.kanban import group_by_column, project_to_kanban_column, visible_columns
from batch_engine.domain.lifecycle import (
    can_start_video,
    next_revision_count,
    validate_project_transition,
    validate_transition,
    validate_video,
)
from batch_engine.domain.models import BatchPricing, BatchProgress, BatchVideo, Project
from batch_engine.domain.pricing import (
    PricingConfig,
    calculate_batch_pricing,
    validate_batch_configuration,
)
from batch_engine.logging import get_logger

logger = get_logger(__name__)


class ProjectNotFoundError(BatchEngineError):
    """Raised when a project is not found."""

    pass


class VideoNotFoundError(BatchEngineError):
    """Raised when a video is not part of the given project."""

    pass


class NotABatchProjectError(BatchEngineError):
    """Raised when a batch-only operation targets a single-video project."""

    pass


class VideoNotReleasedError(BatchEngineError):
    """Raised when work starts on a sequential video before its predecessor is done."""

    pass


class DerivedStatusError(BatchEngineError):
    """Raised when a status change targets a batch, whose status is derived from its videos."""

    pass


@dataclass
class VideoBrief:
    """Creator's instructions for one video of a new batch."""

    title: str | None = None
    specific_instructions: str | None = None
    editor_can_choose_timing: bool = False
    selected_timestamp_start: int | None = None
    selected_timestamp_end: int | None = None


@dataclass
class ProjectOverview:
    """Everything a dashboard needs to show about one project."""

    project: Project
    status: ProjectStatus
    column: KanbanColumn
    pricing: BatchPricing
    progress: BatchProgress | None
    can_archive: bool
    archive_blocked_reason: str | None = None
    integrity_problems: list[str] = field(default_factory=list)


@dataclass
class Board:
    """Projects grouped by kanban column."""

    columns: dict[KanbanColumn, list[ProjectOverview]]
    visible: list[KanbanColumn]


def default_pricing_config() -> PricingConfig:
    """Pricing terms from the current application settings."""
    return PricingConfig.from_settings(get_settings())


# =============================================================================
# Reads
# =============================================================================


def get_project(session: Session, project_id: UUID) -> ProjectModel:
    """Get a project with its videos.

    Raises:
        ProjectNotFoundError: If no project has this ID.
    """
    project = session.execute(
        select(ProjectModel)
        .options(selectinload(ProjectModel.videos))
        .where(ProjectModel.id == project_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()

    if not project:
        raise ProjectNotFoundError(f"Project {project_id} not found")

    return project


def build_overview(project: Project, config: PricingConfig | None = None) -> ProjectOverview:
    """Derive price, progress, status and column for a project."""
    config = config or default_pricing_config()
    status = effective_status(project)
    reason = project_archive_rejection_reason(project)

    if project.is_batch:
        progress = compute_batch_progress(project.videos, project.deadline_days)
        problems = check_sequence_integrity(project.videos, project.batch_quantity)
        if problems:
            logger.warning(
                "batch_integrity_problems",
                project_id=str(project.id),
                problems=problems,
            )
        pricing = calculate_batch_pricing(
            project.base_price,
            project.batch_quantity,
            project.batch_delivery_mode,
            config,
        )
    else:
        progress = None
        problems = []
        pricing = calculate_batch_pricing(project.base_price, 1, DeliveryMode.SEQUENTIAL, config)

    return ProjectOverview(
        project=project,
        status=status,
        column=project_to_kanban_column(status, project.is_archived),
        pricing=pricing,
        progress=progress,
        can_archive=reason is None,
        archive_blocked_reason=reason,
        integrity_problems=problems,
    )


def list_overviews(
    session: Session,
    archived: bool | None = None,
    config: PricingConfig | None = None,
) -> list[ProjectOverview]:
    """Overviews of all projects, newest first.

    Args:
        session: Database session.
        archived: Only archived (True) or only active (False) projects;
            None for both.
        config: Pricing terms.
    """
    config = config or default_pricing_config()
    query = (
        select(ProjectModel)
        .options(selectinload(ProjectModel.videos))
        .order_by(ProjectModel.created_at.desc())
    )
    if archived is not None:
        query = query.where(ProjectModel.is_archived == archived)

    projects = session.execute(query).scalars().all()
    return [build_overview(project.to_domain(), config) for project in projects]


def build_board(
    session: Session,
    archived_view: bool = False,
    config: PricingConfig | None = None,
) -> Board:
    """Group projects into kanban columns."""
    overviews = list_overviews(session, archived=archived_view, config=config)
    columns = group_by_column(overviews, lambda overview: overview.column)
    return Board(columns=columns, visible=visible_columns(columns, archived_view))


# =============================================================================
# Creation
# =============================================================================


def create_single_project(
    session: Session,
    title: str,
    base_price: Decimal,
    deadline_days: int | None = None,
    creator_id: UUID | None = None,
    config: PricingConfig | None = None,
) -> ProjectModel:
    """Create a single-video project in draft.

    Raises:
        InvalidBatchConfigurationError: If the price is not positive.
    """
    validate_batch_configuration(base_price, 1, DeliveryMode.SEQUENTIAL, config, is_batch=False)

    project = ProjectModel(
        title=title,
        creator_id=creator_id,
        base_price=Decimal(str(base_price)),
        status=ProjectStatus.DRAFT.value,
        is_batch=False,
        batch_quantity=1,
        batch_delivery_mode=DeliveryMode.SEQUENTIAL.value,
        deadline_days=deadline_days,
    )
    session.add(project)
    session.commit()
    session.refresh(project)

    logger.info("project_created", project_id=str(project.id), is_batch=False)
    return project


def _build_videos(quantity: int, briefs: Sequence[VideoBrief]) -> list[BatchVideoModel]:
    """Build a dense 1..quantity video set from the creator's briefs."""
    if len(briefs) > quantity:
        raise InvalidBatchConfigurationError(
            f"Got {len(briefs)} video briefs for a batch of {quantity}"
        )

    videos = []
    for order in range(1, quantity + 1):
        brief = briefs[order - 1] if order <= len(briefs) else VideoBrief()
        candidate = BatchVideo(
            sequence_order=order,
            title=brief.title or f"Video {order}",
            specific_instructions=brief.specific_instructions,
            editor_can_choose_timing=brief.editor_can_choose_timing,
            selected_timestamp_start=brief.selected_timestamp_start,
            selected_timestamp_end=brief.selected_timestamp_end,
        )
        validate_video(candidate)
        videos.append(
            BatchVideoModel(
                sequence_order=order,
                title=candidate.title,
                specific_instructions=candidate.specific_instructions,
                status=VideoStatus.PENDING.value,
                revision_count=0,
                editor_can_choose_timing=candidate.editor_can_choose_timing,
                selected_timestamp_start=candidate.selected_timestamp_start,
                selected_timestamp_end=candidate.selected_timestamp_end,
            )
        )
    return videos


def create_batch_project(
    session: Session,
    title: str,
    base_price: Decimal,
    quantity: int,
    delivery_mode: DeliveryMode | str = DeliveryMode.SEQUENTIAL,
    briefs: Sequence[VideoBrief] = (),
    deadline_days: int | None = None,
    creator_id: UUID | None = None,
    config: PricingConfig | None = None,
) -> ProjectModel:
    """Create a batch project together with its full set of videos.

    Args:
        session: Database session.
        title: Project title.
        base_price: Price of a single video.
        quantity: Number of videos in the batch.
        delivery_mode: Sequential or simultaneous delivery.
        briefs: Per-video instructions, in order. Missing briefs get a
            default title.
        deadline_days: Days until the project deadline.
        creator_id: Creator who commissioned the batch.
        config: Pricing terms used for policy checks.

    Returns:
        The created ProjectModel.

    Raises:
        InvalidBatchConfigurationError: If the request violates policy.
        InvalidVideoError: If a brief is inconsistent.
    """
    config = config or default_pricing_config()
    mode = validate_batch_configuration(base_price, quantity, delivery_mode, config)

    project = ProjectModel(
        title=title,
        creator_id=creator_id,
        base_price=Decimal(str(base_price)),
        status=ProjectStatus.DRAFT.value,
        is_batch=True,
        batch_quantity=quantity,
        batch_delivery_mode=mode.value,
        deadline_days=deadline_days,
        videos=_build_videos(quantity, briefs),
    )
    session.add(project)
    session.commit()
    session.refresh(project)

    pricing = calculate_batch_pricing(project.base_price, quantity, mode, config)
    logger.info(
        "batch_project_created",
        project_id=str(project.id),
        quantity=quantity,
        delivery_mode=mode.value,
        total=str(pricing.total),
    )
    return project


# =============================================================================
# Batch configuration changes
# =============================================================================


def _require_batch(project: ProjectModel) -> None:
    if not project.is_batch:
        raise NotABatchProjectError(f"Project {project.id} is not a batch project")


def _apply_sequence(session: Session, videos: list[BatchVideoModel]) -> None:
    """Renumber videos 1..N in list order without tripping the unique constraint."""
    if all(video.sequence_order == order for order, video in enumerate(videos, start=1)):
        return
    for video in videos:
        video.sequence_order = -video.sequence_order - len(videos)
    session.flush()
    for order, video in enumerate(videos, start=1):
        video.sequence_order = order
    session.flush()


def update_batch(
    session: Session,
    project_id: UUID,
    quantity: int | None = None,
    delivery_mode: DeliveryMode | str | None = None,
    config: PricingConfig | None = None,
) -> ProjectModel:
    """Resize a batch and/or change its delivery mode.

    Shrinking removes videos from the end of the sequence; only videos that
    have not been started can be removed. The remaining set is always
    renumbered densely from 1.

    Raises:
        ProjectNotFoundError: If the project does not exist.
        NotABatchProjectError: If the project holds a single video.
        InvalidBatchConfigurationError: If the new configuration violates
            policy or would drop started videos.
    """
    config = config or default_pricing_config()
    project = get_project(session, project_id)
    _require_batch(project)

    new_quantity = project.batch_quantity if quantity is None else quantity
    new_mode = validate_batch_configuration(
        project.base_price,
        new_quantity,
        project.batch_delivery_mode if delivery_mode is None else delivery_mode,
        config,
    )

    videos = sorted(project.videos, key=lambda video: video.sequence_order)
    if new_quantity < len(videos):
        removed = videos[new_quantity:]
        started = [
            video.sequence_order
            for video in removed
            if VideoStatus.parse(video.status) not in (VideoStatus.PENDING, None)
        ]
        if started:
            raise InvalidBatchConfigurationError(
                f"Cannot remove videos that were already started: {started}"
            )
        for video in removed:
            project.videos.remove(video)
        videos = videos[:new_quantity]
        session.flush()

    _apply_sequence(session, videos)

    for order in range(len(videos) + 1, new_quantity + 1):
        project.videos.append(
            BatchVideoModel(
                sequence_order=order,
                title=f"Video {order}",
                status=VideoStatus.PENDING.value,
                revision_count=0,
            )
        )

    previous_quantity = project.batch_quantity
    previous_mode = project.batch_delivery_mode
    project.batch_quantity = new_quantity
    project.batch_delivery_mode = new_mode.value
    session.commit()

    project = get_project(session, project_id)
    pricing = calculate_batch_pricing(project.base_price, new_quantity, new_mode, config)
    logger.info(
        "batch_updated",
        project_id=str(project_id),
        quantity=new_quantity,
        previous_quantity=previous_quantity,
        delivery_mode=new_mode.value,
        previous_delivery_mode=previous_mode,
        total=str(pricing.total),
    )
    return project


# =============================================================================
# Lifecycle
# =============================================================================


def transition_video(
    session: Session,
    project_id: UUID,
    video_id: UUID,
    target: VideoStatus | str,
) -> BatchVideoModel:
    """Move one video of a batch to a new status.

    Raises:
        ProjectNotFoundError: If the project does not exist.
        VideoNotFoundError: If the video is not part of the project.
        InvalidStateTransitionError: If the move is not allowed.
        VideoNotReleasedError: If a sequential batch has not released it yet.
    """
    project = get_project(session, project_id)
    _require_batch(project)

    videos = sorted(project.videos, key=lambda video: video.sequence_order)
    index = next((i for i, video in enumerate(videos) if video.id == video_id), None)
    if index is None:
        raise VideoNotFoundError(f"Video {video_id} not found in project {project_id}")

    video = videos[index]
    current = VideoStatus.parse(video.status) or VideoStatus.PENDING
    target_status = VideoStatus(target)
    validate_transition(current, target_status)

    if current == VideoStatus.PENDING and target_status == VideoStatus.IN_PROGRESS:
        domain_videos = [v.to_domain() for v in videos]
        if not can_start_video(domain_videos, index, DeliveryMode.parse(project.batch_delivery_mode)):
            raise VideoNotReleasedError(
                f"Video {video.sequence_order} is released once the previous "
                "video that was not cancelled is completed"
            )

    video.revision_count = next_revision_count(current, target_status, video.revision_count or 0)
    video.status = target_status.value
    session.commit()
    session.refresh(video)

    logger.info(
        "video_transitioned",
        project_id=str(project_id),
        video_id=str(video_id),
        from_status=current.value,
        to_status=target_status.value,
        revision_count=video.revision_count,
    )
    return video


def transition_project(
    session: Session,
    project_id: UUID,
    target: ProjectStatus | str,
) -> ProjectModel:
    """Move a single-video project to a new status.

    Raises:
        ProjectNotFoundError: If the project does not exist.
        DerivedStatusError: If the project is a batch.
        InvalidStateTransitionError: If the move is not allowed.
    """
    project = get_project(session, project_id)
    if project.is_batch:
        raise DerivedStatusError(
            f"Project {project_id} is a batch; its status follows its videos"
        )

    current = project.to_domain().status
    target_status = ProjectStatus(target)
    validate_project_transition(current, target_status)

    project.status = target_status.value
    session.commit()

    logger.info(
        "project_transitioned",
        project_id=str(project_id),
        from_status=current.value,
        to_status=target_status.value,
    )
    return get_project(session, project_id)


# =============================================================================
# Archiving
# =============================================================================


def archive_project(session: Session, project_id: UUID) -> ProjectModel:
    """Archive a project whose work is finished.

    Archiving an already archived project is a no-op.

    Raises:
        ProjectNotFoundError: If the project does not exist.
        ArchiveNotAllowedError: If any video is still unfinished.
    """
    project = get_project(session, project_id)
    if project.is_archived:
        logger.info("project_already_archived", project_id=str(project_id))
        return project

    # Re-validate against the freshly loaded videos before writing
    ensure_archivable(project.to_domain())

    result = session.execute(
        update(ProjectModel)
        .where(ProjectModel.id == project_id, ProjectModel.is_archived.is_(False))
        .values(is_archived=True)
    )
    session.commit()

    if result.rowcount == 0:
        logger.info("project_archived_concurrently", project_id=str(project_id))
    else:
        logger.info("project_archived", project_id=str(project_id))
    return get_project(session, project_id)


def unarchive_project(session: Session, project_id: UUID) -> ProjectModel:
    """Unarchive a project. Always allowed; a no-op when not archived.

    Raises:
        ProjectNotFoundError: If the project does not exist.
    """
    project = get_project(session, project_id)
    if not project.is_archived:
        return project

    session.execute(
        update(ProjectModel)
        .where(ProjectModel.id == project_id, ProjectModel.is_archived.is_(True))
        .values(is_archived=False)
    )
    session.commit()

    logger.info("project_unarchived", project_id=str(project_id))
    return get_project(session, project_id)
