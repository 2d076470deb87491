"""Tests for the batch project service."""

from decimal import Decimal
from uuid import uuid4

import pytest

from batch_engine.db.models import BatchVideoModel
from batch_engine.domain.enums import DeliveryMode, KanbanColumn, ProjectStatus, VideoStatus
from batch_engine.domain.errors import (
    ArchiveNotAllowedError,
    InvalidBatchConfigurationError,
    InvalidStateTransitionError,
    InvalidVideoError,
)
from batch_engine.services.batches import (
    DerivedStatusError,
    NotABatchProjectError,
    ProjectNotFoundError,
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


def _orders(project) -> list[int]:
    return [video.sequence_order for video in sorted(project.videos, key=lambda v: v.sequence_order)]


def _video(project, order: int) -> BatchVideoModel:
    return next(video for video in project.videos if video.sequence_order == order)


def _advance(session, project, order: int, *statuses: VideoStatus) -> None:
    for target in statuses:
        transition_video(session, project.id, _video(project, order).id, target)


def _complete(session, project, order: int) -> None:
    _advance(
        session,
        project,
        order,
        VideoStatus.IN_PROGRESS,
        VideoStatus.IN_REVIEW,
        VideoStatus.COMPLETED,
    )


@pytest.fixture
def batch(db_session, pricing_config):
    """A sequential batch of four videos."""
    return create_batch_project(
        db_session,
        title="Podcast clips",
        base_price=Decimal("100"),
        quantity=4,
        delivery_mode=DeliveryMode.SEQUENTIAL,
        briefs=[VideoBrief(title="Opening"), VideoBrief(editor_can_choose_timing=True)],
        deadline_days=7,
        config=pricing_config,
    )


class TestCreateProjects:
    """Tests for project creation."""

    def test_create_batch(self, db_session, batch, pricing_config) -> None:
        """Test a batch is created with a dense set of pending videos."""
        project = get_project(db_session, batch.id)

        assert project.is_batch is True
        assert project.batch_quantity == 4
        assert _orders(project) == [1, 2, 3, 4]
        assert all(video.status == "pending" for video in project.videos)
        assert _video(project, 1).title == "Opening"
        assert _video(project, 2).editor_can_choose_timing is True
        assert _video(project, 3).title == "Video 3"

        overview = build_overview(project.to_domain(), pricing_config)
        assert overview.status == ProjectStatus.OPEN
        assert overview.column == KanbanColumn.OPEN
        assert overview.pricing.total == Decimal("380.00")
        assert overview.progress.total == 4
        assert overview.progress.pending == 4
        assert overview.integrity_problems == []

    def test_batch_quantity_out_of_range(self, db_session, pricing_config) -> None:
        """Test policy limits are enforced on creation."""
        with pytest.raises(InvalidBatchConfigurationError):
            create_batch_project(db_session, "Too small", Decimal("100"), 3, config=pricing_config)

    def test_too_many_briefs(self, db_session, pricing_config) -> None:
        """Test more briefs than videos is rejected."""
        with pytest.raises(InvalidBatchConfigurationError, match="5 video briefs"):
            create_batch_project(
                db_session,
                "Clips",
                Decimal("100"),
                4,
                briefs=[VideoBrief() for _ in range(5)],
                config=pricing_config,
            )

    def test_inconsistent_brief(self, db_session, pricing_config) -> None:
        """Test an invalid brief is rejected before anything is stored."""
        brief = VideoBrief(selected_timestamp_start=60, selected_timestamp_end=10)
        with pytest.raises(InvalidVideoError):
            create_batch_project(db_session, "Clips", Decimal("100"), 4, briefs=[brief], config=pricing_config)

        assert list_overviews(db_session, config=pricing_config) == []

    def test_create_single_project(self, db_session, pricing_config) -> None:
        """Test a single-video project is priced at its base price."""
        project = create_single_project(db_session, "Trailer", Decimal("149.90"), config=pricing_config)
        overview = build_overview(project.to_domain(), pricing_config)

        assert overview.status == ProjectStatus.DRAFT
        assert overview.column == KanbanColumn.DRAFT
        assert overview.progress is None
        assert overview.pricing.total == Decimal("149.90")

    def test_project_not_found(self, db_session) -> None:
        """Test looking up a missing project."""
        with pytest.raises(ProjectNotFoundError):
            get_project(db_session, uuid4())


class TestUpdateBatch:
    """Tests for resizing a batch and changing its delivery mode."""

    def test_grow(self, db_session, batch, pricing_config) -> None:
        """Test growing appends pending videos and reprices."""
        project = update_batch(db_session, batch.id, quantity=7, config=pricing_config)

        assert project.batch_quantity == 7
        assert _orders(project) == [1, 2, 3, 4, 5, 6, 7]
        assert _video(project, 7).status == "pending"
        assert build_overview(project.to_domain(), pricing_config).pricing.total == Decimal("644.00")

    def test_shrink_removes_pending_tail(self, db_session, batch, pricing_config) -> None:
        """Test shrinking drops videos from the end and keeps the sequence dense."""
        update_batch(db_session, batch.id, quantity=6, config=pricing_config)
        project = update_batch(db_session, batch.id, quantity=4, config=pricing_config)

        assert project.batch_quantity == 4
        assert _orders(project) == [1, 2, 3, 4]
        assert _video(project, 1).title == "Opening"

    def test_shrink_refuses_started_videos(self, db_session, pricing_config) -> None:
        """Test started videos are never dropped by a resize."""
        project = create_batch_project(
            db_session,
            "Clips",
            Decimal("100"),
            5,
            delivery_mode=DeliveryMode.SIMULTANEOUS,
            config=pricing_config,
        )
        _advance(db_session, project, 5, VideoStatus.IN_PROGRESS)

        with pytest.raises(InvalidBatchConfigurationError, match="already started"):
            update_batch(db_session, project.id, quantity=4, config=pricing_config)

        assert get_project(db_session, project.id).batch_quantity == 5

    def test_shrink_below_minimum(self, db_session, batch, pricing_config) -> None:
        """Test resizing below the batch minimum is rejected."""
        with pytest.raises(InvalidBatchConfigurationError):
            update_batch(db_session, batch.id, quantity=2, config=pricing_config)

    def test_change_delivery_mode_reprices(self, db_session, batch, pricing_config) -> None:
        """Test switching to simultaneous delivery adds the urgency fee."""
        project = update_batch(
            db_session, batch.id, delivery_mode=DeliveryMode.SIMULTANEOUS, config=pricing_config
        )
        pricing = build_overview(project.to_domain(), pricing_config).pricing

        assert project.batch_delivery_mode == "simultaneous"
        assert pricing.urgency_fee == Decimal("76.00")
        assert pricing.total == Decimal("456.00")

    def test_single_project_cannot_be_resized(self, db_session, pricing_config) -> None:
        """Test batch-only changes are refused for single-video projects."""
        project = create_single_project(db_session, "Trailer", Decimal("100"), config=pricing_config)
        with pytest.raises(NotABatchProjectError):
            update_batch(db_session, project.id, quantity=5, config=pricing_config)


class TestTransitionVideo:
    """Tests for moving videos through their lifecycle."""

    def test_status_aggregates_after_transition(self, db_session, batch, pricing_config) -> None:
        """Test the project status follows its videos."""
        _advance(db_session, batch, 1, VideoStatus.IN_PROGRESS)
        overview = build_overview(get_project(db_session, batch.id).to_domain(), pricing_config)
        assert overview.status == ProjectStatus.IN_PROGRESS
        assert overview.column == KanbanColumn.IN_PROGRESS

        _advance(db_session, batch, 1, VideoStatus.IN_REVIEW)
        overview = build_overview(get_project(db_session, batch.id).to_domain(), pricing_config)
        assert overview.status == ProjectStatus.PENDING_APPROVAL
        assert overview.column == KanbanColumn.IN_REVIEW

    def test_revision_request_counts(self, db_session, batch) -> None:
        """Test each revision request increments the video's revision count."""
        _advance(db_session, batch, 1, VideoStatus.IN_PROGRESS, VideoStatus.IN_REVIEW)
        video = transition_video(
            db_session, batch.id, _video(batch, 1).id, VideoStatus.REVISION_REQUESTED
        )
        assert video.revision_count == 1

        _advance(db_session, batch, 1, VideoStatus.IN_PROGRESS, VideoStatus.IN_REVIEW)
        video = transition_video(db_session, batch.id, _video(batch, 1).id, "revision_requested")
        assert video.revision_count == 2

    def test_illegal_transition(self, db_session, batch) -> None:
        """Test skipping review is rejected."""
        with pytest.raises(InvalidStateTransitionError):
            transition_video(db_session, batch.id, _video(batch, 1).id, VideoStatus.COMPLETED)

    def test_sequential_release(self, db_session, batch) -> None:
        """Test a sequential video cannot start before its predecessor is completed."""
        with pytest.raises(VideoNotReleasedError):
            _advance(db_session, batch, 2, VideoStatus.IN_PROGRESS)

        _complete(db_session, batch, 1)
        _advance(db_session, batch, 2, VideoStatus.IN_PROGRESS)

        assert _video(get_project(db_session, batch.id), 2).status == "in_progress"

    def test_cancelled_video_does_not_block_the_rest(self, db_session, batch, pricing_config) -> None:
        """Test a sequential batch can still finish after one of its videos is cancelled."""
        _complete(db_session, batch, 1)
        _advance(db_session, batch, 2, VideoStatus.CANCELLED)

        _advance(db_session, batch, 3, VideoStatus.IN_PROGRESS)
        with pytest.raises(VideoNotReleasedError):
            _advance(db_session, batch, 4, VideoStatus.IN_PROGRESS)

        _advance(db_session, batch, 3, VideoStatus.IN_REVIEW, VideoStatus.COMPLETED)
        _complete(db_session, batch, 4)

        overview = build_overview(get_project(db_session, batch.id).to_domain(), pricing_config)
        assert overview.progress.completed == 3
        assert overview.progress.cancelled == 1
        assert overview.can_archive is True

    def test_cancel_is_not_gated_by_sequence(self, db_session, batch) -> None:
        """Test a later video can be cancelled at any time."""
        _advance(db_session, batch, 3, VideoStatus.CANCELLED)
        assert _video(get_project(db_session, batch.id), 3).status == "cancelled"

    def test_unknown_video(self, db_session, batch) -> None:
        """Test a video ID from elsewhere is rejected."""
        with pytest.raises(VideoNotFoundError):
            transition_video(db_session, batch.id, uuid4(), VideoStatus.IN_PROGRESS)


class TestTransitionProject:
    """Tests for moving single-video projects through their lifecycle."""

    def test_single_project_lifecycle(self, db_session, pricing_config) -> None:
        """Test a single-video project moves from draft to completed and can then be archived."""
        project = create_single_project(db_session, "Trailer", Decimal("100"), config=pricing_config)

        project = transition_project(db_session, project.id, ProjectStatus.OPEN)
        assert build_overview(project.to_domain(), pricing_config).column == KanbanColumn.OPEN

        for target in (
            ProjectStatus.IN_PROGRESS,
            ProjectStatus.IN_REVIEW,
            ProjectStatus.REVISION_REQUESTED,
            ProjectStatus.PENDING_APPROVAL,
        ):
            project = transition_project(db_session, project.id, target)
        overview = build_overview(project.to_domain(), pricing_config)
        assert overview.status == ProjectStatus.PENDING_APPROVAL
        assert overview.column == KanbanColumn.IN_REVIEW
        assert overview.can_archive is False

        project = transition_project(db_session, project.id, "completed")
        assert project.status == "completed"

        project = archive_project(db_session, project.id)
        assert project.is_archived is True

    def test_illegal_project_transition(self, db_session, pricing_config) -> None:
        """Test a draft cannot jump straight to completed."""
        project = create_single_project(db_session, "Trailer", Decimal("100"), config=pricing_config)

        with pytest.raises(InvalidStateTransitionError):
            transition_project(db_session, project.id, ProjectStatus.COMPLETED)

        assert get_project(db_session, project.id).status == "draft"

    def test_batch_status_cannot_be_set(self, db_session, batch) -> None:
        """Test a batch's status is only ever derived from its videos."""
        with pytest.raises(DerivedStatusError):
            transition_project(db_session, batch.id, ProjectStatus.OPEN)

    def test_missing_project(self, db_session) -> None:
        """Test transitioning an unknown project."""
        with pytest.raises(ProjectNotFoundError):
            transition_project(db_session, uuid4(), ProjectStatus.OPEN)


class TestArchiving:
    """Tests for archiving and unarchiving."""

    def test_archive_rejected_while_work_remains(self, db_session, batch) -> None:
        """Test a batch with unfinished videos stays active."""
        with pytest.raises(ArchiveNotAllowedError) as exc_info:
            archive_project(db_session, batch.id)

        assert exc_info.value.reason == "4 of 4 videos are not finished yet (videos 1, 2, 3, 4)"
        assert get_project(db_session, batch.id).is_archived is False

    def test_archive_and_unarchive_are_idempotent(self, db_session, batch, pricing_config) -> None:
        """Test archiving twice and unarchiving twice both succeed."""
        _complete(db_session, batch, 1)
        for order in (2, 3, 4):
            _advance(db_session, batch, order, VideoStatus.CANCELLED)

        project = archive_project(db_session, batch.id)
        assert project.is_archived is True
        assert archive_project(db_session, batch.id).is_archived is True

        overview = build_overview(project.to_domain(), pricing_config)
        assert overview.column == KanbanColumn.ARCHIVED
        assert overview.status == ProjectStatus.OPEN

        assert unarchive_project(db_session, batch.id).is_archived is False
        assert unarchive_project(db_session, batch.id).is_archived is False

    def test_single_project_archive_needs_settled_status(self, db_session, pricing_config) -> None:
        """Test a draft single-video project cannot be archived."""
        project = create_single_project(db_session, "Trailer", Decimal("100"), config=pricing_config)
        with pytest.raises(ArchiveNotAllowedError, match="still draft"):
            archive_project(db_session, project.id)


class TestBoard:
    """Tests for the kanban board."""

    def test_board_groups_projects(self, db_session, batch, pricing_config) -> None:
        """Test projects are grouped by column and archived ones are hidden."""
        create_single_project(db_session, "Trailer", Decimal("80"), config=pricing_config)

        board = build_board(db_session, config=pricing_config)

        assert [o.project.title for o in board.columns[KanbanColumn.OPEN]] == ["Podcast clips"]
        assert [o.project.title for o in board.columns[KanbanColumn.DRAFT]] == ["Trailer"]
        assert KanbanColumn.DRAFT in board.visible
        assert KanbanColumn.ARCHIVED not in board.visible

    def test_archived_view(self, db_session, batch, pricing_config) -> None:
        """Test the archived view holds only archived projects."""
        for order in (1, 2, 3, 4):
            _advance(db_session, batch, order, VideoStatus.CANCELLED)
        archive_project(db_session, batch.id)

        board = build_board(db_session, archived_view=True, config=pricing_config)
        assert board.visible == [KanbanColumn.ARCHIVED]
        assert [o.project.title for o in board.columns[KanbanColumn.ARCHIVED]] == ["Podcast clips"]
        assert build_board(db_session, config=pricing_config).columns[KanbanColumn.OPEN] == []
