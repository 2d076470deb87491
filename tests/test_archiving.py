"""Tests for the archiving policy."""

from decimal import Decimal
from uuid import uuid4

import pytest

from batch_engine.domain.archiving import (
    archive_rejection_reason,
    can_archive_batch,
    ensure_archivable,
    project_archive_rejection_reason,
)
from batch_engine.domain.enums import ProjectStatus
from batch_engine.domain.errors import ArchiveNotAllowedError
from batch_engine.domain.models import Project


class TestCanArchiveBatch:
    """Tests for batch archivability."""

    def test_empty_batch_cannot_be_archived(self) -> None:
        """Test a batch with no videos is not archivable."""
        assert can_archive_batch([]) is False
        assert archive_rejection_reason([]) == "Batch has no videos yet"

    def test_unfinished_video_blocks(self, make_videos) -> None:
        """Test a single pending video blocks archiving."""
        videos = make_videos("completed", "pending")

        assert can_archive_batch(videos) is False
        assert archive_rejection_reason(videos) == "1 of 2 videos are not finished yet (videos 2)"

    def test_completed_and_cancelled_is_archivable(self, make_videos) -> None:
        """Test a mix of completed and cancelled videos can be archived."""
        assert can_archive_batch(make_videos("completed", "cancelled")) is True

    def test_legacy_approved_is_finished(self, make_videos) -> None:
        """Test legacy approved videos count as completed."""
        assert can_archive_batch(make_videos("approved", "completed")) is True

    def test_unknown_status_blocks(self, make_videos) -> None:
        """Test unrecognised statuses are treated as unfinished."""
        assert can_archive_batch(make_videos("completed", "mystery")) is False

    def test_lists_every_unfinished_video(self, make_videos) -> None:
        """Test the reason names all unfinished videos in sequence order."""
        videos = make_videos("in_review", "completed", "revision_requested", "in_progress")
        assert archive_rejection_reason(videos) == "3 of 4 videos are not finished yet (videos 1, 3, 4)"


class TestProjectArchiving:
    """Tests for project-level archive checks."""

    def test_single_project_needs_settled_status(self) -> None:
        """Test a single-video project is archivable once completed or cancelled."""
        project = Project(id=uuid4(), title="One", base_price=Decimal("50"), status=ProjectStatus.IN_PROGRESS)
        assert project_archive_rejection_reason(project) == "Project is still in_progress"

        project.status = ProjectStatus.COMPLETED
        assert project_archive_rejection_reason(project) is None

    def test_batch_uses_its_videos(self, make_videos) -> None:
        """Test a batch project is judged by its videos."""
        project = Project(
            id=uuid4(),
            title="Series",
            base_price=Decimal("50"),
            is_batch=True,
            batch_quantity=2,
            videos=make_videos("completed", "cancelled"),
        )
        assert project_archive_rejection_reason(project) is None
        ensure_archivable(project)

    def test_ensure_archivable_raises(self, make_videos) -> None:
        """Test the guard raises with the rejection reason."""
        project = Project(
            id=uuid4(),
            title="Series",
            base_price=Decimal("50"),
            is_batch=True,
            batch_quantity=2,
            videos=make_videos("completed", "in_review"),
        )
        with pytest.raises(ArchiveNotAllowedError) as exc_info:
            ensure_archivable(project)

        assert "videos 2" in exc_info.value.reason
