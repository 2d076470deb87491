"""Archiving policy.

Only the archive direction is gated: a batch may be archived once every one
of its videos is completed or cancelled. Unarchiving is always allowed.
"""

from collections.abc import Sequence

from batch_engine.domain.enums import ProjectStatus
from batch_engine.domain.errors import ArchiveNotAllowedError
from batch_engine.domain.lifecycle import is_terminal
from batch_engine.domain.models import BatchVideo, Project


def archive_rejection_reason(videos: Sequence[BatchVideo]) -> str | None:
    """Explain why a batch cannot be archived, or None if it can."""
    if not videos:
        return "Batch has no videos yet"

    unfinished = sorted(
        video.sequence_order
        for video in videos
        if video.resolved_status is None or not is_terminal(video.resolved_status)
    )
    if unfinished:
        return (
            f"{len(unfinished)} of {len(videos)} videos are not finished yet "
            f"(videos {', '.join(str(order) for order in unfinished)})"
        )
    return None


def can_archive_batch(videos: Sequence[BatchVideo]) -> bool:
    """True iff the batch has videos and all of them are terminal."""
    return archive_rejection_reason(videos) is None


def project_archive_rejection_reason(
    project: Project,
    videos: Sequence[BatchVideo] | None = None,
) -> str | None:
    """Archive check for any project, batch or single-video."""
    if project.is_batch:
        return archive_rejection_reason(project.videos if videos is None else videos)
    if project.status in (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED):
        return None
    return f"Project is still {project.status.value}"


def ensure_archivable(project: Project, videos: Sequence[BatchVideo] | None = None) -> None:
    """Fail fast before any archive write is attempted.

    Raises:
        ArchiveNotAllowedError: If the project still has unfinished work.
    """
    reason = project_archive_rejection_reason(project, videos)
    if reason is not None:
        raise ArchiveNotAllowedError(reason)
