"""Batch status aggregation.

A batch project has no status of its own: it is recomputed from its videos
every time one of them changes. The aggregated status follows a strict
precedence (first match wins):

    1. no videos                -> open
    2. any revision_requested   -> revision_requested
    3. any in_review            -> pending_approval
    4. any in_progress          -> in_progress
    5. all completed            -> completed
    6. all cancelled            -> cancelled
    7. otherwise                -> open

An outstanding correction anywhere in the batch surfaces first, no matter
how many other videos are already done.
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import replace

from batch_engine.domain.enums import ProjectStatus, VideoStatus
from batch_engine.domain.models import BatchProgress, BatchVideo, Project
from batch_engine.logging import get_logger

logger = get_logger(__name__)

SETTLED_PROJECT_STATES = frozenset({ProjectStatus.COMPLETED, ProjectStatus.CANCELLED})


def _tally(videos: Sequence[BatchVideo]) -> Counter[VideoStatus]:
    """Count videos per status, folding unknown values into pending."""
    counts: Counter[VideoStatus] = Counter()
    unknown = 0
    for video in videos:
        status = video.resolved_status
        if status is None:
            unknown += 1
            status = VideoStatus.PENDING
        counts[status] += 1
    if unknown:
        logger.debug("unknown_video_status_folded", count=unknown)
    return counts


def _percentage(part: int, total: int) -> int:
    """Integer percentage rounded half up."""
    if total == 0:
        return 0
    return (200 * part + total) // (2 * total)


def _status_from_counts(counts: Counter[VideoStatus], total: int) -> ProjectStatus:
    if total == 0:
        return ProjectStatus.OPEN
    if counts[VideoStatus.REVISION_REQUESTED]:
        return ProjectStatus.REVISION_REQUESTED
    if counts[VideoStatus.IN_REVIEW]:
        return ProjectStatus.PENDING_APPROVAL
    if counts[VideoStatus.IN_PROGRESS]:
        return ProjectStatus.IN_PROGRESS
    if counts[VideoStatus.COMPLETED] == total:
        return ProjectStatus.COMPLETED
    if counts[VideoStatus.CANCELLED] == total:
        return ProjectStatus.CANCELLED
    return ProjectStatus.OPEN


def compute_batch_aggregated_status(videos: Sequence[BatchVideo]) -> ProjectStatus:
    """Resolve one project-level status from a batch's videos."""
    return _status_from_counts(_tally(videos), len(videos))


def is_delayed(status: ProjectStatus, deadline_days: int | None) -> bool:
    """Whether a project is past its deadline and still unfinished."""
    if deadline_days is None:
        return False
    return deadline_days < 0 and status not in SETTLED_PROJECT_STATES


def compute_batch_progress(
    videos: Sequence[BatchVideo],
    deadline_days: int | None = None,
) -> BatchProgress:
    """Tally a batch's videos and derive completion and delay.

    Args:
        videos: The project's videos, in any order.
        deadline_days: Days left until the project deadline; negative when
            overdue, None when no deadline is known.

    Returns:
        BatchProgress whose buckets always sum to `total`.
    """
    total = len(videos)
    counts = _tally(videos)
    completed = counts[VideoStatus.COMPLETED]

    has_delayed = is_delayed(_status_from_counts(counts, total), deadline_days)

    return BatchProgress(
        total=total,
        completed=completed,
        in_review=counts[VideoStatus.IN_REVIEW],
        in_progress=counts[VideoStatus.IN_PROGRESS],
        revision_requested=counts[VideoStatus.REVISION_REQUESTED],
        pending=counts[VideoStatus.PENDING],
        cancelled=counts[VideoStatus.CANCELLED],
        percentage=_percentage(completed, total),
        has_delayed=has_delayed,
        delayed_count=total - completed if has_delayed else 0,
    )


def effective_status(project: Project, videos: Sequence[BatchVideo] | None = None) -> ProjectStatus:
    """Status used for display.

    Batch projects are aggregated from their videos (the project's own
    `videos` when none are passed); single-video projects use their stored
    status.
    """
    if not project.is_batch:
        return project.status
    return compute_batch_aggregated_status(project.videos if videos is None else videos)


def check_sequence_integrity(videos: Iterable[BatchVideo], quantity: int | None = None) -> list[str]:
    """List the ways a video set departs from a dense 1..N sequence.

    An empty list means the set is consistent.
    """
    orders = [video.sequence_order for video in videos]
    problems: list[str] = []

    duplicates = sorted(order for order, seen in Counter(orders).items() if seen > 1)
    if duplicates:
        problems.append(f"duplicate sequence_order values: {duplicates}")

    expected_count = len(orders) if quantity is None else quantity
    if quantity is not None and len(orders) != quantity:
        problems.append(f"expected {quantity} videos, found {len(orders)}")

    missing = sorted(set(range(1, expected_count + 1)) - set(orders))
    if missing:
        problems.append(f"missing sequence_order values: {missing}")

    out_of_range = sorted(order for order in set(orders) if not 1 <= order <= expected_count)
    if out_of_range:
        problems.append(f"sequence_order values out of range: {out_of_range}")

    return problems


def resequence(videos: Iterable[BatchVideo]) -> list[BatchVideo]:
    """Renumber videos densely from 1, keeping their relative order."""
    ordered = sorted(videos, key=lambda video: video.sequence_order)
    return [replace(video, sequence_order=position) for position, video in enumerate(ordered, start=1)]
