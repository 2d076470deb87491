"""Video and project lifecycle state machines.

Video lifecycle:
    pending -> in_progress -> in_review -> completed
                    ^             |
                    |             v
                    +---- revision_requested

Any non-terminal state may move to cancelled. completed and cancelled are
terminal.

Single-video projects carry a stored status with their own lifecycle:
    draft -> open -> in_progress -> in_review -> completed
                                        |            ^
                                        v            |
                              revision_requested -> pending_approval

pending_approval may go back to revision_requested when another round is
bought. Batch projects have no stored lifecycle; their status is aggregated
from their videos. This module only validates transitions; the services
perform them.
"""

from collections.abc import Sequence

from batch_engine.domain.enums import DeliveryMode, ProjectStatus, VideoStatus
from batch_engine.domain.errors import InvalidStateTransitionError, InvalidVideoError
from batch_engine.domain.models import BatchVideo

TERMINAL_VIDEO_STATES: frozenset[VideoStatus] = frozenset({
    VideoStatus.COMPLETED,
    VideoStatus.CANCELLED,
})

ACTIVE_VIDEO_STATES: frozenset[VideoStatus] = frozenset({
    VideoStatus.IN_PROGRESS,
    VideoStatus.IN_REVIEW,
    VideoStatus.REVISION_REQUESTED,
})

_VIDEO_TRANSITIONS: set[tuple[VideoStatus, VideoStatus]] = {
    # Editor picks the video up
    (VideoStatus.PENDING, VideoStatus.IN_PROGRESS),
    # Editor delivers a version
    (VideoStatus.IN_PROGRESS, VideoStatus.IN_REVIEW),
    # Creator approves or asks for corrections
    (VideoStatus.IN_REVIEW, VideoStatus.COMPLETED),
    (VideoStatus.IN_REVIEW, VideoStatus.REVISION_REQUESTED),
    # Rework loop
    (VideoStatus.REVISION_REQUESTED, VideoStatus.IN_PROGRESS),
    # Cancellation
    (VideoStatus.PENDING, VideoStatus.CANCELLED),
    (VideoStatus.IN_PROGRESS, VideoStatus.CANCELLED),
    (VideoStatus.IN_REVIEW, VideoStatus.CANCELLED),
    (VideoStatus.REVISION_REQUESTED, VideoStatus.CANCELLED),
}


def is_terminal(status: VideoStatus) -> bool:
    """Check if a video status is terminal (immutable)."""
    return status in TERMINAL_VIDEO_STATES


def can_transition(current: VideoStatus, target: VideoStatus) -> bool:
    """Check if a video state transition is legal.

    Staying in the same state is not a transition and is rejected.
    """
    return (current, target) in _VIDEO_TRANSITIONS


def validate_transition(current: VideoStatus, target: VideoStatus) -> None:
    """Validate a video state transition.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed.
    """
    if not can_transition(current, target):
        raise InvalidStateTransitionError(current.value, target.value)


def available_transitions(current: VideoStatus) -> frozenset[VideoStatus]:
    """Statuses reachable from `current` in one step."""
    return frozenset(target for source, target in _VIDEO_TRANSITIONS if source == current)


def next_revision_count(current: VideoStatus, target: VideoStatus, revision_count: int) -> int:
    """Revision count after moving from `current` to `target`."""
    if current == VideoStatus.IN_REVIEW and target == VideoStatus.REVISION_REQUESTED:
        return revision_count + 1
    return revision_count


def validate_video(video: BatchVideo) -> None:
    """Validate a single video record.

    Raises:
        InvalidVideoError: If the record breaks a field constraint.
    """
    if video.sequence_order < 1:
        raise InvalidVideoError(f"sequence_order must be positive, got {video.sequence_order}")
    if video.revision_count < 0:
        raise InvalidVideoError("revision_count cannot be negative")

    start = video.selected_timestamp_start
    end = video.selected_timestamp_end
    if video.editor_can_choose_timing and (start is not None or end is not None):
        raise InvalidVideoError(
            f"Video {video.sequence_order}: explicit timestamps cannot be set "
            "when the editor chooses the timing"
        )
    if (start is not None and start < 0) or (end is not None and end < 0):
        raise InvalidVideoError(f"Video {video.sequence_order}: timestamps cannot be negative")
    if start is not None and end is not None and end <= start:
        raise InvalidVideoError(
            f"Video {video.sequence_order}: timestamp end ({end}s) must be after start ({start}s)"
        )


def can_start_video(
    videos: Sequence[BatchVideo],
    index: int,
    delivery_mode: DeliveryMode,
) -> bool:
    """Check whether the video at `index` has been released to the editor.

    Simultaneous batches release every video at once. Sequential batches
    release a video once the nearest earlier video that was not cancelled
    is completed; a cancelled video never holds up the rest of the batch.
    """
    if delivery_mode == DeliveryMode.SIMULTANEOUS or index == 0:
        return True
    if not 0 < index < len(videos):
        return False
    for previous in reversed(videos[:index]):
        status = previous.resolved_status
        if status == VideoStatus.CANCELLED:
            continue
        return status == VideoStatus.COMPLETED
    return True


# =============================================================================
# Single-video project lifecycle
# =============================================================================

_PROJECT_TRANSITIONS: set[tuple[ProjectStatus, ProjectStatus]] = {
    # Creator publishes the request
    (ProjectStatus.DRAFT, ProjectStatus.OPEN),
    # An editor takes the project
    (ProjectStatus.OPEN, ProjectStatus.IN_PROGRESS),
    # Editor submits the first version
    (ProjectStatus.IN_PROGRESS, ProjectStatus.IN_REVIEW),
    # Creator approves the first version or asks for corrections
    (ProjectStatus.IN_REVIEW, ProjectStatus.COMPLETED),
    (ProjectStatus.IN_REVIEW, ProjectStatus.REVISION_REQUESTED),
    # Editor submits corrections
    (ProjectStatus.REVISION_REQUESTED, ProjectStatus.PENDING_APPROVAL),
    # Creator approves, or pays for another round
    (ProjectStatus.PENDING_APPROVAL, ProjectStatus.COMPLETED),
    (ProjectStatus.PENDING_APPROVAL, ProjectStatus.REVISION_REQUESTED),
    # Cancellation
    (ProjectStatus.DRAFT, ProjectStatus.CANCELLED),
    (ProjectStatus.OPEN, ProjectStatus.CANCELLED),
    (ProjectStatus.IN_PROGRESS, ProjectStatus.CANCELLED),
    (ProjectStatus.IN_REVIEW, ProjectStatus.CANCELLED),
    (ProjectStatus.REVISION_REQUESTED, ProjectStatus.CANCELLED),
    (ProjectStatus.PENDING_APPROVAL, ProjectStatus.CANCELLED),
}


def can_transition_project(current: ProjectStatus, target: ProjectStatus) -> bool:
    """Check if a single-video project may move from `current` to `target`."""
    return (current, target) in _PROJECT_TRANSITIONS


def validate_project_transition(current: ProjectStatus, target: ProjectStatus) -> None:
    """Validate a single-video project state transition.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed.
    """
    if not can_transition_project(current, target):
        raise InvalidStateTransitionError(current.value, target.value)


def available_project_transitions(current: ProjectStatus) -> frozenset[ProjectStatus]:
    """Project statuses reachable from `current` in one step."""
    return frozenset(target for source, target in _PROJECT_TRANSITIONS if source == current)
