"""Domain enumerations."""

from enum import StrEnum


class ProjectStatus(StrEnum):
    """Status of a project as shown to creators and editors."""

    DRAFT = "draft"
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    REVISION_REQUESTED = "revision_requested"
    PENDING_APPROVAL = "pending_approval"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


class VideoStatus(StrEnum):
    """Status of a single video slot inside a project."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    REVISION_REQUESTED = "revision_requested"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: "str | VideoStatus | None") -> "VideoStatus | None":
        """Parse a stored status value, resolving legacy aliases.

        Returns None for values that are neither a known status nor an alias.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        normalized = str(value).strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            return _LEGACY_VIDEO_STATUSES.get(normalized)


# Older rows were written with the delivery workflow's vocabulary
_LEGACY_VIDEO_STATUSES: dict[str, VideoStatus] = {
    "delivered": VideoStatus.IN_REVIEW,
    "awaiting_review": VideoStatus.IN_REVIEW,
    "revision": VideoStatus.REVISION_REQUESTED,
    "in_revision": VideoStatus.REVISION_REQUESTED,
    "approved": VideoStatus.COMPLETED,
}


class DeliveryMode(StrEnum):
    """How the videos of a batch are delivered."""

    SEQUENTIAL = "sequential"  # One at a time, in order
    SIMULTANEOUS = "simultaneous"  # All together, at a premium

    @classmethod
    def parse(cls, value: "str | DeliveryMode | None") -> "DeliveryMode":
        """Get delivery mode from a stored value, defaulting to sequential."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.SEQUENTIAL


class KanbanColumn(StrEnum):
    """Display columns of the project board."""

    DRAFT = "draft"
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"
