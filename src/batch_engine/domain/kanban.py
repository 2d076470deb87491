"""Kanban board projection.

Maps a project's effective status to a board column. Archiving wins over
every status; statuses without a column land in draft so no project
disappears from every view.
"""

from collections.abc import Callable, Iterable
from typing import TypeVar

from batch_engine.domain.enums import KanbanColumn, ProjectStatus

T = TypeVar("T")

KANBAN_COLUMNS: tuple[KanbanColumn, ...] = (
    KanbanColumn.DRAFT,
    KanbanColumn.OPEN,
    KanbanColumn.IN_PROGRESS,
    KanbanColumn.IN_REVIEW,
    KanbanColumn.COMPLETED,
    KanbanColumn.CANCELLED,
    KanbanColumn.ARCHIVED,
)

_STATUS_COLUMNS: dict[ProjectStatus, KanbanColumn] = {
    ProjectStatus.DRAFT: KanbanColumn.DRAFT,
    ProjectStatus.OPEN: KanbanColumn.OPEN,
    ProjectStatus.IN_PROGRESS: KanbanColumn.IN_PROGRESS,
    ProjectStatus.REVISION_REQUESTED: KanbanColumn.IN_PROGRESS,
    ProjectStatus.PENDING_APPROVAL: KanbanColumn.IN_REVIEW,
    ProjectStatus.IN_REVIEW: KanbanColumn.IN_REVIEW,
    ProjectStatus.COMPLETED: KanbanColumn.COMPLETED,
    ProjectStatus.CANCELLED: KanbanColumn.CANCELLED,
}


def project_to_kanban_column(effective_status: ProjectStatus | str | None, is_archived: bool) -> KanbanColumn:
    """Column a project belongs in."""
    if is_archived:
        return KanbanColumn.ARCHIVED
    try:
        status = ProjectStatus(effective_status)
    except ValueError:
        return KanbanColumn.DRAFT
    return _STATUS_COLUMNS.get(status, KanbanColumn.DRAFT)


def group_by_column(
    items: Iterable[T],
    column_of: Callable[[T], KanbanColumn],
) -> dict[KanbanColumn, list[T]]:
    """Distribute items over every board column, in board order."""
    groups: dict[KanbanColumn, list[T]] = {column: [] for column in KANBAN_COLUMNS}
    for item in items:
        groups[column_of(item)].append(item)
    return groups


def visible_columns(
    groups: dict[KanbanColumn, list[T]],
    archived_view: bool = False,
) -> list[KanbanColumn]:
    """Columns to display for a grouped board.

    The archived view shows only the archived column. Otherwise archived is
    hidden and draft is shown only when it holds something.
    """
    if archived_view:
        return [KanbanColumn.ARCHIVED]
    columns = []
    for column in KANBAN_COLUMNS:
        if column == KanbanColumn.ARCHIVED:
            continue
        if column == KanbanColumn.DRAFT and not groups.get(column):
            continue
        columns.append(column)
    return columns
