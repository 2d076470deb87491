"""Database layer."""

from batch_engine.db.models import Base, BatchVideoModel, ProjectModel
from batch_engine.db.session import get_session, get_session_context, init_db

__all__ = [
    "Base",
    "get_session",
    "get_session_context",
    "init_db",
    # Models
    "BatchVideoModel",
    "ProjectModel",
]
