"""Domain error types.

All errors inherit from BatchEngineError for easy catching.
"""


class BatchEngineError(Exception):
    """Base exception for all batch engine failures."""

    pass


class InvalidBatchConfigurationError(BatchEngineError):
    """Raised when a batch request violates platform policy."""

    pass


class InvalidVideoError(BatchEngineError):
    """Raised when a video record fails validation."""

    pass


class InvalidStateTransitionError(BatchEngineError):
    """Raised when attempting an illegal video or project state transition."""

    def __init__(self, current_state: str, target_state: str):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(f"Invalid state transition: {current_state} -> {target_state}")


class ArchiveNotAllowedError(BatchEngineError):
    """Raised when a project cannot be archived yet."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
