class RubricSyncError(Exception):
    """Base class for all rubric and script-sync domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except RubricSyncError`` clause can catch any domain
    error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class NotFoundError(RubricSyncError):
    """Raised when a requested entity does not exist."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail)


class RubricNotFoundError(NotFoundError):
    """Raised when a rubric configuration (or the active one) is missing."""

    def __init__(self, detail: str = "Rubric configuration not found"):
        super().__init__(detail)


class ScriptNotFoundError(NotFoundError):
    """Raised when a sales script does not exist."""

    def __init__(self, detail: str = "Sales script not found"):
        super().__init__(detail)


class SyncLogNotFoundError(NotFoundError):
    """Raised when a rubric sync log does not exist."""

    def __init__(self, detail: str = "Sync log not found"):
        super().__init__(detail)


class InvalidStateError(RubricSyncError):
    """Raised when an operation is attempted in the wrong lifecycle phase.

    Examples: editing an activated rubric, deleting the active script,
    applying a sync log that is not awaiting approval.
    """

    def __init__(self, detail: str = "Operation not allowed in the current state"):
        super().__init__(detail)


class WeightValidationError(RubricSyncError):
    """Raised when enabled category weights do not sum to 100.

    ``validation`` carries the full :class:`WeightValidation` result so
    handlers can report the total and the remaining allocation.
    """

    def __init__(self, detail: str = "Category weights must sum to 100", validation=None):
        self.validation = validation
        super().__init__(detail)


class UnknownChangeKeyError(RubricSyncError):
    """Raised when an approval references a change that was never proposed."""

    def __init__(self, detail: str = "Unknown change key"):
        super().__init__(detail)


class ActivationConflictError(RubricSyncError):
    """Raised when a concurrent activation won the race.

    Retryable: re-fetch the active rubric and decide whether to activate
    again.
    """

    def __init__(
        self,
        detail: str = "Another rubric version was activated concurrently; retry",
    ):
        super().__init__(detail)


class AnalysisError(RubricSyncError):
    """Raised when the reasoning service fails or returns unusable output.

    The sync workflow records it on the sync log instead of surfacing it
    to the caller.
    """

    def __init__(self, detail: str = "Script analysis failed"):
        super().__init__(detail)
