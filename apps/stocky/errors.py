from typing import Optional


class StockyError(Exception):
    code = "error"

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(StockyError):
    """Rejected input. Raised before anything is written."""

    code = "validation_error"

    def __init__(self, message: str):
        super().__init__(message, 400)


class ConflictError(StockyError):
    """
    A concurrent request with the same idempotency key won the race.
    existing_id is the winning reward id when it could be resolved.
    """

    code = "conflict"

    def __init__(self, message: str, existing_id: Optional[int] = None):
        self.existing_id = existing_id
        super().__init__(message, 409)


class StorageError(StockyError):
    code = "storage_error"

    def __init__(self, message: str):
        super().__init__(message, 500)


class ConstraintViolation(StorageError):
    """Unique constraint rejected a write (Postgres 23505)."""

    code = "constraint_violation"

    def __init__(self, message: str, constraint: Optional[str] = None):
        self.constraint = constraint
        super().__init__(message)


class SchedulerTickError(StockyError):
    code = "scheduler_tick_error"

    def __init__(self, message: str):
        super().__init__(message, 500)
