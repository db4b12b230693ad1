"""
Service-layer exceptions.

All subclass ValueError so callers that only care about "bad request" can
keep catching ValueError; routes map each subclass to its own status code.
"""


class NotFoundError(ValueError):
    """Raised when a referenced record does not exist."""


class PermissionDeniedError(ValueError):
    """Raised when the acting user may not perform the operation."""


class ConflictError(ValueError):
    """Raised when the operation conflicts with the record's current state."""


class ConfirmationRequiredError(ConflictError):
    """Raised when a destructive operation needs explicit confirmation."""

    def __init__(self, message: str, matches_count: int = 0):
        super().__init__(message)
        self.matches_count = matches_count
