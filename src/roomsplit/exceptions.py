"""Custom exceptions for RoomSplit."""


class RoomSplitError(Exception):
    """Base exception for all RoomSplit errors."""

    status = 500
    kind = "InternalError"

    def to_response(self) -> dict:
        """Render the error as the ``{status, message}`` body an outer layer returns."""
        return {"status": self.status, "message": str(self)}


class ConfigurationError(RoomSplitError):
    """Raised when configuration is invalid or missing."""

    kind = "ConfigurationError"


class ValidationError(RoomSplitError):
    """Raised when caller input is rejected (bad amount, blank text, malformed id)."""

    status = 400
    kind = "ValidationError"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)

    def to_response(self) -> dict:
        response = super().to_response()
        response["field"] = self.field
        return response


class NotFoundError(RoomSplitError):
    """Raised when a room, expense or member is absent or not visible to the caller."""

    status = 404
    kind = "NotFound"


class ForbiddenError(RoomSplitError):
    """Raised when the caller is not the payer or creator an operation requires."""

    status = 403
    kind = "Forbidden"


class ConflictError(RoomSplitError):
    """Raised when an expense changed between load and write."""

    status = 409
    kind = "Conflict"

    def __init__(self, expense_id: str, expected_version: int):
        self.expense_id = expense_id
        self.expected_version = expected_version
        super().__init__(
            f"Expense {expense_id} was modified concurrently "
            f"(expected version {expected_version}). Reload and retry."
        )


class DataIntegrityError(RoomSplitError):
    """Raised when stored ledger state violates an invariant."""

    kind = "DataIntegrityError"
