"""Error taxonomy for the booking engine.

Every failure the engine reports belongs to one of four families. The HTTP
layer maps them to status codes; the engine itself never deals in statuses.
"""


class BookingEngineError(Exception):
    """Base class for errors surfaced to callers of the engine."""

    default_code = "error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ValidationError(BookingEngineError):
    """A required field is missing or malformed. The caller must re-prompt."""

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        fields: list[str] | None = None,
    ) -> None:
        super().__init__(message, code)
        self.fields = fields or []


class NotFoundError(BookingEngineError):
    """Unknown id, or an id owned by another professional.

    Both cases share one message so that ids cannot be enumerated across
    tenants.
    """

    default_code = "not_found"


class ConflictError(BookingEngineError):
    """The requested slot (or state change) is not available."""

    default_code = "slot_unavailable"


class InvalidTransitionError(ConflictError):
    """A status change was requested from a terminal state."""

    default_code = "invalid_transition"


class TransientError(BookingEngineError):
    """The store timed out or is unavailable.

    Nothing may be assumed about partial success; retry the whole operation.
    """

    default_code = "store_unavailable"
