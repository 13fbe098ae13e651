"""Error taxonomy shared by every PrintFlow bounded context.

Each error maps to one HTTP status in the API layer (see ``app.py``):

    ValidationError      → 400
    Unauthorized         → 401
    NotFound             → 404
    ConcurrencyConflict  → 409
    PersistenceError     → 500

NotificationError is never surfaced to callers; notification code logs it
and carries on.
"""


class FulfillmentError(Exception):
    """Base class for all PrintFlow errors."""

    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FulfillmentError):
    """Missing/malformed input or an illegal state transition.

    ``messages`` follows the ``{field: [error, ...]}`` shape so API callers
    get field-level detail.
    """

    status_code = 400

    def __init__(self, messages: dict[str, list[str]]) -> None:
        self.messages = messages
        flat = "; ".join(f"{field}: {', '.join(errors)}" for field, errors in messages.items())
        super().__init__(flat)


class Unauthorized(FulfillmentError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class NotFound(FulfillmentError):
    status_code = 404


class PersistenceError(FulfillmentError):
    """The unit of work could not be committed."""

    status_code = 500


class ConcurrencyConflict(PersistenceError):
    """A row changed underneath us (optimistic version check failed)."""

    status_code = 409


class NotificationError(FulfillmentError):
    """An outbound notification could not be delivered. Best-effort only."""
