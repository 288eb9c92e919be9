from typing import Optional


class ContentEngineError(Exception):
    """
    Base error for the content engine.

    Every subclass carries an HTTP status and a machine-readable
    reason code so API handlers can report it without string matching.
    """
    status_code = 500
    default_reason = "internal_error"

    def __init__(self, message: str, *, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason or self.default_reason


class InvariantViolation(ContentEngineError):
    status_code = 400
    default_reason = "invalid_record"


class AuthorizationError(ContentEngineError):
    status_code = 401
    default_reason = "missing_token"

    def __init__(self, message: str, *, reason: Optional[str] = None, status_code: int = 401):
        super().__init__(message, reason=reason)
        self.status_code = status_code


class ConflictError(ContentEngineError):
    status_code = 409
    default_reason = "conflict"


class NotFoundError(ContentEngineError):
    status_code = 404
    default_reason = "not_found"


class SelectorAmbiguityError(ContentEngineError):
    """Raised on the editor save path when a locator does not resolve to exactly one node."""
    default_reason = "selector_ambiguous"

    def __init__(self, message: str, *, selector: str, matches: int):
        super().__init__(message)
        self.selector = selector
        self.matches = matches


class UniqueConstraintError(ContentEngineError):
    """Storage-layer uniqueness failure, raised after the optimistic probe passed."""
    status_code = 409
    default_reason = "unique_constraint"

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message, reason=f"{field}_conflict" if field else None)
        self.field = field
