"""Dispatch error taxonomy.

Every failure the engine reports to a caller is a ``DispatchError`` carrying a
stable machine-readable ``code``, a human message and optional ``details``.
The API layer maps each subclass to an HTTP status; anything that is not a
``DispatchError`` is treated as an internal fault.
"""


class DispatchError(Exception):
    code = "DISPATCH_ERROR"

    def __init__(self, message: str, code: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}


class ServiceConfigError(DispatchError):
    """A stored service configuration is malformed. Server-side fault."""

    code = "INVALID_SERVICE_CONFIG"


class OrderValidationError(DispatchError):
    """The submitted order payload is malformed or incomplete."""

    code = "VALIDATION_ERROR"


class BusinessRuleError(DispatchError):
    """A client-correctable rule blocked the operation before any write."""

    code = "BUSINESS_RULE_VIOLATION"


class CostError(BusinessRuleError):
    code = "COST_CALCULATION_FAILED"


class StateTransitionError(DispatchError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current_status: str, attempted_status: str, message: str | None = None):
        super().__init__(
            message or f"Cannot transition from {current_status} to {attempted_status}",
            details={"current_status": current_status, "attempted_status": attempted_status},
        )
        self.current_status = current_status
        self.attempted_status = attempted_status


class TransitionConflictError(DispatchError):
    """The order moved on between the caller's read and its write."""

    code = "TRANSITION_CONFLICT"


class AuthorizationError(DispatchError):
    code = "FORBIDDEN"


class NotFoundError(DispatchError):
    code = "NOT_FOUND"
