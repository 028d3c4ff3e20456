"""Service-layer exceptions, surfaced to users as flash messages."""


class ServiceError(ValueError):
    """Base class for expected, user-facing service failures."""


class ValidationError(ServiceError):
    """Input breaks a form-level rule."""


class WorkflowError(ServiceError):
    """Requested status transition is not allowed."""
