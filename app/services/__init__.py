"""Business logic services."""
from .errors import ServiceError, ValidationError, WorkflowError

__all__ = ['ServiceError', 'ValidationError', 'WorkflowError']
