"""
Exceptions raised while building or executing a workflow run.

Every error that aborts a run derives from WorkflowEngineError so trigger
sources can report it uniformly. Unresolved {{placeholders}} are deliberately
not represented here: they degrade to literal text instead of failing.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of errors for classification in run records."""
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    EXTERNAL = "external"
    EXECUTION = "execution"


class WorkflowEngineError(Exception):
    """Base exception for all workflow engine errors."""

    category: ErrorCategory = ErrorCategory.EXECUTION

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging and API responses."""
        return {
            "error": self.message,
            "category": self.category.value,
            "details": self.details,
            "exception_type": self.__class__.__name__,
        }


class ActionNotFoundError(WorkflowEngineError):
    """A node references an integration/action pair that is not registered."""

    category = ErrorCategory.CONFIGURATION

    def __init__(self, integration_id: str, action_id: str):
        super().__init__(
            f"Action {action_id} not found in {integration_id}",
            details={"integration_id": integration_id, "action_id": action_id},
        )
        self.integration_id = integration_id
        self.action_id = action_id


class DuplicateIntegrationError(WorkflowEngineError):
    """An integration id was registered twice."""

    category = ErrorCategory.CONFIGURATION

    def __init__(self, integration_id: str):
        super().__init__(
            f"Integration '{integration_id}' is already registered",
            details={"integration_id": integration_id},
        )


class ActionValidationError(WorkflowEngineError):
    """A handler's resolved input is missing or malformed."""

    category = ErrorCategory.VALIDATION


class ExternalCallError(WorkflowEngineError):
    """An outbound call to a third-party provider failed."""

    category = ErrorCategory.EXTERNAL

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(
            f"{provider} Error: {message}",
            details={"provider": provider, "status_code": status_code},
        )
        self.provider = provider
        self.status_code = status_code
