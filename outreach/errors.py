"""
Error taxonomy for structural operations.

- ValidationError / InvalidIdError: bad input, raised before any remote call
- NotFoundError: a referenced company id is absent
- UpstreamUnavailableError: a Sheets read or write failed or timed out
- InconsistentStateError: the plan references rows that moved since the read
- PartialApplyError: a write failed after others succeeded (no rollback)
"""

from typing import Any


class OutreachError(Exception):
    """Base class for every error surfaced to callers."""

    error_code = "outreach_error"
    http_status = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ValidationError(OutreachError):
    error_code = "validation_error"
    http_status = 400


class InvalidIdError(ValidationError):
    error_code = "invalid_id"


class NotFoundError(OutreachError):
    error_code = "not_found"
    http_status = 404


class UpstreamUnavailableError(OutreachError):
    error_code = "upstream_unavailable"
    http_status = 502


class SheetNotFoundError(UpstreamUnavailableError):
    error_code = "sheet_not_found"


class InconsistentStateError(OutreachError):
    error_code = "inconsistent_state"
    http_status = 409


class OperationInProgressError(OutreachError):
    error_code = "operation_in_progress"
    http_status = 409


class PartialApplyError(OutreachError):
    """
    Raised when the apply phase fails midway.

    The stores may be partially mutated. Re-running repair_gaps / reconcile
    converges them again.
    """

    error_code = "partial_apply"
    http_status = 500

    def __init__(
        self,
        operation: str,
        failed_step: str,
        completed_steps: list[str],
        cause: Exception,
        plan: dict[str, Any] | None = None,
    ):
        super().__init__(
            f"{operation} failed during '{failed_step}' after "
            f"{len(completed_steps)} completed step(s): {cause}",
            details={
                "operation": operation,
                "failed_step": failed_step,
                "completed_steps": list(completed_steps),
                "plan": plan or {},
                "atomic": False,
            },
        )
        self.operation = operation
        self.failed_step = failed_step
        self.completed_steps = list(completed_steps)
        self.cause = cause
