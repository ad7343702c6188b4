from __future__ import annotations

from typing import Any, Optional


class MarketerError(RuntimeError):
    status_code = 500

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(MarketerError):
    status_code = 404


class BusinessRuleError(MarketerError):
    """A request that is well formed but breaks a domain rule.

    ``context`` is merged into the error response next to ``detail`` so clients
    can render limits and remaining amounts without parsing the message.
    """

    status_code = 400

    def __init__(self, message: str, *, context: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.context = context or {}


class ForbiddenError(MarketerError):
    status_code = 403


class ConflictError(MarketerError):
    status_code = 409


class UpstreamError(MarketerError):
    status_code = 502


class InvalidTaskTransitionError(BusinessRuleError):
    pass


class StaleRecordError(ConflictError):
    pass


class ReportNotFoundError(NotFoundError):
    pass


class InsufficientBalanceError(BusinessRuleError):
    pass


class DailyLimitExceededError(BusinessRuleError):
    pass
