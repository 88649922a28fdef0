"""
Error taxonomy and the uniform result shape for canvas operations.

Operations raise ActionError subclasses internally and never let them
escape: the action_boundary decorator turns every expected failure into a
failed ActionResult, and every unexpected one into a generic failure that
is logged server-side with full detail.
"""

import functools
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    UNAUTHENTICATED = "unauthenticated"
    VALIDATION_FAILED = "validation_failed"
    FORBIDDEN = "forbidden"
    NOT_FOUND_OR_NOT_AUTHORIZED = "not_found_or_not_authorized"
    LIMIT_EXCEEDED = "limit_exceeded"
    BAD_REQUEST = "bad_request"
    UPSTREAM_DELIVERY_FAILED = "upstream_delivery_failed"
    UNEXPECTED = "unexpected"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ActionError(Exception):
    """Base for failures an operation reports to its caller."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthenticated(ActionError):
    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class ValidationFailed(ActionError):
    """Input rejected before any storage access, scoped to one field."""

    kind = ErrorKind.VALIDATION_FAILED

    def __init__(self, field: Optional[str], reason: str) -> None:
        super().__init__(reason)
        self.field = field
        self.reason = reason


class Forbidden(ActionError):
    kind = ErrorKind.FORBIDDEN


class NotFoundOrNotAuthorized(ActionError):
    """
    The target does not exist, or exists but belongs to someone else.

    The two cases share one message so callers cannot probe for other
    users' rows.
    """

    kind = ErrorKind.NOT_FOUND_OR_NOT_AUTHORIZED


class LimitExceeded(ActionError):
    kind = ErrorKind.LIMIT_EXCEEDED


class BadRequest(ActionError):
    kind = ErrorKind.BAD_REQUEST


class UpstreamDeliveryFailed(ActionError):
    """Webhook delivery failed. Reported as metadata, never as a failure."""

    kind = ErrorKind.UPSTREAM_DELIVERY_FAILED


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ActionResult:
    """
    Uniform outcome of every mutation.

    Either success with optional data, or failure with a user-facing
    message. kind and field let the presentation layer decide how to
    render the failure (inline for validation, generic otherwise).
    """
    success: bool
    data: Any = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    field: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        message: str,
        kind: ErrorKind = ErrorKind.UNEXPECTED,
        field: Optional[str] = None,
    ) -> "ActionResult":
        return cls(success=False, error=message, kind=kind, field=field)

    @classmethod
    def from_error(cls, error: ActionError) -> "ActionResult":
        return cls.fail(
            error.message,
            kind=error.kind,
            field=getattr(error, "field", None),
        )


def action_boundary(failure_message: str) -> Callable:
    """
    Convert an operation's exceptions into ActionResult failures.

    Works for both plain and async methods. A return value that is not
    already an ActionResult is wrapped as successful data.
    """

    def decorator(func: Callable) -> Callable:
        def on_unexpected(exc: Exception) -> ActionResult:
            logger.error(
                "Operation failed unexpectedly",
                extra={"operation": func.__qualname__, "error": str(exc)},
                exc_info=exc,
            )
            return ActionResult.fail(failure_message, kind=ErrorKind.UNEXPECTED)

        def wrap(value: Any) -> ActionResult:
            if isinstance(value, ActionResult):
                return value
            return ActionResult.ok(value)

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs) -> ActionResult:
                try:
                    return wrap(await func(*args, **kwargs))
                except ActionError as e:
                    return ActionResult.from_error(e)
                except Exception as e:
                    return on_unexpected(e)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> ActionResult:
            try:
                return wrap(func(*args, **kwargs))
            except ActionError as e:
                return ActionResult.from_error(e)
            except Exception as e:
                return on_unexpected(e)

        return wrapper

    return decorator
