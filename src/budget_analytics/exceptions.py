"""Custom exceptions for the budget analytics engine.

This module provides a hierarchy of exception classes for consistent error
handling across report building, alerting and export. All exceptions inherit
from BudgetAnalyticsError and carry an explicit ``kind`` so boundary layers
can map them to transport status codes without inspecting message text.

Example:
    try:
        report = await service.get_budget_performance_report(
            user_id, budget_id, start, end
        )
    except BudgetAnalyticsError as e:
        if e.kind is ErrorKind.NOT_FOUND:
            return 404
        if e.kind is ErrorKind.ACCESS_DENIED:
            return 403
        raise
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Discriminator for engine errors."""

    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    UPSTREAM = "upstream"
    VALIDATION = "validation"


class BudgetAnalyticsError(Exception):
    """Base exception for all budget analytics errors.

    Attributes:
        message: Human-readable error description, kept for logging.
        kind: Machine-readable error category.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.
    """

    default_kind: ErrorKind = ErrorKind.UPSTREAM

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[ErrorKind] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        """Initialize BudgetAnalyticsError.

        Args:
            message: Human-readable error description.
            kind: Error category. Defaults to the class-level default_kind.
            details: Optional dictionary with additional context about the error.
            recoverable: Whether the error is potentially recoverable through
                retry or alternative approaches. Defaults to False.
        """
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"kind={self.kind.value!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class BudgetNotFoundError(BudgetAnalyticsError):
    """Error raised when a budget does not exist for the requesting user.

    The message defaults to the literal ``Budget not found``.

    Example:
        >>> raise BudgetNotFoundError(budget_id="b-42")
        BudgetNotFoundError: Budget not found
    """

    default_kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str = "Budget not found",
        *,
        budget_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=False)
        self.budget_id = budget_id

        if budget_id:
            self.details["budget_id"] = budget_id


class AccessDeniedError(BudgetAnalyticsError):
    """Error raised when a budget exists but belongs to another user.

    The message always contains the substring ``access denied``.
    """

    default_kind = ErrorKind.ACCESS_DENIED

    def __init__(
        self,
        message: str = "Budget access denied",
        *,
        budget_id: Optional[str] = None,
        user_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        if "access denied" not in message.lower():
            message = f"{message}: access denied"
        super().__init__(message, details=details, recoverable=False)
        self.budget_id = budget_id
        self.user_id = user_id

        if budget_id:
            self.details["budget_id"] = budget_id
        if user_id:
            self.details["user_id"] = user_id


class UpstreamError(BudgetAnalyticsError):
    """Error a data provider may raise to signal its own failure.

    The engine never wraps foreign exceptions in this class; providers that
    want a typed failure raise it themselves.

    Attributes:
        provider: Name of the provider that failed.
    """

    default_kind = ErrorKind.UPSTREAM

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.provider = provider

        if provider:
            self.details["provider"] = provider


class ValidationError(BudgetAnalyticsError):
    """Error raised when caller-supplied options are invalid.

    Attributes:
        field: The field that failed validation.
        value: The invalid value.
        constraint: The validation constraint that was violated.
    """

    default_kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=True)
        self.field = field
        self.value = value
        self.constraint = constraint

        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = value
        if constraint:
            self.details["constraint"] = constraint


__all__ = [
    "ErrorKind",
    "BudgetAnalyticsError",
    "BudgetNotFoundError",
    "AccessDeniedError",
    "UpstreamError",
    "ValidationError",
]
