"""
Error taxonomy and normalization for the design workflow.

Every failure raised by the core is an ``ApplicationError`` subclass carrying a
machine-readable code, an HTTP-like status classification and diagnostic
metadata. ``normalize_error`` folds any exception (ours or foreign) into a
single ``ErrorReport`` shape so logging and the HTTP layer only ever handle
one structure.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorCategory(str, Enum):
    """Categories of errors raised by the design workflow."""
    VALIDATION = "validation"
    AI_SERVICE = "ai_service"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class ErrorClassification(str, Enum):
    """Who can act on an error: the caller (4xx) or the operator (5xx)."""
    CLIENT = "client"
    SERVER = "server"


class ApplicationError(Exception):
    """Base application error with structured error information."""

    category = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        code: str = "APPLICATION_ERROR",
        status_code: int = 500,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "metadata": self.metadata,
        }


class ValidationError(ApplicationError):
    """Raised when a precondition, hand-authored input or diagram is invalid."""

    category = ErrorCategory.VALIDATION

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", 400, metadata)


class AuthenticationError(ApplicationError):
    """Raised when a caller token cannot be verified."""

    category = ErrorCategory.AUTHENTICATION

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message, "AUTHENTICATION_ERROR", 401, metadata)


class NotFoundError(ApplicationError):
    """Raised when a design document does not exist for the caller."""

    category = ErrorCategory.NOT_FOUND

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NOT_FOUND", 404, metadata)


class AIGenerationError(ApplicationError):
    """Raised when the text-generation backend returns no usable content."""

    category = ErrorCategory.AI_SERVICE

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message, "AI_GENERATION_ERROR", 500, metadata)


class PersistenceError(ApplicationError):
    """Raised when loading or saving a document fails."""

    category = ErrorCategory.PERSISTENCE

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message, "PERSISTENCE_ERROR", 500, metadata)


class ConfigurationError(ApplicationError):
    """Raised when configuration is invalid or missing."""

    category = ErrorCategory.CONFIGURATION

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIGURATION_ERROR", 500, metadata)


class ErrorReport(BaseModel):
    """Normalized error shape shared by logging and the HTTP layer."""
    kind: str
    code: str
    message: str
    status_code: int
    classification: ErrorClassification
    category: ErrorCategory
    metadata: Dict[str, Any] = Field(default_factory=dict)
    details: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


def _extract_error_details(error: BaseException) -> Optional[str]:
    """Extract cause/context information from a foreign exception."""
    details = []

    if error.args:
        details.append(f"Arguments: {error.args}")

    if error.__cause__:
        details.append(f"Caused by: {error.__cause__!r}")
    elif error.__context__:
        details.append(f"Context: {error.__context__!r}")

    return "; ".join(details) if details else None


def normalize_error(error: BaseException) -> ErrorReport:
    """Convert any exception into an ``ErrorReport``."""
    if isinstance(error, ApplicationError):
        app_error = error
    else:
        app_error = ApplicationError(
            str(error) or "An unknown error occurred",
            "UNKNOWN_ERROR",
            500,
            {"original_error": type(error).__name__},
        )

    classification = (
        ErrorClassification.CLIENT
        if 400 <= app_error.status_code < 500
        else ErrorClassification.SERVER
    )

    return ErrorReport(
        kind=type(error).__name__,
        code=app_error.code,
        message=app_error.message,
        status_code=app_error.status_code,
        classification=classification,
        category=app_error.category,
        metadata=dict(app_error.metadata),
        details=None if isinstance(error, ApplicationError) else _extract_error_details(error),
    )


def log_error(logger: logging.Logger, error: BaseException, **context: Any) -> ErrorReport:
    """Log an error at a level matching its classification and return the report."""
    report = normalize_error(error)
    payload = report.model_dump(mode="json")
    if context:
        payload["context"] = context

    if report.classification is ErrorClassification.SERVER:
        logger.error("%s: %s", report.code, report.message, extra={"error": payload})
    else:
        logger.warning("%s: %s", report.code, report.message, extra={"error": payload})
    return report
