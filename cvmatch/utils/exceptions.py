"""
Custom Exception Classes for the CV Match API
"""
from enum import Enum
from typing import Dict, Any

from fastapi import HTTPException


class FailureReason(str, Enum):
    """Why a match session ended in the failed state"""
    EMPTY_JOB_DESCRIPTION = "empty_job_description"
    OVERSIZED_JOB_DESCRIPTION = "oversized_job_description"
    INVALID_INPUT = "invalid_input"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    TRANSPORT_ERROR = "transport_error"
    ORACLE_UNAVAILABLE = "oracle_unavailable"
    MALFORMED_OUTPUT = "malformed_output"
    SCHEMA_VIOLATION = "schema_violation"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class UserAction(str, Enum):
    """What the caller should tell the user to do about a failure"""
    FIX_INPUT = "fix_input"
    TRY_AGAIN = "try_again"
    CONTACT_OPERATOR = "contact_operator"
    SERVICE_UNAVAILABLE = "service_unavailable"


class CVMatchBaseException(Exception):
    """Base exception for the CV Match API"""

    status_code: int = 500
    retryable: bool = False
    user_action: UserAction = UserAction.SERVICE_UNAVAILABLE
    reason: FailureReason = FailureReason.INTERNAL

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "reason": self.reason.value,
            "retryable": self.retryable,
            "user_action": self.user_action.value,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


# ----------------------
# Caller input
# ----------------------

class ValidationError(CVMatchBaseException):
    """Raised when caller input is malformed"""

    status_code = 400
    user_action = UserAction.FIX_INPUT
    reason = FailureReason.INVALID_INPUT

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        kwargs.setdefault('error_code', "VALIDATION_ERROR")
        super().__init__(message, details=details, **kwargs)


class EmptyJobDescription(ValidationError):
    """Raised when the job description is empty after trimming"""

    reason = FailureReason.EMPTY_JOB_DESCRIPTION

    def __init__(self, message: str = "Job description is required", **kwargs):
        super().__init__(message, field="jobDescription", error_code="EMPTY_JOB_DESCRIPTION", **kwargs)


class OversizedJobDescription(ValidationError):
    """Raised when the job description exceeds the configured ceiling"""

    reason = FailureReason.OVERSIZED_JOB_DESCRIPTION

    def __init__(self, length: int, limit: int, **kwargs):
        details = kwargs.pop('details', None) or {}
        details.update({"length": length, "limit": limit})
        super().__init__(
            f"Job description is too long ({length} characters, limit is {limit})",
            field="jobDescription",
            error_code="OVERSIZED_JOB_DESCRIPTION",
            details=details,
            **kwargs
        )


class UnsupportedDocumentType(ValidationError):
    """Raised when an uploaded document has a type we cannot read"""

    def __init__(self, mime_type: str, **kwargs):
        super().__init__(
            f"Unsupported document type: {mime_type}",
            field="file",
            value=mime_type,
            error_code="UNSUPPORTED_DOCUMENT_TYPE",
            **kwargs
        )


class ExtractionError(ValidationError):
    """Raised when no text could be extracted from an uploaded document"""

    def __init__(self, message: str = "Failed to extract text from file", **kwargs):
        kwargs.setdefault('error_code', "EXTRACTION_ERROR")
        super().__init__(message, field="file", **kwargs)


# ----------------------
# Oracle transport
# ----------------------

class OracleError(CVMatchBaseException):
    """Raised when the scoring oracle call fails"""

    retryable = True
    reason = FailureReason.TRANSPORT_ERROR

    def __init__(self, message: str, upstream_status: int = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if upstream_status:
            details['upstream_status'] = upstream_status
        kwargs.setdefault('error_code', "ORACLE_ERROR")
        super().__init__(message, details=details, **kwargs)


class RateLimited(OracleError):
    """Raised when the oracle signals throttling"""

    status_code = 429
    user_action = UserAction.TRY_AGAIN
    reason = FailureReason.RATE_LIMITED

    def __init__(self, message: str = "Rate limit exceeded. Please try again later.", **kwargs):
        kwargs.setdefault('error_code', "RATE_LIMITED")
        super().__init__(message, **kwargs)


class QuotaExhausted(OracleError):
    """Raised when oracle credits are exhausted"""

    status_code = 402
    retryable = False
    user_action = UserAction.CONTACT_OPERATOR
    reason = FailureReason.QUOTA_EXHAUSTED

    def __init__(self, message: str = "AI credits exhausted. Please add credits.", **kwargs):
        kwargs.setdefault('error_code', "QUOTA_EXHAUSTED")
        super().__init__(message, **kwargs)


class TransportError(OracleError):
    """Raised on network failures and unexpected non-2xx oracle responses"""

    def __init__(self, message: str = "AI gateway error", **kwargs):
        kwargs.setdefault('error_code', "TRANSPORT_ERROR")
        super().__init__(message, **kwargs)


class OracleUnavailable(OracleError):
    """Raised when the oracle answers with a 5xx"""

    reason = FailureReason.ORACLE_UNAVAILABLE

    def __init__(self, message: str = "AI service is temporarily unavailable", **kwargs):
        kwargs.setdefault('error_code', "ORACLE_UNAVAILABLE")
        super().__init__(message, **kwargs)


# ----------------------
# Oracle output
# ----------------------

class OracleOutputError(CVMatchBaseException):
    """Raised when the oracle produced unusable output"""

    retryable = True
    user_action = UserAction.TRY_AGAIN


class MalformedOutput(OracleOutputError):
    """Raised when oracle output is not a single JSON object"""

    reason = FailureReason.MALFORMED_OUTPUT

    def __init__(self, message: str = "AI response was not valid JSON", **kwargs):
        kwargs.setdefault('error_code', "MALFORMED_OUTPUT")
        super().__init__(message, **kwargs)


class SchemaViolation(OracleOutputError):
    """Raised when oracle output does not satisfy the result contract"""

    reason = FailureReason.SCHEMA_VIOLATION

    def __init__(self, message: str, field: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if field:
            details['field'] = field
        kwargs.setdefault('error_code', "SCHEMA_VIOLATION")
        super().__init__(message, details=details, **kwargs)


# ----------------------
# Session lifecycle
# ----------------------

class OracleTimeout(CVMatchBaseException):
    """Raised when the oracle call exceeds the request timeout"""

    retryable = True
    user_action = UserAction.TRY_AGAIN
    reason = FailureReason.TIMEOUT

    def __init__(self, timeout: float, **kwargs):
        details = kwargs.pop('details', None) or {}
        details['timeout_seconds'] = timeout
        super().__init__(
            f"AI analysis timed out after {timeout:g}s",
            error_code="TIMEOUT",
            details=details,
            **kwargs
        )


class AnalysisCancelled(CVMatchBaseException):
    """Raised when an in-flight analysis is cancelled"""

    retryable = True
    user_action = UserAction.TRY_AGAIN
    reason = FailureReason.CANCELLED

    def __init__(self, message: str = "Analysis was cancelled", **kwargs):
        super().__init__(message, error_code="CANCELLED", **kwargs)


class ConfigurationError(CVMatchBaseException):
    """Raised when configuration is invalid or missing"""

    reason = FailureReason.CONFIGURATION

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


class ProcessingError(CVMatchBaseException):
    """Raised when an analysis fails for an unclassified reason"""

    def __init__(self, message: str, stage: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if stage:
            details['stage'] = stage
        super().__init__(message, error_code="PROCESSING_ERROR", details=details, **kwargs)


class SessionStateError(RuntimeError):
    """Raised on an illegal match session transition (programmer error)"""


# HTTP Exception Mapping
def map_to_http_exception(exc: CVMatchBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    detail = {
        "error": exc.message,
        "error_code": exc.error_code,
        "reason": exc.reason.value,
        "retryable": exc.retryable,
        "user_action": exc.user_action.value,
    }
    if exc.details:
        detail["details"] = exc.details

    return HTTPException(status_code=exc.status_code, detail=detail)
