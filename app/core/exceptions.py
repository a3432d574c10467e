"""
Error taxonomy for the ingestion pipeline.

Every error carries a stable ``code``, a human-readable ``message`` and the
HTTP status the API layer renders it with.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from fastapi import status


@dataclass(frozen=True)
class FieldViolation:
    """One field that failed validation and why."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message}


class IngestionError(Exception):
    """Base class for all ingestion errors."""

    code = "INGESTION_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class OracleUnavailable(IngestionError):
    """The extraction oracle could not be reached or failed at transport level."""

    code = "ORACLE_UNAVAILABLE"
    status_code = status.HTTP_502_BAD_GATEWAY


class OracleTimeout(IngestionError):
    """The extraction oracle did not answer within the configured timeout."""

    code = "ORACLE_TIMEOUT"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT


class OracleEmptyResponse(IngestionError):
    """The oracle answered but produced no usable output object."""

    code = "ORACLE_EMPTY_RESPONSE"
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str = "empty model output", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)


class ValidationError(IngestionError):
    """Oracle output failed schema checks; holds every violation, not just the first."""

    code = "VALIDATION_FAILED"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, shape: str, violations: Sequence[FieldViolation]) -> None:
        self.shape = shape
        self.violations: List[FieldViolation] = list(violations)
        super().__init__(
            f"{shape} failed validation with {len(self.violations)} error(s)",
            {"shape": shape, "violations": [v.to_dict() for v in self.violations]},
        )


class ExtractionFailed(IngestionError):
    """Umbrella error returned to callers when no valid structured value was produced."""

    code = "EXTRACTION_FAILED"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(
        self,
        reason: str,
        cause: Optional[IngestionError] = None,
        violations: Optional[Sequence[FieldViolation]] = None,
    ) -> None:
        self.reason = reason
        self.cause = cause
        if violations is None and isinstance(cause, ValidationError):
            violations = cause.violations
        self.violations: List[FieldViolation] = list(violations or [])
        details: Dict[str, Any] = {"reason": reason}
        if cause is not None:
            details["cause"] = cause.code
        if self.violations:
            details["violations"] = [v.to_dict() for v in self.violations]
        super().__init__(f"Extraction failed: {reason}", details)


class InputTooLarge(IngestionError):
    """Raw text exceeds the configured size or block-count ceiling."""

    code = "INPUT_TOO_LARGE"
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE

    def __init__(self, limit_name: str, limit: int, actual: int) -> None:
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual
        super().__init__(
            f"Input exceeds {limit_name} limit ({actual} > {limit})",
            {"limit": limit_name, "max": limit, "actual": actual},
        )
