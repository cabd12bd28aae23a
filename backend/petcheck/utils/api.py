"""
API response envelope, error codes and application exceptions.

Success: {"success": true, "data": ..., "meta": {...}}
Failure: {"success": false, "error": {"code", "message", "statusCode", "details"}}
"""

from typing import Any, Optional

ERROR_CODES = {
    # Auth (1xxx)
    "UNAUTHORIZED": "E1001",
    "INVALID_TOKEN": "E1002",
    "TOKEN_EXPIRED": "E1003",
    "INSUFFICIENT_PERMISSIONS": "E1004",
    # Validation (2xxx)
    "VALIDATION_ERROR": "E2001",
    "INVALID_SPECIES": "E2002",
    "INVALID_DRUG_NAME": "E2003",
    "INVALID_DATE_RANGE": "E2004",
    "MISSING_REQUIRED_FIELD": "E2005",
    # Resources (3xxx)
    "NOT_FOUND": "E3001",
    "DRUG_NOT_FOUND": "E3003",
    # External APIs (4xxx)
    "OPENFDA_ERROR": "E4001",
    "OPENFDA_RATE_LIMITED": "E4002",
    "OPENFDA_TIMEOUT": "E4003",
    # Server (5xxx)
    "INTERNAL_ERROR": "E5001",
    "DATABASE_ERROR": "E5003",
    "CACHE_ERROR": "E5004",
    # Rate limiting (6xxx)
    "RATE_LIMITED": "E6001",
}


class AppError(Exception):
    """Error that maps directly onto an API error envelope."""

    def __init__(self, code: str, message: str, status_code: int = 500,
                 details: Optional[dict] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict:
        data = {"code": self.code, "message": self.message, "statusCode": self.status_code}
        if self.details:
            data["details"] = self.details
        return data


class ValidationError(AppError):
    """Malformed request input, rejected before any lookup is attempted."""

    def __init__(self, message: str, errors: Optional[list[dict]] = None,
                 code: str = ERROR_CODES["VALIDATION_ERROR"]):
        self.errors = errors or []
        super().__init__(code, message, 400, {"errors": self.errors} if self.errors else None)


class ExternalServiceError(AppError):
    """Failure talking to openFDA or another upstream API."""

    def __init__(self, message: str, code: str = ERROR_CODES["OPENFDA_ERROR"],
                 status_code: int = 502):
        super().__init__(code, message, status_code)


def api_response(data: Any, meta: Optional[dict] = None) -> dict:
    body = {"success": True, "data": data}
    if meta:
        body["meta"] = meta
    return body


def error_response(error: AppError) -> dict:
    return {"success": False, "error": error.to_dict()}
