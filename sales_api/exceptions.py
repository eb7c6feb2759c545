"""
API Exceptions

Typed exceptions raised by the reporting layers. Validation errors carry the
error code and HTTP status rendered into the error envelope; operational
errors (pool exhaustion, query construction faults) surface as 500s.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

from typing import Optional

from .constants import ErrorCode, HTTPStatus


class SalesApiError(Exception):
    """Base error rendered into the error envelope"""

    def __init__(self, code: str, message: str, status_code: int = HTTPStatus.INTERNAL_ERROR):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


class ReportValidationError(SalesApiError):
    """Caller input failed validation; raised before any database access"""

    def __init__(self, code: str, message: str, field: Optional[str] = None):
        super().__init__(code, message, status_code=HTTPStatus.BAD_REQUEST)
        self.field = field


class QueryBuildError(SalesApiError):
    """A query was requested with arguments the validator should have rejected"""

    def __init__(self, message: str):
        super().__init__(ErrorCode.INTERNAL_ERROR, message)


class PoolTimeoutError(SalesApiError):
    """No pooled connection became available within the acquisition timeout"""

    def __init__(self, timeout: float):
        super().__init__(
            ErrorCode.INTERNAL_ERROR,
            f"Timed out after {timeout:.1f}s waiting for a database connection"
        )
        self.timeout = timeout
