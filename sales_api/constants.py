"""
Application Constants

Shared constants for the sales reporting API: HTTP status codes, error codes
and messages, valid time granularities, pagination bounds and the date format
accepted on query strings.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

import re
from typing import Tuple


class HTTPStatus:
    """HTTP status codes used by the API"""
    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    TOO_MANY_REQUESTS = 429
    INTERNAL_ERROR = 500


class ErrorCode:
    """Machine-readable error codes returned in the error envelope"""
    INVALID_GRANULARITY = "INVALID_GRANULARITY"
    INVALID_DATE = "INVALID_DATE"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    INVALID_LIMIT = "INVALID_LIMIT"
    INVALID_OFFSET = "INVALID_OFFSET"
    MISSING_PARAMS = "MISSING_PARAMS"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


class ErrorMessage:
    """Human-readable error messages"""
    INVALID_DATE_FORMAT = "must be in YYYY-MM-DD format"
    INVALID_DATE_RANGE = "{start_field} must be before {end_field}"
    INVALID_COMPARE_DATE = "Invalid date format: {value}. Use YYYY-MM-DD"
    INVALID_GRANULARITY = "Invalid granularity. Must be one of: {choices}"
    INVALID_LIMIT = "limit must be between 1 and 100"
    INVALID_OFFSET = "offset must be a non-negative 64-bit integer"
    MISSING_COMPARE_PARAMS = (
        "All date parameters are required: "
        "current_start, current_end, previous_start, previous_end"
    )
    RATE_LIMIT = "Too many requests, please try again later"
    NOT_FOUND = "The requested endpoint does not exist"
    METHOD_NOT_ALLOWED = "The requested method is not allowed for this endpoint"
    INTERNAL = "An unexpected error occurred"


# Time bucket widths accepted by the time series report
VALID_GRANULARITIES: Tuple[str, ...] = ("day", "week", "month", "quarter", "year")
DEFAULT_GRANULARITY = "month"

DATE_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Pagination:
    """Pagination bounds"""
    DEFAULT_LIMIT = 10
    MIN_LIMIT = 1
    MAX_LIMIT = 100
    # Largest offset SQLite and PostgreSQL can bind
    MAX_OFFSET = 2**63 - 1


# Range of ids the database drivers can bind
MIN_ID = -(2**63)
MAX_ID = 2**63 - 1


# Period labels used by the comparison query
CURRENT_PERIOD = "current"
PREVIOUS_PERIOD = "previous"

API_PREFIX = "/api/sales"
