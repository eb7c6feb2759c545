"""
Report Parameter Validation

Turns raw query-string values into validated filter models. Every check runs
before any database access; the first failing rule raises a
ReportValidationError naming the offending field.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

import re
from datetime import datetime
from typing import Mapping, Optional, Tuple

from ..constants import (
    DATE_REGEX,
    VALID_GRANULARITIES,
    DEFAULT_GRANULARITY,
    ErrorCode,
    ErrorMessage,
    MAX_ID,
    MIN_ID,
    Pagination,
)
from ..exceptions import ReportValidationError
from .models import (
    TimeSeriesFilters,
    UserPerformanceFilters,
    GroupPerformanceFilters,
    LeaderboardFilters,
    SummaryFilters,
    ComparisonFilters,
)

INT_REGEX = re.compile(r"^\s*[+-]?\d+\s*$")

COMPARE_FIELDS = ('current_start', 'current_end', 'previous_start', 'previous_end')

QueryParams = Mapping[str, Optional[str]]


def is_valid_date(value) -> bool:
    """True for a YYYY-MM-DD string naming a real calendar date"""
    if not isinstance(value, str) or not DATE_REGEX.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_valid_granularity(value) -> bool:
    return isinstance(value, str) and value in VALID_GRANULARITIES


def parse_string_param(params: QueryParams, key: str) -> Optional[str]:
    """Get a parameter, treating empty strings as absent"""
    value = params.get(key)
    return value if value else None


def parse_int_param(params: QueryParams, key: str) -> Optional[int]:
    """
    Get an integer parameter.

    Non-numeric input is treated as absent rather than rejected, so
    ``user_id=abc`` behaves like no user filter.
    """
    value = parse_string_param(params, key)
    if value is None or not INT_REGEX.match(value):
        return None
    return int(value)


def parse_id_param(params: QueryParams, key: str) -> Optional[int]:
    """Get an id filter; ids no database row can carry are treated as absent"""
    value = parse_int_param(params, key)
    if value is None or not (MIN_ID <= value <= MAX_ID):
        return None
    return value


def _parse_date_range(
    params: QueryParams,
    start_key: str = 'start_date',
    end_key: str = 'end_date'
) -> Tuple[Optional[str], Optional[str]]:
    start = parse_string_param(params, start_key)
    end = parse_string_param(params, end_key)

    for key, value in ((start_key, start), (end_key, end)):
        if value is not None and not is_valid_date(value):
            raise ReportValidationError(
                ErrorCode.INVALID_DATE,
                f"{key} {ErrorMessage.INVALID_DATE_FORMAT}",
                field=key
            )

    # Fixed-width ISO dates order lexicographically
    if start and end and start > end:
        raise ReportValidationError(
            ErrorCode.INVALID_DATE_RANGE,
            ErrorMessage.INVALID_DATE_RANGE.format(start_field=start_key, end_field=end_key),
            field=start_key
        )
    return start, end


def _check_limit(limit: Optional[int]):
    if limit is not None and not (Pagination.MIN_LIMIT <= limit <= Pagination.MAX_LIMIT):
        raise ReportValidationError(ErrorCode.INVALID_LIMIT, ErrorMessage.INVALID_LIMIT, field='limit')


def _check_offset(offset: Optional[int]):
    if offset is not None and not (0 <= offset <= Pagination.MAX_OFFSET):
        raise ReportValidationError(ErrorCode.INVALID_OFFSET, ErrorMessage.INVALID_OFFSET, field='offset')


# ============================================================================
# PER-ENDPOINT PARSERS
# ============================================================================

def parse_timeseries_params(params: QueryParams) -> TimeSeriesFilters:
    granularity = parse_string_param(params, 'granularity')
    if granularity is not None and not is_valid_granularity(granularity):
        raise ReportValidationError(
            ErrorCode.INVALID_GRANULARITY,
            ErrorMessage.INVALID_GRANULARITY.format(choices=', '.join(VALID_GRANULARITIES)),
            field='granularity'
        )

    start_date, end_date = _parse_date_range(params)
    return TimeSeriesFilters(
        granularity=granularity or DEFAULT_GRANULARITY,
        start_date=start_date,
        end_date=end_date,
        user_id=parse_id_param(params, 'user_id'),
        group_id=parse_id_param(params, 'group_id')
    )


def parse_user_performance_params(params: QueryParams) -> UserPerformanceFilters:
    start_date, end_date = _parse_date_range(params)
    limit = parse_int_param(params, 'limit')
    offset = parse_int_param(params, 'offset')
    _check_limit(limit)
    _check_offset(offset)
    return UserPerformanceFilters(
        start_date=start_date,
        end_date=end_date,
        user_id=parse_id_param(params, 'user_id'),
        limit=limit,
        offset=offset
    )


def parse_group_performance_params(params: QueryParams) -> GroupPerformanceFilters:
    start_date, end_date = _parse_date_range(params)
    return GroupPerformanceFilters(
        start_date=start_date,
        end_date=end_date,
        group_id=parse_id_param(params, 'group_id')
    )


def parse_leaderboard_params(params: QueryParams) -> LeaderboardFilters:
    start_date, end_date = _parse_date_range(params)
    limit = parse_int_param(params, 'limit')
    if limit is None:
        limit = Pagination.DEFAULT_LIMIT
    _check_limit(limit)
    return LeaderboardFilters(start_date=start_date, end_date=end_date, limit=limit)


def parse_summary_params(params: QueryParams) -> SummaryFilters:
    start_date, end_date = _parse_date_range(params)
    return SummaryFilters(start_date=start_date, end_date=end_date)


def parse_comparison_params(params: QueryParams) -> ComparisonFilters:
    """
    Validate the four comparison bounds.

    Presence of all four is checked before any format check, so a request
    missing one bound and malforming another reports MISSING_PARAMS.
    """
    values = {key: parse_string_param(params, key) for key in COMPARE_FIELDS}
    if not all(values.values()):
        raise ReportValidationError(ErrorCode.MISSING_PARAMS, ErrorMessage.MISSING_COMPARE_PARAMS)

    for key in COMPARE_FIELDS:
        if not is_valid_date(values[key]):
            raise ReportValidationError(
                ErrorCode.INVALID_DATE,
                ErrorMessage.INVALID_COMPARE_DATE.format(value=values[key]),
                field=key
            )

    _parse_date_range(params, 'current_start', 'current_end')
    _parse_date_range(params, 'previous_start', 'previous_end')
    return ComparisonFilters(**values)
