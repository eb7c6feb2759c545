"""
Report Result Formatting

Normalizes raw aggregate rows into the report result models. Drivers hand
back aggregates in different types (PostgreSQL returns AVG as Decimal and
dates as date objects, SQLite returns floats and ISO strings); everything is
coerced here to whole-number counts, two-decimal averages and YYYY-MM-DD
dates.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from ..constants import CURRENT_PERIOD, PREVIOUS_PERIOD
from .models import (
    TimeSeriesDataPoint,
    UserPerformance,
    GroupPerformance,
    LeaderboardEntry,
    SummaryStats,
    DateRange,
    PeriodMetrics,
    PeriodChange,
    PeriodComparison,
    ComparisonFilters,
)

TWO_PLACES = Decimal("0.01")

Row = Dict[str, Any]


def parse_numeric(value: Any) -> int:
    """Coerce a count or sum to int; None (no rows) becomes 0"""
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        if value.lstrip('+-').isdigit():
            return int(value)
        return int(Decimal(value))
    return int(value)


def format_decimal(value: Any) -> float:
    """
    Round to two decimal places, half away from zero.

    Strings and floats go through their decimal text so 10.5555 rounds to
    10.56 rather than suffering binary representation error. Rounding an
    already rounded value returns it unchanged.
    """
    if value is None:
        return 0.0
    if not isinstance(value, Decimal):
        value = Decimal(str(value).strip())
    return float(value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def format_date_string(value: Any) -> str:
    """Render a date, datetime or ISO string as YYYY-MM-DD"""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    # ISO text such as '2021-03-01' or '2021-03-01 00:00:00+00'
    return str(value)[:10]


def percent_change(delta: int, base: int) -> float:
    """Percentage change relative to base; 0 when base is not positive"""
    if base <= 0:
        return 0.0
    return format_decimal(Decimal(delta) * 100 / Decimal(base))


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else parse_numeric(value)


# ============================================================================
# ROW CONVERTERS
# ============================================================================

def format_timeseries_row(row: Row) -> TimeSeriesDataPoint:
    return TimeSeriesDataPoint(
        period=format_date_string(row['period']),
        total_revenue=parse_numeric(row['total_revenue']),
        average_revenue=format_decimal(row['average_revenue']),
        sale_count=parse_numeric(row['sale_count']),
        min_sale=parse_numeric(row['min_sale']),
        max_sale=parse_numeric(row['max_sale'])
    )


def format_user_row(row: Row) -> UserPerformance:
    return UserPerformance(
        user_id=row['user_id'],
        user_name=row['user_name'],
        role=row['role'],
        total_revenue=parse_numeric(row['total_revenue']),
        average_revenue=format_decimal(row['average_revenue']),
        sale_count=parse_numeric(row['sale_count']),
        min_sale=parse_numeric(row['min_sale']),
        max_sale=parse_numeric(row['max_sale'])
    )


def format_group_row(row: Row) -> GroupPerformance:
    return GroupPerformance(
        group_id=row['group_id'],
        group_name=row['group_name'],
        total_revenue=parse_numeric(row['total_revenue']),
        average_revenue=format_decimal(row['average_revenue']),
        sale_count=parse_numeric(row['sale_count']),
        user_count=parse_numeric(row['user_count']),
        min_sale=parse_numeric(row['min_sale']),
        max_sale=parse_numeric(row['max_sale'])
    )


def format_leaderboard_rows(rows: List[Row]) -> List[LeaderboardEntry]:
    """Rank is the 1-based position in the already ordered rows"""
    return [
        LeaderboardEntry(
            rank=index,
            user_id=row['user_id'],
            user_name=row['user_name'],
            role=row['role'],
            total_revenue=parse_numeric(row['total_revenue']),
            sale_count=parse_numeric(row['sale_count'])
        )
        for index, row in enumerate(rows, start=1)
    ]


def format_summary_row(row: Optional[Row]) -> SummaryStats:
    row = row or {}
    return SummaryStats(
        total_revenue=parse_numeric(row.get('total_revenue')),
        total_sales=parse_numeric(row.get('total_sales')),
        average_sale=format_decimal(row.get('average_sale')),
        min_sale=_optional_int(row.get('min_sale')),
        max_sale=_optional_int(row.get('max_sale')),
        unique_sellers=parse_numeric(row.get('unique_sellers')),
        date_range=DateRange(
            start=format_date_string(row.get('first_sale_date')),
            end=format_date_string(row.get('last_sale_date'))
        )
    )


def _period_metrics(label: str, row: Optional[Row]) -> PeriodMetrics:
    # A period with no sales has no row
    row = row or {}
    return PeriodMetrics(
        period=label,
        total_revenue=parse_numeric(row.get('total_revenue')),
        sale_count=parse_numeric(row.get('sale_count')),
        average_revenue=format_decimal(row.get('average_revenue'))
    )


def format_comparison_rows(rows: List[Row], filters: ComparisonFilters) -> PeriodComparison:
    by_label = {row['period_label']: row for row in rows}

    current = _period_metrics(
        f"{filters.current_start} to {filters.current_end}",
        by_label.get(CURRENT_PERIOD)
    )
    previous = _period_metrics(
        f"{filters.previous_start} to {filters.previous_end}",
        by_label.get(PREVIOUS_PERIOD)
    )

    revenue_change = current.total_revenue - previous.total_revenue
    count_change = current.sale_count - previous.sale_count

    return PeriodComparison(
        current=current,
        previous=previous,
        change=PeriodChange(
            revenue_change=revenue_change,
            revenue_change_pct=percent_change(revenue_change, previous.total_revenue),
            count_change=count_change,
            count_change_pct=percent_change(count_change, previous.sale_count)
        )
    )
