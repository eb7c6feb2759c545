"""
Report Models

Pydantic models for the sales report API. Filter models hold validated query
parameters per endpoint; result models give every endpoint an explicit
response schema.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

from typing import Optional, Any
from pydantic import BaseModel, Field

from ..constants import DEFAULT_GRANULARITY, Pagination


# ============================================================================
# FILTERS
# ============================================================================

class DateRangeFilters(BaseModel):
    """Inclusive sale date range shared by most reports"""
    start_date: Optional[str] = Field(None, description="Start date for filtering (YYYY-MM-DD)")
    end_date: Optional[str] = Field(None, description="End date for filtering (YYYY-MM-DD)")


class TimeSeriesFilters(DateRangeFilters):
    """Filters for the time series report"""
    granularity: str = Field(DEFAULT_GRANULARITY, description="Bucket width: day, week, month, quarter or year")
    user_id: Optional[int] = Field(None, description="Only sales made by this user")
    group_id: Optional[int] = Field(None, description="Only sales made by members of this group")


class UserPerformanceFilters(DateRangeFilters):
    """Filters for the user performance listing"""
    user_id: Optional[int] = Field(None, description="Restrict to a single user")
    limit: Optional[int] = Field(None, description="Maximum rows to return (1-100)")
    offset: Optional[int] = Field(None, description="Rows to skip")


class GroupPerformanceFilters(DateRangeFilters):
    """Filters for the group performance listing"""
    group_id: Optional[int] = Field(None, description="Restrict to a single group")


class LeaderboardFilters(DateRangeFilters):
    """Filters for the leaderboard"""
    limit: int = Field(Pagination.DEFAULT_LIMIT, description="Number of top performers (1-100)")


class SummaryFilters(DateRangeFilters):
    """Filters for summary statistics"""
    pass


class ComparisonFilters(BaseModel):
    """Two inclusive date ranges to compare"""
    current_start: str
    current_end: str
    previous_start: str
    previous_end: str


# ============================================================================
# RESULTS
# ============================================================================

class TimeSeriesDataPoint(BaseModel):
    """Aggregates for one time bucket"""
    period: str
    total_revenue: int
    average_revenue: float
    sale_count: int
    min_sale: int
    max_sale: int


class UserPerformance(BaseModel):
    user_id: int
    user_name: str
    role: str
    total_revenue: int
    average_revenue: float
    sale_count: int
    min_sale: int
    max_sale: int


class GroupPerformance(BaseModel):
    group_id: int
    group_name: str
    total_revenue: int
    average_revenue: float
    sale_count: int
    user_count: int
    min_sale: int
    max_sale: int


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    user_name: str
    role: str
    total_revenue: int
    sale_count: int


class DateRange(BaseModel):
    start: str
    end: str


class SummaryStats(BaseModel):
    """Overall sales statistics; min/max are null when no sales match"""
    total_revenue: int
    total_sales: int
    average_sale: float
    min_sale: Optional[int] = None
    max_sale: Optional[int] = None
    unique_sellers: int
    date_range: DateRange


class PeriodMetrics(BaseModel):
    period: str
    total_revenue: int
    sale_count: int
    average_revenue: float


class PeriodChange(BaseModel):
    revenue_change: int
    revenue_change_pct: float
    count_change: int
    count_change_pct: float


class PeriodComparison(BaseModel):
    current: PeriodMetrics
    previous: PeriodMetrics
    change: PeriodChange


# ============================================================================
# ENVELOPE
# ============================================================================

class PeriodBounds(BaseModel):
    start: str
    end: str


class ResponseMeta(BaseModel):
    """Response metadata; unset fields are omitted from the envelope"""
    total: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    period: Optional[PeriodBounds] = None


class ReportResult(BaseModel):
    """Formatted report payload with optional metadata"""
    data: Any
    meta: Optional[ResponseMeta] = None


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail

