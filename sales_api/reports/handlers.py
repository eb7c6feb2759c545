"""
Report Handlers (Business Logic Layer)

Report handlers joining the query builder, the data access service and the
result formatter. Each handler class covers one report category. Errors
propagate to the application's exception handlers.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

from .service import ReportService
from .formatting import (
    format_timeseries_row,
    format_user_row,
    format_group_row,
    format_leaderboard_rows,
    format_summary_row,
    format_comparison_rows,
)
from .models import (
    TimeSeriesFilters,
    UserPerformanceFilters,
    GroupPerformanceFilters,
    LeaderboardFilters,
    SummaryFilters,
    ComparisonFilters,
    ReportResult,
    ResponseMeta,
    PeriodBounds,
)


class TimelineReports:
    """Handlers for time-based reports"""

    def __init__(self, service: ReportService):
        self.service = service

    def get_timeseries(self, filters: TimeSeriesFilters) -> ReportResult:
        """Get sales aggregated per time bucket"""
        query, params = self.service.queries.build_timeseries(filters)
        data = [format_timeseries_row(row) for row in self.service.execute_query(query, params)]

        # Explicit bounds win, else the first/last bucket, else ""
        period = PeriodBounds(
            start=filters.start_date or (data[0].period if data else ""),
            end=filters.end_date or (data[-1].period if data else "")
        )
        return ReportResult(data=data, meta=ResponseMeta(total=len(data), period=period))

    def get_comparison(self, filters: ComparisonFilters) -> ReportResult:
        """Compare totals between two periods"""
        query, params = self.service.queries.build_comparison(filters)
        rows = self.service.execute_query(query, params)
        return ReportResult(data=format_comparison_rows(rows, filters))


class PerformanceReports:
    """Handlers for user and group performance reports"""

    def __init__(self, service: ReportService):
        self.service = service

    def get_user_performance(self, filters: UserPerformanceFilters) -> ReportResult:
        """Get per-user performance with the total count of matching users"""
        query, params = self.service.queries.build_user_performance(filters)
        rows = self.service.execute_query(query, params)

        # The window count rides on every row; an offset past the end yields no rows
        total = int(rows[0]['total_count']) if rows else 0
        data = [format_user_row(row) for row in rows]
        return ReportResult(
            data=data,
            meta=ResponseMeta(total=total, limit=filters.limit, offset=filters.offset)
        )

    def get_group_performance(self, filters: GroupPerformanceFilters) -> ReportResult:
        query, params = self.service.queries.build_group_performance(filters)
        data = [format_group_row(row) for row in self.service.execute_query(query, params)]
        return ReportResult(data=data, meta=ResponseMeta(total=len(data)))

    def get_leaderboard(self, filters: LeaderboardFilters) -> ReportResult:
        query, params = self.service.queries.build_leaderboard(filters)
        data = format_leaderboard_rows(self.service.execute_query(query, params))
        return ReportResult(data=data, meta=ResponseMeta(total=len(data)))


class OverviewReports:
    """Handlers for overview/summary reports"""

    def __init__(self, service: ReportService):
        self.service = service

    def get_summary(self, filters: SummaryFilters) -> ReportResult:
        """Get summary statistics"""
        query, params = self.service.queries.build_summary(filters)
        row = self.service.execute_single(query, params)
        return ReportResult(data=format_summary_row(row))
