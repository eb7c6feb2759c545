"""
Report Query Builder

Builds the parameterized aggregate SQL behind each sales report. Every build
method returns ``(sql, params)`` with positional placeholders bound in the
order they appear in the statement.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

from typing import Any, List, Tuple

from ..constants import VALID_GRANULARITIES, CURRENT_PERIOD, PREVIOUS_PERIOD
from ..database import SQLDialect
from ..exceptions import QueryBuildError
from .filters import build_date_filter, build_report_where_clause
from .models import (
    TimeSeriesFilters,
    UserPerformanceFilters,
    GroupPerformanceFilters,
    LeaderboardFilters,
    SummaryFilters,
    ComparisonFilters,
)

Query = Tuple[str, List[Any]]


class QueryBuilder:
    """Aggregate query construction for one storage dialect"""

    def __init__(self, dialect: SQLDialect):
        self.dialect = dialect
        self.ph = dialect.placeholder

    def _safe_granularity(self, granularity: str) -> str:
        # Interpolated into SQL, so only the fixed set may pass
        if granularity not in VALID_GRANULARITIES:
            raise QueryBuildError(f"Invalid granularity: {granularity}")
        return granularity

    def build_timeseries(self, filters: TimeSeriesFilters) -> Query:
        granularity = self._safe_granularity(filters.granularity)
        period_expr = self.dialect.date_trunc(granularity, "s.date")

        where_clause, params = build_report_where_clause(
            placeholder=self.ph,
            start_date=filters.start_date,
            end_date=filters.end_date,
            user_id=filters.user_id,
            group_id=filters.group_id
        )
        join_clause = (
            "JOIN user_groups ug ON s.user_id = ug.user_id"
            if filters.group_id is not None else ""
        )

        query = f"""
            SELECT
                {period_expr} AS period,
                SUM(s.amount) AS total_revenue,
                AVG(s.amount) AS average_revenue,
                COUNT(*) AS sale_count,
                MIN(s.amount) AS min_sale,
                MAX(s.amount) AS max_sale
            FROM sales s
            {join_clause}
            {where_clause}
            GROUP BY {period_expr}
            ORDER BY period ASC
        """
        return query, params

    def build_user_performance(self, filters: UserPerformanceFilters) -> Query:
        where_clause, params = build_report_where_clause(
            placeholder=self.ph,
            start_date=filters.start_date,
            end_date=filters.end_date,
            user_col="u.id",
            user_id=filters.user_id
        )

        limit_clause = ""
        if filters.limit is not None:
            limit_clause = f"LIMIT {self.ph}"
            params.append(filters.limit)
        elif filters.offset is not None:
            limit_clause = f"LIMIT {self.dialect.unbounded_limit}"
        if filters.offset is not None:
            limit_clause += f" OFFSET {self.ph}"
            params.append(filters.offset)

        # total_count is computed over the grouped rows before LIMIT/OFFSET
        query = f"""
            SELECT
                user_id,
                user_name,
                role,
                total_revenue,
                average_revenue,
                sale_count,
                min_sale,
                max_sale,
                total_count
            FROM (
                SELECT
                    u.id AS user_id,
                    u.name AS user_name,
                    u.role AS role,
                    SUM(s.amount) AS total_revenue,
                    AVG(s.amount) AS average_revenue,
                    COUNT(*) AS sale_count,
                    MIN(s.amount) AS min_sale,
                    MAX(s.amount) AS max_sale,
                    COUNT(*) OVER () AS total_count
                FROM users u
                JOIN sales s ON u.id = s.user_id
                {where_clause}
                GROUP BY u.id, u.name, u.role
            ) aggregated
            ORDER BY total_revenue DESC, user_id ASC
            {limit_clause}
        """
        return query, params

    def build_group_performance(self, filters: GroupPerformanceFilters) -> Query:
        where_clause, params = build_report_where_clause(
            placeholder=self.ph,
            start_date=filters.start_date,
            end_date=filters.end_date,
            group_col="g.id",
            group_id=filters.group_id
        )

        query = f"""
            SELECT
                g.id AS group_id,
                g.name AS group_name,
                SUM(s.amount) AS total_revenue,
                AVG(s.amount) AS average_revenue,
                COUNT(*) AS sale_count,
                COUNT(DISTINCT ug.user_id) AS user_count,
                MIN(s.amount) AS min_sale,
                MAX(s.amount) AS max_sale
            FROM groups g
            JOIN user_groups ug ON g.id = ug.group_id
            JOIN sales s ON ug.user_id = s.user_id
            {where_clause}
            GROUP BY g.id, g.name
            ORDER BY total_revenue DESC, group_id ASC
        """
        return query, params

    def build_leaderboard(self, filters: LeaderboardFilters) -> Query:
        where_clause, params = build_report_where_clause(
            placeholder=self.ph,
            start_date=filters.start_date,
            end_date=filters.end_date
        )
        params.append(filters.limit)

        query = f"""
            SELECT
                u.id AS user_id,
                u.name AS user_name,
                u.role AS role,
                SUM(s.amount) AS total_revenue,
                COUNT(*) AS sale_count
            FROM users u
            JOIN sales s ON u.id = s.user_id
            {where_clause}
            GROUP BY u.id, u.name, u.role
            ORDER BY total_revenue DESC, user_id ASC
            LIMIT {self.ph}
        """
        return query, params

    def build_summary(self, filters: SummaryFilters) -> Query:
        where_clause, params = build_report_where_clause(
            placeholder=self.ph,
            start_date=filters.start_date,
            end_date=filters.end_date
        )

        query = f"""
            SELECT
                SUM(s.amount) AS total_revenue,
                COUNT(*) AS total_sales,
                AVG(s.amount) AS average_sale,
                MIN(s.amount) AS min_sale,
                MAX(s.amount) AS max_sale,
                COUNT(DISTINCT s.user_id) AS unique_sellers,
                MIN(s.date) AS first_sale_date,
                MAX(s.date) AS last_sale_date
            FROM sales s
            {where_clause}
        """
        return query, params

    def build_comparison(self, filters: ComparisonFilters) -> Query:
        """
        One grouped query labelling each sale current or previous.

        A date inside both ranges counts toward current. Periods without
        sales produce no row; the formatter fills them with zeros.
        """
        current_conditions, current_params = build_date_filter(
            "s.date", filters.current_start, filters.current_end, self.ph
        )
        previous_conditions, previous_params = build_date_filter(
            "s.date", filters.previous_start, filters.previous_end, self.ph
        )
        current_match = " AND ".join(current_conditions)
        previous_match = " AND ".join(previous_conditions)

        query = f"""
            SELECT
                CASE
                    WHEN {current_match} THEN '{CURRENT_PERIOD}'
                    WHEN {previous_match} THEN '{PREVIOUS_PERIOD}'
                END AS period_label,
                SUM(s.amount) AS total_revenue,
                COUNT(*) AS sale_count,
                AVG(s.amount) AS average_revenue
            FROM sales s
            WHERE ({current_match}) OR ({previous_match})
            GROUP BY period_label
        """
        params = current_params + previous_params + current_params + previous_params
        return query, params
