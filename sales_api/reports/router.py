"""
Report Router (API Layer)

FastAPI router defining the sales report endpoints under /api/sales. Query
parameters are declared as plain strings so that validation, including the
lenient handling of non-numeric ids, happens in one place and produces the
API's own error codes instead of FastAPI's 422 responses.

Endpoints are plain ``def`` functions; FastAPI runs them in its threadpool,
where they block on the connection pool.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

from typing import Optional
from fastapi import APIRouter, Query, Depends, Request

from ..constants import API_PREFIX
from .envelope import success_response
from .handlers import TimelineReports, PerformanceReports, OverviewReports
from .service import ReportService
from .validation import (
    parse_timeseries_params,
    parse_user_performance_params,
    parse_group_performance_params,
    parse_leaderboard_params,
    parse_summary_params,
    parse_comparison_params,
)

router = APIRouter(prefix=API_PREFIX, tags=["sales"])


# Dependency to get report service
def get_report_service(request: Request) -> ReportService:
    """Build a report service over the application's database manager"""
    return ReportService(request.app.state.db_manager)


# ============================================================================
# TIMELINE ENDPOINTS
# ============================================================================

@router.get("/timeseries")
def get_timeseries(
    granularity: Optional[str] = Query(None, description="day, week, month, quarter or year (default month)"),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    user_id: Optional[str] = Query(None),
    group_id: Optional[str] = Query(None),
    service: ReportService = Depends(get_report_service)
):
    """Get sales aggregated by time bucket"""
    filters = parse_timeseries_params({
        'granularity': granularity,
        'start_date': start_date,
        'end_date': end_date,
        'user_id': user_id,
        'group_id': group_id,
    })
    result = TimelineReports(service).get_timeseries(filters)
    return success_response(result.data, result.meta)


@router.get("/compare")
def get_comparison(
    current_start: Optional[str] = Query(None, description="YYYY-MM-DD, required"),
    current_end: Optional[str] = Query(None, description="YYYY-MM-DD, required"),
    previous_start: Optional[str] = Query(None, description="YYYY-MM-DD, required"),
    previous_end: Optional[str] = Query(None, description="YYYY-MM-DD, required"),
    service: ReportService = Depends(get_report_service)
):
    """Compare sales between two periods"""
    filters = parse_comparison_params({
        'current_start': current_start,
        'current_end': current_end,
        'previous_start': previous_start,
        'previous_end': previous_end,
    })
    result = TimelineReports(service).get_comparison(filters)
    return success_response(result.data, result.meta)


# ============================================================================
# PERFORMANCE ENDPOINTS
# ============================================================================

@router.get("/users")
def get_user_performance(
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    user_id: Optional[str] = Query(None),
    limit: Optional[str] = Query(None, description="1-100"),
    offset: Optional[str] = Query(None, description=">= 0"),
    service: ReportService = Depends(get_report_service)
):
    """Get performance metrics per user"""
    filters = parse_user_performance_params({
        'start_date': start_date,
        'end_date': end_date,
        'user_id': user_id,
        'limit': limit,
        'offset': offset,
    })
    result = PerformanceReports(service).get_user_performance(filters)
    return success_response(result.data, result.meta)


@router.get("/groups")
def get_group_performance(
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    group_id: Optional[str] = Query(None),
    service: ReportService = Depends(get_report_service)
):
    """Get performance metrics per group"""
    filters = parse_group_performance_params({
        'start_date': start_date,
        'end_date': end_date,
        'group_id': group_id,
    })
    result = PerformanceReports(service).get_group_performance(filters)
    return success_response(result.data, result.meta)


@router.get("/leaderboard")
def get_leaderboard(
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    limit: Optional[str] = Query(None, description="1-100 (default 10)"),
    service: ReportService = Depends(get_report_service)
):
    """Get top performers ranked by revenue"""
    filters = parse_leaderboard_params({
        'start_date': start_date,
        'end_date': end_date,
        'limit': limit,
    })
    result = PerformanceReports(service).get_leaderboard(filters)
    return success_response(result.data, result.meta)


# ============================================================================
# OVERVIEW ENDPOINTS
# ============================================================================

@router.get("/summary")
def get_summary(
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    service: ReportService = Depends(get_report_service)
):
    """Get overall summary statistics"""
    filters = parse_summary_params({'start_date': start_date, 'end_date': end_date})
    result = OverviewReports(service).get_summary(filters)
    return success_response(result.data, result.meta)
