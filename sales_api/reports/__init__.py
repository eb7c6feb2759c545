"""
Reports Module

Sales reporting endpoints implemented as layered modules: parameter
validation, query building, data access, result formatting and the response
envelope.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

from .router import router as reports_router
from .queries import QueryBuilder
from .service import ReportService
from .envelope import success_response, error_response

__all__ = [
    "reports_router",
    "QueryBuilder",
    "ReportService",
    "success_response",
    "error_response"
]
