"""
Report Service (Data Access Layer)

Data access layer for report queries providing reusable query execution on
top of the connection pool. Rows come back as dictionaries keyed by column
name so formatting is independent of the driver.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

import logging
import time
from typing import List, Dict, Any, Optional
from contextlib import contextmanager

from .queries import QueryBuilder

logger = logging.getLogger(__name__)


class ReportService:
    """Base service for executing report queries"""

    def __init__(self, db_manager):
        self.db_manager = db_manager
        self.queries = QueryBuilder(db_manager.dialect)

    @contextmanager
    def get_connection(self):
        """Get database connection from pool"""
        with self.db_manager.pool.get_connection() as conn:
            yield conn

    def execute_query(self, query: str, params: List[Any] = None) -> List[Dict[str, Any]]:
        """
        Execute a query and return results.

        Args:
            query: SQL query string
            params: Query parameters, in placeholder order

        Returns:
            List of rows as column-name dictionaries
        """
        params = params or []
        start_time = time.perf_counter()
        with self.get_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(query, params)
                columns = [col[0] for col in cursor.description]
                rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
            finally:
                cursor.close()

        duration = time.perf_counter() - start_time
        logger.debug(f"Query returned {len(rows)} rows in {duration:.3f}s")
        return rows

    def execute_single(self, query: str, params: List[Any] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single result"""
        rows = self.execute_query(query, params)
        return rows[0] if rows else None
