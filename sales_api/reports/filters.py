"""
Report Filters

Filtering utilities for reports providing reusable functions for building SQL
WHERE clauses. Values only ever enter as bound parameters; the placeholder
style comes from the storage dialect so one builder serves SQLite and
PostgreSQL.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

from typing import Optional, Tuple, List, Any


def build_date_filter(
    date_col: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    placeholder: str = "?"
) -> Tuple[List[str], List[Any]]:
    """
    Build conditions and params for an inclusive date range.

    Args:
        date_col: Qualified date column, e.g. ``s.date``
        start_date: Start date (YYYY-MM-DD)
        end_date: End date (YYYY-MM-DD)
        placeholder: Dialect parameter marker

    Returns:
        Tuple of (conditions, params)
        Example: (["s.date >= ?", "s.date <= ?"], ["2024-01-01", "2024-12-31"])
    """
    conditions = []
    params = []

    if start_date:
        conditions.append(f"{date_col} >= {placeholder}")
        params.append(start_date)
    if end_date:
        conditions.append(f"{date_col} <= {placeholder}")
        params.append(end_date)

    return conditions, params


def build_report_where_clause(
    placeholder: str = "?",
    date_col: str = "s.date",
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    user_col: str = "s.user_id",
    user_id: Optional[int] = None,
    group_col: str = "ug.group_id",
    group_id: Optional[int] = None,
    base_conditions: Optional[List[str]] = None
) -> Tuple[str, List[Any]]:
    """
    Build the complete WHERE clause for a report query.

    Conditions are AND-combined in the order date range, user, group; only
    supplied filters contribute. Params line up with the placeholders in
    that same order.

    Args:
        placeholder: Dialect parameter marker
        date_col: Column the date range applies to
        start_date: Start date filter
        end_date: End date filter
        user_col: Column matched against user_id
        user_id: User filter
        group_col: Column matched against group_id (caller supplies the JOIN)
        group_id: Group filter
        base_conditions: Fixed conditions placed before the filters

    Returns:
        Tuple of (complete_where_clause, params_list)
    """
    conditions = list(base_conditions or [])
    params: List[Any] = []

    date_conditions, date_params = build_date_filter(date_col, start_date, end_date, placeholder)
    conditions.extend(date_conditions)
    params.extend(date_params)

    if user_id is not None:
        conditions.append(f"{user_col} = {placeholder}")
        params.append(user_id)

    if group_id is not None:
        conditions.append(f"{group_col} = {placeholder}")
        params.append(group_id)

    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where_clause, params
