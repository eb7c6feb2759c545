"""
Database Schema Definition

Schema for the sales reporting tables: users, groups, the user_groups
membership join and the append-only sales fact table, with the indexes the
aggregate reports filter and join on.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

from typing import List

# Creation order respects foreign keys
TABLE_NAMES = ('users', 'groups', 'user_groups', 'sales')


def get_schema_statements(primary_key_type: str = "INTEGER PRIMARY KEY") -> List[str]:
    """
    Get the schema as individual statements.

    The DB-API drivers execute one statement per call, so the schema is kept
    as a list rather than a script. ``primary_key_type`` comes from the
    dialect (``INTEGER PRIMARY KEY`` for SQLite, ``SERIAL PRIMARY KEY`` for
    PostgreSQL).
    """
    return [
        f"""
CREATE TABLE IF NOT EXISTS users (
    id {primary_key_type},
    name VARCHAR(50) NOT NULL,
    role VARCHAR(50) NOT NULL
)""",
        f"""
CREATE TABLE IF NOT EXISTS groups (
    id {primary_key_type},
    name VARCHAR(50) NOT NULL
)""",
        """
CREATE TABLE IF NOT EXISTS user_groups (
    user_id INTEGER NOT NULL REFERENCES users(id),
    group_id INTEGER NOT NULL REFERENCES groups(id)
)""",
        f"""
CREATE TABLE IF NOT EXISTS sales (
    id {primary_key_type},
    user_id INTEGER NOT NULL REFERENCES users(id),
    amount INTEGER NOT NULL,
    date DATE NOT NULL
)""",
        "CREATE INDEX IF NOT EXISTS idx_sales_date ON sales(date)",
        "CREATE INDEX IF NOT EXISTS idx_sales_user ON sales(user_id)",
        "CREATE INDEX IF NOT EXISTS idx_user_groups_group ON user_groups(group_id)",
        "CREATE INDEX IF NOT EXISTS idx_user_groups_user ON user_groups(user_id)",
    ]
