"""
Database Seeding

Creates the reporting tables and loads the initial users, groups, memberships
and sales. Seeding is idempotent: when the users table already exists the
database is left untouched.

Frames are read with pandas from a CSV directory when one is configured,
otherwise generated deterministically from the configured random seed.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

import logging
import random
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from .config import config, SeedConfig, setup_logging
from .database import DatabaseManager, create_database_manager
from .database_schema import TABLE_NAMES, get_schema_statements

logger = logging.getLogger(__name__)

TABLE_COLUMNS: Dict[str, List[str]] = {
    'users': ['id', 'name', 'role'],
    'groups': ['id', 'name'],
    'user_groups': ['user_id', 'group_id'],
    'sales': ['id', 'user_id', 'amount', 'date'],
}

FIRST_NAMES = [
    'Alice', 'Bruno', 'Carmen', 'Dmitri', 'Elena', 'Farid', 'Grace', 'Hiro',
    'Ines', 'Jamal', 'Keiko', 'Liam', 'Maya', 'Nikolai', 'Olivia', 'Pedro',
    'Quinn', 'Rosa', 'Samir', 'Tara',
]
LAST_NAMES = [
    'Anders', 'Baptiste', 'Castillo', 'Dorsey', 'Eriksen', 'Fontaine',
    'Gallo', 'Hayes', 'Ibarra', 'Jensen',
]
ROLES = ['Sales Rep', 'Senior Sales Rep', 'Account Executive', 'Sales Manager']
GROUP_NAMES = ['Northeast', 'Southeast', 'Midwest', 'West']

USER_COUNT = 20


def generate_seed_frames(seed_config: Optional[SeedConfig] = None) -> Dict[str, pd.DataFrame]:
    """Generate deterministic seed data for all four tables"""
    seed_config = seed_config or config.seed
    rng = random.Random(seed_config.random_seed)

    users = pd.DataFrame({
        'id': range(1, USER_COUNT + 1),
        'name': [
            f"{FIRST_NAMES[i % len(FIRST_NAMES)]} {LAST_NAMES[i % len(LAST_NAMES)]}"
            for i in range(USER_COUNT)
        ],
        'role': [ROLES[0] if i % 5 else ROLES[rng.randrange(1, len(ROLES))] for i in range(USER_COUNT)],
    })

    groups = pd.DataFrame({
        'id': range(1, len(GROUP_NAMES) + 1),
        'name': GROUP_NAMES,
    })

    # Every user belongs to one group; every fifth user also to the next one
    memberships = []
    for user_id in users['id']:
        home_group = (user_id - 1) % len(GROUP_NAMES) + 1
        memberships.append((user_id, home_group))
        if user_id % 5 == 0:
            memberships.append((user_id, home_group % len(GROUP_NAMES) + 1))
    user_groups = pd.DataFrame(memberships, columns=TABLE_COLUMNS['user_groups'])

    start = date.fromisoformat(seed_config.start_date)
    span_days = (date.fromisoformat(seed_config.end_date) - start).days
    if span_days < 0:
        raise ValueError(
            f"Seed start_date {seed_config.start_date} is after end_date {seed_config.end_date}"
        )

    sale_dates = sorted(
        start + timedelta(days=rng.randint(0, span_days))
        for _ in range(seed_config.sales_count)
    )
    sales = pd.DataFrame({
        'id': range(1, len(sale_dates) + 1),
        'user_id': [rng.randint(1, USER_COUNT) for _ in sale_dates],
        'amount': [rng.randint(50, 5000) for _ in sale_dates],
        'date': [d.isoformat() for d in sale_dates],
    })

    return {
        'users': users,
        'groups': groups,
        'user_groups': user_groups,
        'sales': sales,
    }


def load_seed_frames(data_dir: Path) -> Dict[str, pd.DataFrame]:
    """Read <table>.csv for every table from data_dir"""
    frames = {}
    for table_name in TABLE_NAMES:
        csv_path = Path(data_dir) / f"{table_name}.csv"
        if not csv_path.exists():
            raise FileNotFoundError(f"Seed file not found: {csv_path}")

        df = pd.read_csv(csv_path, dtype={'name': str, 'role': str, 'date': str})
        missing = [col for col in TABLE_COLUMNS[table_name] if col not in df.columns]
        if missing:
            raise ValueError(f"{csv_path.name} is missing columns: {', '.join(missing)}")

        frames[table_name] = df[TABLE_COLUMNS[table_name]]
        logger.debug(f"Read {len(df)} rows from {csv_path}")
    return frames


def _frame_rows(df: pd.DataFrame) -> List[tuple]:
    # DB-API drivers reject numpy scalars; astype(object) yields native Python values
    return [tuple(row) for row in df.astype(object).values.tolist()]


def seed_database(db_manager: DatabaseManager,
                  seed_config: Optional[SeedConfig] = None) -> bool:
    """
    Create and populate the reporting tables.

    Returns False without touching the database when the users table already
    exists, True after a successful seed.
    """
    seed_config = seed_config or config.seed

    if db_manager.table_exists('users'):
        logger.info("Users table exists, skipping seeders")
        return False

    if seed_config.data_dir:
        frames = load_seed_frames(seed_config.data_dir)
        logger.info(f"Seeding database from {seed_config.data_dir}")
    else:
        frames = generate_seed_frames(seed_config)
        logger.info(f"Seeding database with generated data (seed={seed_config.random_seed})")

    dialect = db_manager.dialect
    with db_manager.pool.get_connection() as conn:
        cursor = conn.cursor()
        for statement in get_schema_statements(dialect.primary_key_type):
            cursor.execute(statement)

        for table_name in TABLE_NAMES:
            columns = TABLE_COLUMNS[table_name]
            placeholders = ', '.join([dialect.placeholder] * len(columns))
            insert_sql = f"INSERT INTO {table_name} ({', '.join(columns)}) VALUES ({placeholders})"
            rows = _frame_rows(frames[table_name])
            cursor.executemany(insert_sql, rows)
            logger.info(f"Seeded {table_name} table with {len(rows)} rows")

        conn.commit()

    return True


def main():
    """Seed the configured database from the command line"""
    setup_logging()
    db_manager = create_database_manager()
    try:
        seeded = seed_database(db_manager)
        logger.info("Seeding complete" if seeded else "Database already seeded")
    finally:
        db_manager.close()


if __name__ == "__main__":
    main()
