"""
================================================================================
Sales Reporting API - Unified Test Configuration and Fixtures
================================================================================
Developed by Waqqas Hanafi
Calaveras County Health and Human Services Agency

Description:
    Shared pytest configuration and fixtures for all tests (unit, integration, API).
    Provides a small hand-checkable sales dataset, seeded temporary SQLite
    databases and a FastAPI test client bound to them.

Fixtures:
    - temp_dir: Temporary directory for test files
    - sample_frames: Users, groups, memberships and sales DataFrames
    - make_db_manager: Factory for (optionally seeded) temporary databases
    - db_manager: Database seeded with sample_frames
    - client: TestClient over db_manager with rate limiting disabled

Sample dataset:
    user 1 Alice (Sales Rep, North):   100 + 200 + 500 = 800 over 3 sales
    user 2 Bob (Sales Manager, North): 300 + 150       = 450 over 2 sales
    user 3 Carol (Sales Rep, South):   400 + 250       = 650 over 2 sales
    user 4 Dave: no sales; group 3 (Empty): no members

================================================================================
"""
import pytest
import pandas as pd
import tempfile
import shutil
import sys
from pathlib import Path

# Add project root to path for all tests
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from sales_api.config import DatabaseConfig, SeedConfig
from sales_api.database import DatabaseManager
from sales_api.seed import seed_database


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests"""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_frames():
    """Sample seed data for testing"""
    return {
        'users': pd.DataFrame({
            'id': [1, 2, 3, 4],
            'name': ['Alice', 'Bob', 'Carol', 'Dave'],
            'role': ['Sales Rep', 'Sales Manager', 'Sales Rep', 'Sales Rep'],
        }),
        'groups': pd.DataFrame({
            'id': [1, 2, 3],
            'name': ['North', 'South', 'Empty'],
        }),
        'user_groups': pd.DataFrame({
            'user_id': [1, 2, 3],
            'group_id': [1, 1, 2],
        }),
        'sales': pd.DataFrame({
            'id': [1, 2, 3, 4, 5, 6, 7],
            'user_id': [1, 1, 2, 3, 1, 2, 3],
            'amount': [100, 200, 300, 400, 500, 150, 250],
            'date': [
                '2021-01-04',  # Monday
                '2021-01-10',  # Sunday, same ISO week
                '2021-01-11',  # Monday
                '2021-02-15',
                '2021-04-01',
                '2021-07-20',
                '2021-12-31',
            ],
        }),
    }


@pytest.fixture
def make_db_manager(temp_dir):
    """Factory creating database managers over temporary SQLite files"""
    managers = []

    def _make(frames=None, name="sales.db", **pool_settings):
        db_config = DatabaseConfig(db_type="sqlite", path=temp_dir / name, max_connections=5)
        for key, value in pool_settings.items():
            setattr(db_config, key, value)

        manager = DatabaseManager(db_config)
        managers.append(manager)

        if frames is not None:
            seed_dir = temp_dir / f"{Path(name).stem}_seed"
            seed_dir.mkdir()
            for table_name, df in frames.items():
                df.to_csv(seed_dir / f"{table_name}.csv", index=False)
            seed_database(manager, SeedConfig(data_dir=seed_dir))
        return manager

    yield _make

    for manager in managers:
        manager.close()


@pytest.fixture
def db_manager(make_db_manager, sample_frames):
    """Database seeded with the sample dataset"""
    return make_db_manager(sample_frames)


@pytest.fixture
def client(db_manager):
    """Create a FastAPI test client for API endpoint tests"""
    from fastapi.testclient import TestClient
    from sales_api.app import create_app
    app = create_app(db_manager=db_manager, rate_limit_enabled=False)
    return TestClient(app)
