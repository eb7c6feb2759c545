"""
================================================================================
Sales Reporting API - Sales Endpoints API Tests
================================================================================
Developed by Waqqas Hanafi
Calaveras County Health and Human Services Agency

Description:
    End-to-end tests for the /api/sales endpoints through the FastAPI test
    client over a seeded SQLite database. Validates the response envelope,
    status codes, error codes and the middleware stack.

Test Coverage:
    - Success envelopes for all six report endpoints
    - Validation error codes
    - 404 / 405 / 500 envelopes
    - Rate limiting
    - Security headers and health check
================================================================================
"""
import logging
import pytest
import pandas as pd
from unittest.mock import patch
from fastapi.testclient import TestClient

from sales_api.app import create_app
from sales_api.exceptions import PoolTimeoutError
from sales_api.config import RateLimitConfig
from sales_api.rate_limit import create_limiter


def assert_error(response, status_code, code):
    assert response.status_code == status_code
    body = response.json()
    assert body['success'] is False
    assert body['error']['code'] == code
    assert body['error']['message']
    return body


class TestTimeSeriesEndpoint:
    """Test GET /api/sales/timeseries"""

    def test_defaults_to_month(self, client):
        response = client.get("/api/sales/timeseries")
        assert response.status_code == 200
        body = response.json()
        assert body['success'] is True
        assert body['meta']['total'] == len(body['data']) == 5
        assert [p['period'] for p in body['data']][:2] == ['2021-01-01', '2021-02-01']
        assert body['meta']['period'] == {'start': '2021-01-01', 'end': '2021-12-01'}

    def test_data_point_shape(self, client):
        point = client.get("/api/sales/timeseries").json()['data'][0]
        assert point == {
            'period': '2021-01-01',
            'total_revenue': 600,
            'average_revenue': 200.0,
            'sale_count': 3,
            'min_sale': 100,
            'max_sale': 300,
        }

    def test_invalid_granularity(self, client):
        body = assert_error(client.get("/api/sales/timeseries?granularity=invalid"), 400, 'INVALID_GRANULARITY')
        assert body['error']['message'] == 'Invalid granularity. Must be one of: day, week, month, quarter, year'

    def test_invalid_date(self, client):
        body = assert_error(client.get("/api/sales/timeseries?start_date=2021-13-01"), 400, 'INVALID_DATE')
        assert 'start_date' in body['error']['message']

    def test_inverted_range(self, client):
        assert_error(
            client.get("/api/sales/timeseries?start_date=2021-06-01&end_date=2021-01-01"),
            400, 'INVALID_DATE_RANGE'
        )

    def test_non_numeric_user_id_ignored(self, client):
        unfiltered = client.get("/api/sales/timeseries").json()
        response = client.get("/api/sales/timeseries?user_id=abc")
        assert response.status_code == 200
        assert response.json() == unfiltered

    def test_oversized_user_id_ignored(self, client):
        unfiltered = client.get("/api/sales/timeseries").json()
        response = client.get("/api/sales/timeseries", params={"user_id": "99999999999999999999"})
        assert response.status_code == 200
        assert response.json() == unfiltered

    def test_group_filter(self, client):
        body = client.get("/api/sales/timeseries?group_id=2&granularity=quarter").json()
        assert [(p['period'], p['total_revenue']) for p in body['data']] == [
            ('2021-01-01', 400), ('2021-10-01', 250),
        ]


class TestUsersEndpoint:
    """Test GET /api/sales/users"""

    def test_list(self, client):
        body = client.get("/api/sales/users").json()
        assert [u['user_id'] for u in body['data']] == [1, 3, 2]
        assert body['meta'] == {'total': 3}

    def test_pagination_meta(self, client):
        body = client.get("/api/sales/users?limit=1&offset=1").json()
        assert [u['user_id'] for u in body['data']] == [3]
        assert body['meta'] == {'total': 3, 'limit': 1, 'offset': 1}

    @pytest.mark.parametrize("limit", ["0", "101", "-5"])
    def test_invalid_limit(self, client, limit):
        assert_error(client.get(f"/api/sales/users?limit={limit}"), 400, 'INVALID_LIMIT')

    def test_invalid_offset(self, client):
        assert_error(client.get("/api/sales/users?offset=-1"), 400, 'INVALID_OFFSET')

    def test_oversized_offset(self, client):
        response = client.get("/api/sales/users", params={"offset": "99999999999999999999"})
        assert_error(response, 400, 'INVALID_OFFSET')

    def test_largest_offset_returns_empty_page(self, client):
        body = client.get("/api/sales/users", params={"offset": str(2**63 - 1)}).json()
        assert body['data'] == []
        assert body['meta']['offset'] == 2**63 - 1


class TestGroupsEndpoint:
    """Test GET /api/sales/groups"""

    def test_list(self, client):
        body = client.get("/api/sales/groups").json()
        assert body['success'] is True
        assert [(g['group_name'], g['user_count']) for g in body['data']] == [('North', 2), ('South', 1)]
        assert body['meta'] == {'total': 2}


class TestLeaderboardEndpoint:
    """Test GET /api/sales/leaderboard"""

    def test_ranking(self, make_db_manager):
        frames = {
            'users': pd.DataFrame({'id': [1, 2], 'name': ['Dana', 'Eli'], 'role': ['Sales Rep', 'Sales Rep']}),
            'groups': pd.DataFrame({'id': [1], 'name': ['West']}),
            'user_groups': pd.DataFrame({'user_id': [1, 2], 'group_id': [1, 1]}),
            'sales': pd.DataFrame({
                'id': [1, 2, 3, 4],
                'user_id': [2, 1, 2, 1],
                'amount': [400000, 300000, 250000, 400000],
                'date': ['2021-01-05', '2021-02-10', '2021-03-15', '2021-04-20'],
            }),
        }
        manager = make_db_manager(frames, name="leaders.db")
        client = TestClient(create_app(db_manager=manager, rate_limit_enabled=False))

        body = client.get("/api/sales/leaderboard?limit=5").json()
        assert [(e['rank'], e['total_revenue']) for e in body['data']] == [(1, 700000), (2, 650000)]
        assert body['data'][0]['user_name'] == 'Dana'
        assert body['meta'] == {'total': 2}

    def test_invalid_limit(self, client):
        assert_error(client.get("/api/sales/leaderboard?limit=500"), 400, 'INVALID_LIMIT')


class TestSummaryEndpoint:
    """Test GET /api/sales/summary"""

    def test_summary(self, client):
        body = client.get("/api/sales/summary?start_date=2021-02-01&end_date=2021-06-30").json()
        assert 'meta' not in body
        assert body['data'] == {
            'total_revenue': 900,
            'total_sales': 2,
            'average_sale': 450.0,
            'min_sale': 400,
            'max_sale': 500,
            'unique_sellers': 2,
            'date_range': {'start': '2021-02-15', 'end': '2021-04-01'},
        }

    def test_empty_summary(self, client):
        data = client.get("/api/sales/summary?start_date=2030-01-01").json()['data']
        assert data['total_sales'] == 0
        assert data['min_sale'] is None
        assert data['date_range'] == {'start': '', 'end': ''}


class TestCompareEndpoint:
    """Test GET /api/sales/compare"""

    PARAMS = (
        "current_start=2021-07-01&current_end=2021-12-31"
        "&previous_start=2021-01-01&previous_end=2021-06-30"
    )

    def test_compare(self, client):
        body = client.get(f"/api/sales/compare?{self.PARAMS}").json()
        assert body['success'] is True
        assert body['data']['current']['period'] == '2021-07-01 to 2021-12-31'
        assert body['data']['change'] == {
            'revenue_change': -1100,
            'revenue_change_pct': -73.33,
            'count_change': -3,
            'count_change_pct': -60.0,
        }

    def test_missing_params(self, client):
        response = client.get(
            "/api/sales/compare?current_start=2021-07-01&current_end=2021-12-31&previous_start=2021-01-01"
        )
        assert_error(response, 400, 'MISSING_PARAMS')

    def test_missing_reported_before_malformed(self, client):
        response = client.get("/api/sales/compare?current_start=bad&current_end=2021-12-31")
        assert_error(response, 400, 'MISSING_PARAMS')

    def test_malformed_date(self, client):
        params = self.PARAMS.replace("2021-01-01", "2021/01/01")
        body = assert_error(client.get(f"/api/sales/compare?{params}"), 400, 'INVALID_DATE')
        assert body['error']['message'] == 'Invalid date format: 2021/01/01. Use YYYY-MM-DD'

    def test_inverted_period(self, client):
        params = self.PARAMS.replace("current_start=2021-07-01", "current_start=2022-01-01")
        assert_error(client.get(f"/api/sales/compare?{params}"), 400, 'INVALID_DATE_RANGE')


class TestErrorEnvelopes:
    """Test framework and unexpected errors use the envelope"""

    def test_not_found(self, client):
        assert_error(client.get("/api/sales/unknown"), 404, 'NOT_FOUND')

    def test_method_not_allowed(self, client):
        response = client.post("/api/sales/summary")
        assert_error(response, 405, 'METHOD_NOT_ALLOWED')
        assert 'GET' in response.headers['allow']

    def test_unexpected_error(self, client):
        with patch('sales_api.reports.router.OverviewReports.get_summary',
                   side_effect=RuntimeError("no such table: sales")):
            response = client.get("/api/sales/summary")
        body = assert_error(response, 500, 'INTERNAL_ERROR')
        assert 'sales' not in body['error']['message']

    def test_unexpected_error_keeps_security_and_cors_headers(self, client):
        with patch('sales_api.reports.router.OverviewReports.get_summary',
                   side_effect=RuntimeError("database is locked")):
            response = client.get("/api/sales/summary", headers={"Origin": "http://dashboard.example"})
        assert_error(response, 500, 'INTERNAL_ERROR')
        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['access-control-allow-origin'] == '*'

    def test_unexpected_error_logged_once(self, client, caplog):
        with caplog.at_level(logging.ERROR, logger="sales_api.app"):
            with patch('sales_api.reports.router.OverviewReports.get_summary',
                       side_effect=RuntimeError("database is locked")):
                client.get("/api/sales/summary")
        tracebacks = [r for r in caplog.records if r.name == "sales_api.app" and r.exc_info]
        assert len(tracebacks) == 1

    def test_pool_timeout(self, client):
        with patch('sales_api.reports.router.PerformanceReports.get_leaderboard',
                   side_effect=PoolTimeoutError(2.0)):
            response = client.get("/api/sales/leaderboard")
        body = assert_error(response, 500, 'INTERNAL_ERROR')
        assert body['error']['message'] == 'An unexpected error occurred'


class TestMiddleware:
    """Test rate limiting, security headers and health check"""

    def test_rate_limit(self, db_manager):
        limiter = create_limiter(RateLimitConfig(max_requests=2, window_seconds=900))
        client = TestClient(create_app(db_manager=db_manager, rate_limiter=limiter, rate_limit_enabled=True))

        first = client.get("/api/sales/summary")
        assert first.status_code == 200
        assert first.headers['X-RateLimit-Limit'] == '2'
        assert first.headers['X-RateLimit-Remaining'] == '1'
        client.get("/api/sales/groups")

        response = client.get("/api/sales/summary")
        assert_error(response, 429, 'RATE_LIMIT_EXCEEDED')
        assert 'Retry-After' in response.headers
        assert response.headers['X-Content-Type-Options'] == 'nosniff'

    def test_rate_limit_disabled(self, db_manager):
        client = TestClient(create_app(db_manager=db_manager, rate_limit_enabled=False))
        for _ in range(3):
            response = client.get("/api/sales/summary")
        assert response.status_code == 200
        assert 'X-RateLimit-Limit' not in response.headers

    def test_security_headers(self, client):
        response = client.get("/api/sales/groups")
        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['X-Frame-Options'] == 'SAMEORIGIN'

    def test_health(self, client):
        body = client.get("/health").json()
        assert body['success'] is True
        assert body['data']['status'] == 'ok'
        assert body['data']['pool']['max_connections'] == 5
