"""
================================================================================
Sales Reporting API - Rate Limiting Unit Tests
================================================================================
Developed by Waqqas Hanafi
Calaveras County Health and Human Services Agency

Description:
    Unit tests for the slowapi limiter configuration and the 429 envelope
    handler. A minimal FastAPI app exercises the limiter without a database.

Test Coverage:
    - Limit notation from configuration
    - Application-wide counting per client
    - Independent limiter instances
    - 429 envelope rendering
================================================================================
"""
import json
import pytest
from unittest.mock import Mock
from fastapi import FastAPI
from fastapi.testclient import TestClient
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from sales_api.config import RateLimitConfig
from sales_api.rate_limit import rate_limit_string, create_limiter, handle_rate_limit_exceeded


def make_app(limiter):
    app = FastAPI()
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, handle_rate_limit_exceeded)
    app.add_middleware(SlowAPIMiddleware)

    @app.get("/one")
    def one():
        return {"ok": True}

    @app.get("/two")
    def two():
        return {"ok": True}

    return app


@pytest.fixture
def limited_client():
    return TestClient(make_app(create_limiter(RateLimitConfig(max_requests=3, window_seconds=60))))


class TestRateLimitString:
    """Test limit notation"""

    def test_from_config(self):
        assert rate_limit_string(RateLimitConfig(max_requests=100, window_seconds=900)) == "100 per 900 seconds"


class TestLimiter:
    """Test application-wide limiting"""

    def test_allows_up_to_limit(self, limited_client):
        responses = [limited_client.get("/one") for _ in range(3)]
        assert [r.status_code for r in responses] == [200, 200, 200]
        assert responses[0].headers['X-RateLimit-Limit'] == '3'
        assert responses[0].headers['X-RateLimit-Remaining'] == '2'

    def test_rejects_over_limit(self, limited_client):
        for _ in range(3):
            limited_client.get("/one")
        response = limited_client.get("/one")
        assert response.status_code == 429
        assert response.json() == {
            'success': False,
            'error': {'code': 'RATE_LIMIT_EXCEEDED', 'message': 'Too many requests, please try again later'},
        }
        assert 'Retry-After' in response.headers

    def test_limit_shared_across_routes(self, limited_client):
        limited_client.get("/one")
        limited_client.get("/two")
        limited_client.get("/one")
        assert limited_client.get("/two").status_code == 429

    def test_limiters_independent(self, limited_client):
        for _ in range(4):
            limited_client.get("/one")
        other = TestClient(make_app(create_limiter(RateLimitConfig(max_requests=3, window_seconds=60))))
        assert other.get("/one").status_code == 200


class TestRateLimitHandler:
    """Test the 429 envelope handler in isolation"""

    def test_envelope_with_limiter_headers(self):
        request = Mock()
        request.client.host = "10.0.0.5"
        request.app.state.limiter._inject_headers.side_effect = lambda response, limit: response
        request.state.view_rate_limit = ("100 per 900 seconds", ["10.0.0.5", "global"])

        response = handle_rate_limit_exceeded(request, Mock())

        assert response.status_code == 429
        assert json.loads(response.body)['error']['code'] == 'RATE_LIMIT_EXCEEDED'
        request.app.state.limiter._inject_headers.assert_called_once_with(
            response, request.state.view_rate_limit
        )
