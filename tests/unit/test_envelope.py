"""
================================================================================
Sales Reporting API - Response Envelope Unit Tests
================================================================================
Developed by Waqqas Hanafi
Calaveras County Health and Human Services Agency

Description:
    Unit tests for the success and error envelopes shared by every endpoint.
================================================================================
"""
import json

from sales_api.constants import ErrorCode, HTTPStatus
from sales_api.reports.envelope import (
    build_success_body,
    build_error_body,
    success_response,
    error_response,
)
from sales_api.reports.models import ResponseMeta, PeriodBounds, LeaderboardEntry


class TestSuccessEnvelope:
    """Test {success, data, meta} bodies"""

    def test_models_are_serialized(self):
        entry = LeaderboardEntry(rank=1, user_id=4, user_name='Dana', role='Sales Rep',
                                 total_revenue=700000, sale_count=12)
        body = build_success_body([entry], ResponseMeta(total=1))
        assert body == {
            'success': True,
            'data': [{
                'rank': 1, 'user_id': 4, 'user_name': 'Dana', 'role': 'Sales Rep',
                'total_revenue': 700000, 'sale_count': 12,
            }],
            'meta': {'total': 1},
        }

    def test_unset_meta_fields_omitted(self):
        meta = ResponseMeta(total=2, period=PeriodBounds(start='2021-01-01', end=''))
        body = build_success_body([], meta)
        assert body['meta'] == {'total': 2, 'period': {'start': '2021-01-01', 'end': ''}}

    def test_pagination_meta_kept(self):
        body = build_success_body([], ResponseMeta(total=0, limit=5, offset=0))
        assert body['meta'] == {'total': 0, 'limit': 5, 'offset': 0}

    def test_no_meta(self):
        body = build_success_body({'status': 'ok'})
        assert body == {'success': True, 'data': {'status': 'ok'}}

    def test_success_response(self):
        response = success_response({'a': 1})
        assert response.status_code == HTTPStatus.OK
        assert json.loads(response.body) == {'success': True, 'data': {'a': 1}}


class TestErrorEnvelope:
    """Test {success: false, error} bodies"""

    def test_error_body(self):
        assert build_error_body(ErrorCode.INVALID_LIMIT, 'limit must be between 1 and 100') == {
            'success': False,
            'error': {'code': 'INVALID_LIMIT', 'message': 'limit must be between 1 and 100'},
        }

    def test_error_response_with_headers(self):
        response = error_response(HTTPStatus.TOO_MANY_REQUESTS, ErrorCode.RATE_LIMIT_EXCEEDED,
                                  'slow down', headers={'Retry-After': '30'})
        assert response.status_code == 429
        assert response.headers['Retry-After'] == '30'
        assert json.loads(response.body)['error']['code'] == 'RATE_LIMIT_EXCEEDED'
