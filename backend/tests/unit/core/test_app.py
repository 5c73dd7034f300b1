"""
Unit Tests for application wiring: envelope errors, middleware, rate limits
"""
import logging
from unittest.mock import ANY, patch

import pytest
from httpx import AsyncClient, ASGITransport
from fastapi import FastAPI, Request

from app.core.exceptions import (
    ComplaintNotFoundError,
    StorageError,
    ValidationError,
    error_response,
)
from app.core.logging_config import logger
from app.core.middleware import RequestSizeLimitMiddleware, should_skip_logging
from app.core.rate_limiter import get_user_identifier


class TestErrorEnvelope:
    def test_not_found(self):
        assert error_response(ComplaintNotFoundError("abc")) == {
            'status': 'error',
            'message': 'Complaint not found',
        }

    def test_validation_includes_field_errors(self):
        body = error_response(ValidationError.single('applicant_nik', 'The applicant nik must be exactly 16 digits.'))

        assert body['message'] == 'Validation failed'
        assert body['errors'] == {'applicant_nik': ['The applicant nik must be exactly 16 digits.']}

    def test_storage_error_hides_path(self):
        body = error_response(StorageError('Failed to write documents/x.pdf', path='documents/x.pdf'))

        assert body == {'status': 'error', 'message': 'Failed to store or read file'}


class TestApplication:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get('/health')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    @pytest.mark.asyncio
    async def test_api_health(self, client: AsyncClient):
        response = await client.get('/api/v1/health')

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_request_id_and_security_headers(self, client: AsyncClient):
        response = await client.get('/api/v1/services', headers={'X-Request-ID': 'abc12345'})

        assert response.headers['x-request-id'] == 'abc12345'
        assert response.headers['x-response-time'].endswith('ms')
        assert response.headers['x-content-type-options'] == 'nosniff'
        assert response.headers['x-frame-options'] == 'DENY'

    @pytest.mark.asyncio
    async def test_unknown_route_uses_envelope(self, client: AsyncClient):
        response = await client.get('/api/v1/does-not-exist')

        assert response.status_code == 404
        assert response.json() == {'status': 'error', 'message': 'Resource not found'}

    @pytest.mark.asyncio
    async def test_malformed_json_body(self, client: AsyncClient, auth_headers):
        response = await client.post(
            '/api/v1/complaints',
            content=b'{not json',
            headers={**auth_headers, 'Content-Type': 'application/json'},
        )

        assert response.status_code == 422
        assert response.json()['errors'] == {'body': ['The request body must be valid JSON.']}


class TestRequestSizeLimit:
    @pytest.mark.asyncio
    async def test_oversized_body_rejected(self):
        app = FastAPI()
        app.add_middleware(RequestSizeLimitMiddleware, max_size=1024 * 1024)

        @app.post('/upload')
        async def upload():
            return {'ok': True}

        async with AsyncClient(transport=ASGITransport(app=app), base_url='http://test') as ac:
            small = await ac.post('/upload', content=b'x' * 10)
            large = await ac.post('/upload', content=b'x' * (1024 * 1024 + 1))

        assert small.status_code == 200
        assert large.status_code == 413
        assert large.json()['status'] == 'error'


class TestHelpers:
    def test_skip_logging_paths(self):
        assert should_skip_logging('/health')
        assert should_skip_logging('/static/app.js')
        assert not should_skip_logging('/api/v1/complaints')

    def test_rate_limit_key_prefers_user(self):
        scope = {'type': 'http', 'headers': [], 'client': ('10.0.0.1', 1234), 'state': {}}
        request = Request(scope)
        assert get_user_identifier(request) == 'ip:10.0.0.1'

        request.state.user_id = 'user-1'
        assert get_user_identifier(request) == 'user:user-1'


class TestRequestLogging:
    @pytest.mark.asyncio
    async def test_finished_request_is_logged(self, client: AsyncClient):
        with patch.object(logger, 'log_request') as log_request:
            await client.get('/api/v1/services')
            await client.get('/health')

        log_request.assert_called_once_with('GET', '/api/v1/services', 200, ANY, client_ip=ANY)

    @pytest.mark.parametrize('status_code, level', [
        (200, logging.INFO),
        (404, logging.WARNING),
        (500, logging.ERROR),
    ])
    def test_level_follows_status(self, status_code, level):
        with patch.object(logger, 'log') as log:
            logger.log_request('GET', '/api/v1/complaints', status_code, 12.5)

        assert log.call_args.args[0] == level
        assert log.call_args.kwargs['extra']['http_status'] == status_code
