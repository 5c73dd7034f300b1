"""
Unit Tests for the pengaduan CLI: API client, stored credentials, command runner
"""
import io
import json

import httpx
import pytest
from rich.console import Console

from cli.auth import CLIAuthManager
from cli.client import PortalAPIError, PortalClient
from cli.config import CLIConfig
from cli.main import create_parser, run

BASE_URL = 'http://portal.test/api/v1'

LOGIN_DATA = {
    'access_token': 'access-123',
    'refresh_token': 'refresh-456',
    'token_type': 'bearer',
    'user': {'id': 'u-1', 'email': 'warga@example.com', 'name': 'Budi Santoso', 'role': 'user'},
}


def portal_transport(seen: list) -> httpx.MockTransport:
    """Fake backend answering the handful of routes the CLI uses"""

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        path = request.url.path
        if path == '/api/v1/login':
            body = json.loads(request.content)
            if body['password'] != 'rahasia123':
                return httpx.Response(401, json={'status': 'error', 'message': 'Invalid credentials'})
            return httpx.Response(200, json={'status': 'success', 'data': LOGIN_DATA})
        if path == '/api/v1/complaints/track':
            return httpx.Response(422, json={
                'status': 'error',
                'message': 'Validation failed',
                'errors': {'registration_number': ['The registration number field is required.']},
            })
        if path == '/api/v1/notifications/unread-count':
            return httpx.Response(200, json={'status': 'success', 'data': {'count': 3}})
        if path == '/api/v1/complaints':
            return httpx.Response(200, json={'status': 'success', 'data': {
                'current_page': int(request.url.params['page']),
                'data': [],
                'per_page': 10,
                'total': 0,
                'last_page': 1,
            }})
        return httpx.Response(404, json={'status': 'error', 'message': 'Resource not found'})

    return httpx.MockTransport(handler)


@pytest.fixture
def cli_config(tmp_path):
    return CLIConfig(api_base_url=BASE_URL + '/', config_dir=str(tmp_path / 'pengaduan'))


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO(), width=120)


class TestPortalClient:

    @pytest.mark.asyncio
    async def test_login_unwraps_envelope_and_keeps_token(self):
        seen = []
        client = PortalClient(BASE_URL, transport=portal_transport(seen))

        data = await client.login('warga@example.com', 'rahasia123')
        assert data['user']['name'] == 'Budi Santoso'
        assert client.token == 'access-123'

        assert await client.unread_count() == 3
        assert seen[-1].headers['authorization'] == 'Bearer access-123'

    @pytest.mark.asyncio
    async def test_error_envelope_raises(self):
        client = PortalClient(BASE_URL, transport=portal_transport([]))

        with pytest.raises(PortalAPIError) as exc_info:
            await client.track('   ')

        assert exc_info.value.status_code == 422
        assert exc_info.value.message == 'Validation failed'
        assert 'registration_number' in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_bad_password(self):
        client = PortalClient(BASE_URL, transport=portal_transport([]))

        with pytest.raises(PortalAPIError) as exc_info:
            await client.login('warga@example.com', 'salah')

        assert exc_info.value.status_code == 401
        assert client.token is None

    @pytest.mark.asyncio
    async def test_list_filters_become_query_params(self):
        seen = []
        client = PortalClient(BASE_URL, token='t', transport=portal_transport(seen))

        page = await client.complaints(page=2, status='pending')

        assert page['current_page'] == 2
        assert seen[0].url.params['status'] == 'pending'
        assert 'search' not in seen[0].url.params

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        def refuse(request):
            raise httpx.ConnectError('connection refused', request=request)

        client = PortalClient(BASE_URL, transport=httpx.MockTransport(refuse))

        with pytest.raises(PortalAPIError) as exc_info:
            await client.statistics()

        assert exc_info.value.status_code == 0


class TestCLIAuthManager:

    @pytest.mark.asyncio
    async def test_login_persists_credentials(self, cli_config, quiet_console):
        manager = CLIAuthManager(cli_config, quiet_console)
        client = PortalClient(cli_config.api_base_url, transport=portal_transport([]))

        assert await manager.login_with_credentials('warga@example.com', 'rahasia123', client=client)

        stored = json.loads(cli_config.credentials_file.read_text())
        assert stored['access_token'] == 'access-123'
        assert stored['role'] == 'user'
        assert oct(cli_config.credentials_file.stat().st_mode & 0o777) == oct(0o600)

        reloaded = CLIAuthManager(cli_config, quiet_console)
        assert reloaded.is_authenticated()
        assert reloaded.credentials.name == 'Budi Santoso'

    @pytest.mark.asyncio
    async def test_failed_login_stores_nothing(self, cli_config, quiet_console):
        manager = CLIAuthManager(cli_config, quiet_console)
        client = PortalClient(cli_config.api_base_url, transport=portal_transport([]))

        assert not await manager.login_with_credentials('warga@example.com', 'salah', client=client)

        assert not cli_config.credentials_file.exists()
        assert 'Invalid credentials' in quiet_console.file.getvalue()

    def test_corrupt_credentials_file_is_ignored(self, cli_config, quiet_console):
        cli_config.credentials_file.parent.mkdir(parents=True)
        cli_config.credentials_file.write_text('{not json')

        manager = CLIAuthManager(cli_config, quiet_console)

        assert not manager.is_authenticated()


class TestCLIConfig:

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv('PENGADUAN_API_URL', 'https://pengaduan.example.go.id/api/v1/')
        monkeypatch.setenv('PENGADUAN_CONFIG_DIR', str(tmp_path))
        monkeypatch.setenv('PENGADUAN_TIMEOUT', '5')

        config = CLIConfig()
        config._load_from_env()

        assert config.api_base_url == 'https://pengaduan.example.go.id/api/v1'
        assert config.timeout == 5
        assert config.credentials_file == tmp_path / 'credentials.json'

    def test_save_and_load(self, tmp_path):
        path = tmp_path / 'config.json'
        CLIConfig(api_base_url='http://a.test/api/v1', timeout=7).save_to_file(str(path))

        config = CLIConfig()
        config.load_from_file(str(path))

        assert config.api_base_url == 'http://a.test/api/v1'
        assert config.timeout == 7


class TestRun:

    @pytest.mark.asyncio
    async def test_data_commands_need_login(self, cli_config, quiet_console):
        args = create_parser().parse_args(['complaints', '--status', 'pending'])

        assert await run(args, cli_config, quiet_console) == 1
        assert 'Authentication required' in quiet_console.file.getvalue()

    def test_unknown_status_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(['complaints', '--status', 'archived'])
