"""
Tests for the external report service client and input polling.
"""

import asyncio

import httpx

from scanreport.adapters.report_service import ReportServiceClient, ReportServiceConfig, wait_for_files
from scanreport.storage import REQUIRED_INPUT_FILES


def make_client(handler, base_url='https://scan.example.com', api_key='secret'):
    cfg = ReportServiceConfig(
        base_url=base_url,
        api_key=api_key,
        generate_endpoint='/api/scan/generate-report/{user_id}/{scan_id}',
        timeout_seconds=10,
    )
    return ReportServiceClient(cfg, transport=httpx.MockTransport(handler))


class TestTriggerGeneration:
    def test_posts_to_generate_endpoint(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen['method'] = request.method
            seen['url'] = str(request.url)
            seen['auth'] = request.headers.get('Authorization')
            return httpx.Response(200, json={'message': 'Report generated successfully!'})

        result = asyncio.run(make_client(handler).trigger_generation('u1', 's1'))

        assert result.ok
        assert result.status_code == 200
        assert result.payload == {'message': 'Report generated successfully!'}
        assert seen == {
            'method': 'POST',
            'url': 'https://scan.example.com/api/scan/generate-report/u1/s1',
            'auth': 'Bearer secret',
        }

    def test_server_error_is_reported(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={'message': 'Server error'})

        result = asyncio.run(make_client(handler).trigger_generation('u1', 's1'))

        assert not result.ok
        assert result.status_code == 500

    def test_connection_error_is_reported(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('refused', request=request)

        result = asyncio.run(make_client(handler).trigger_generation('u1', 's1'))

        assert not result.ok
        assert 'ConnectError' in result.error

    def test_unconfigured_client(self):
        client = make_client(lambda request: httpx.Response(200), base_url=None)
        result = asyncio.run(client.trigger_generation('u1', 's1'))

        assert not client.configured
        assert not result.ok

    def test_no_auth_header_without_key(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen['auth'] = request.headers.get('Authorization')
            return httpx.Response(200, text='ok')

        result = asyncio.run(make_client(handler, api_key=None).trigger_generation('u1', 's1'))

        assert result.ok
        assert result.payload == 'ok'
        assert seen['auth'] is None


class TestWaitForFiles:
    def test_ready_when_all_inputs_exist(self, tmp_path):
        for name in REQUIRED_INPUT_FILES:
            (tmp_path / name).write_bytes(b'x')

        result = asyncio.run(wait_for_files(tmp_path, timeout_seconds=1))

        assert result.ready
        assert result.missing == []

    def test_times_out(self, tmp_path):
        (tmp_path / 'scan_results.json').write_bytes(b'{}')

        result = asyncio.run(wait_for_files(tmp_path, poll_interval_seconds=0.05, timeout_seconds=0.1))

        assert not result.ready
        assert 'ai_result.json' in result.missing
        assert 'scan_results.json' not in result.missing
