"""
tests/core/test_core_api_client.py - core/api_client.py
"""

import time

import pytest
import requests

from aepctl.core.api_client import HttpExecutor, PlatformClient, ResponseStream, describe_request
from aepctl.core.errors import ApiError, CancelledError, NetworkError
from aepctl.core.request import RequestSpec, prepare

from conftest import FakeResponse


class TestResponseStream:
    """Byte stream over chunks"""

    def test_read_in_pieces(self):
        stream = ResponseStream.from_bytes(b'abcdef', chunk_size=4)
        assert stream.read(3) == b'abc'
        assert stream.read(2) == b'de'
        assert stream.read() == b'f'
        assert stream.read() == b''

    def test_close_once(self):
        """Close callbacks run once"""
        closed = []
        stream = ResponseStream.from_bytes(b'abc', close=lambda: closed.append(1))
        stream.close()
        stream.close()
        assert closed == [1]
        assert stream.read() == b''

    def test_empty(self):
        stream = ResponseStream.empty()
        assert not stream.has_body
        assert stream.read_all() == b''


class TestPlatformClient:
    """Execution and error normalization"""

    def test_relative_url(self, client, ctx):
        """Relative paths resolve against the platform URL"""
        assert client.prepare(ctx, RequestSpec('GET', '/data/x')).url == 'https://platform.adobe.io/data/x'

    def test_custom_platform_url(self, authenticator, fake_session, ctx):
        client = PlatformClient(authenticator, HttpExecutor(session=fake_session), platform_url='https://example.test/')
        assert client.prepare(ctx, RequestSpec('GET', 'data/x')).url == 'https://example.test/data/x'
        assert client.url('https://other.test/y') == 'https://other.test/y'

    def test_success(self, client, fake_session, ctx):
        fake_session.queue({'name': 'prod'})
        with client.call(ctx, RequestSpec('GET', '/x')) as stream:
            assert stream.read_all() == b'{"name": "prod"}'
            assert stream.status == 200
        sent = fake_session.sent[0]
        assert sent.headers['Authorization'] == 'Bearer X'
        assert sent.headers['x-gw-ims-org-id'] == 'O@AdobeOrg'

    def test_error_envelope(self, client, fake_session, ctx):
        """Non-2xx becomes ApiError with the server description"""
        response = fake_session.queue({'error': 'bad_request', 'error_description': 'missing x'},
                                      status=400, reason='Bad Request')
        with pytest.raises(ApiError) as exc:
            client.call(ctx, RequestSpec('GET', '/x'))
        assert exc.value.status == 400
        assert exc.value.message == 'missing x'
        assert str(exc.value) == 'Error (400 Bad Request): missing x'
        assert exc.value.exit_code == 4
        assert response.closed

    def test_error_without_body(self, client, fake_session, ctx):
        fake_session.queue(b'', status=503, reason='Service Unavailable')
        with pytest.raises(ApiError) as exc:
            client.call(ctx, RequestSpec('GET', '/x'))
        assert exc.value.message == 'Service Unavailable'

    def test_no_content(self, client, fake_session, ctx):
        fake_session.queue(b'', status=204)
        assert not client.call(ctx, RequestSpec('DELETE', '/x')).has_body

    def test_network_error(self, authenticator, ctx):
        """Transport failures carry method and URL"""

        class Failing:
            def send(self, *args, **kwargs):
                raise requests.exceptions.ConnectTimeout('timed out')

        client = PlatformClient(authenticator, HttpExecutor(session=Failing()))
        with pytest.raises(NetworkError) as exc:
            client.call(ctx, RequestSpec('GET', '/x'))
        assert exc.value.url == 'https://platform.adobe.io/x'
        assert exc.value.retryable
        assert exc.value.exit_code == 5

    def test_post_not_retryable(self):
        assert not NetworkError('failed', method='post').retryable

    def test_dry_run(self, dry_client, fake_session, ctx):
        """Nothing sent, empty stream"""
        stream = dry_client.call(ctx, RequestSpec('GET', '/x'))
        assert not stream.has_body
        assert fake_session.sent == []
        assert dry_client.executor.calls == 0

    def test_cancelled_before_send(self, client, fake_session, ctx):
        ctx.cancel()
        with pytest.raises(CancelledError):
            client.call(ctx, RequestSpec('GET', '/x'))
        assert fake_session.sent == []

    def test_cancel_closes_stream(self, client, fake_session, ctx):
        """Cancellation closes the open response"""
        response = fake_session.queue({'a': 1})
        stream = client.call(ctx, RequestSpec('GET', '/x'))
        ctx.cancel()
        assert stream.closed
        assert response.closed


def test_describe_request_masks_token(authenticator):
    prepared = prepare(RequestSpec('GET', 'https://h/x'), authenticator)
    text = describe_request(prepared)
    assert text.startswith('GET https://h/x')
    assert 'Authorization: Bearer ***' in text


class TestDeadline:
    """The per request timeout bounds the whole exchange"""

    class Trickling:
        """Session whose response body arrives one byte every interval"""

        def __init__(self, body: bytes, interval: float):
            self.response = FakeResponse(body)
            self.interval = interval

            def iter_content(chunk_size=1):
                for i in range(len(body)):
                    time.sleep(interval)
                    yield body[i:i + 1]

            self.response.iter_content = iter_content

        def send(self, prepared, stream=False, timeout=None):
            self.response.url = prepared.url
            return self.response

    def test_slow_body_read(self, authenticator, ctx):
        session = self.Trickling(b'[1,1,1,1,1,1,2]', 0.1)
        client = PlatformClient(authenticator, HttpExecutor(session=session, timeout=0.2))
        stream = client.call(ctx, RequestSpec('GET', '/x'))
        started = time.monotonic()
        with pytest.raises(CancelledError) as exc:
            stream.read_all()
        assert 'deadline exceeded' in str(exc.value)
        assert time.monotonic() - started < 1.0
        assert session.response.closed
        assert not ctx.cancelled

    def test_fast_body_within_deadline(self, client, fake_session, ctx):
        fake_session.queue({'a': 1})
        with client.call(ctx, RequestSpec('GET', '/x')) as stream:
            assert stream.read_all() == b'{"a": 1}'
        assert not ctx.cancelled
