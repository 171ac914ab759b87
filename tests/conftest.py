"""
tests/conftest.py - shared fixtures

RSA key pair, credentials, an in-memory token store and a fake requests
session; no test touches the network or the real configuration directory.

Usage:
    def test_something(client, fake_session):
        fake_session.queue({'results': []})
        ...
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from aepctl.core.api_client import HttpExecutor, PlatformClient
from aepctl.core.auth import Authenticator, Credentials
from aepctl.core.context import Context
from aepctl.core.token_store import BearerToken, MemoryTokenStore

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Config root, home and working directory point into tmp_path"""
    monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path / 'config'))
    monkeypatch.setenv('HOME', str(tmp_path / 'home'))
    monkeypatch.setenv('APPDATA', str(tmp_path / 'config'))
    monkeypatch.chdir(tmp_path)
    return tmp_path / 'config'


# =============================================================================
# Fake HTTP
# =============================================================================


class FakeResponse:
    """Minimal requests.Response with a chunked body"""

    def __init__(self, body: Any = b'', status: int = 200, reason: str = 'OK', url: str = ''):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode('utf-8')
        self.content = body
        self.status_code = status
        self.reason = reason
        self.url = url
        self.headers = {'Content-Type': 'application/json'}
        self.closed = False

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def json(self):
        return json.loads(self.content)

    def close(self):
        self.closed = True


class FakeSession:
    """Answers queued responses in order and records every request"""

    def __init__(self):
        self.responses: List[FakeResponse] = []
        self.sent = []
        self.posts = []
        self.default: Optional[Callable[[], FakeResponse]] = None

    def queue(self, body: Any = b'', status: int = 200, reason: str = 'OK') -> FakeResponse:
        response = FakeResponse(body, status, reason)
        self.responses.append(response)
        return response

    def always(self, body: Any, status: int = 200):
        """Answer every request without a queued response with body"""
        self.default = lambda: FakeResponse(body, status)

    def _next(self, url: str) -> FakeResponse:
        if self.responses:
            response = self.responses.pop(0)
        elif self.default is not None:
            response = self.default()
        else:
            raise AssertionError(f"unexpected request to {url}")
        response.url = url
        return response

    def send(self, prepared, stream: bool = False, timeout: Optional[float] = None):
        self.sent.append(prepared)
        return self._next(prepared.url)

    def post(self, url: str, data=None, timeout: Optional[float] = None, headers=None):
        self.posts.append({'url': url, 'data': data, 'headers': headers})
        return self._next(url)

    @property
    def urls(self) -> List[str]:
        return [p.url for p in self.sent]


# =============================================================================
# Credentials and clients
# =============================================================================


@pytest.fixture(scope='session')
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope='session')
def rsa_pem(rsa_key) -> bytes:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture
def credentials(rsa_pem) -> Credentials:
    return Credentials(
        organization='O@AdobeOrg',
        technical_account='T@techacct.adobe.com',
        client_id='C',
        client_secret='S3cr3t-client-secret',
        private_key=rsa_pem,
        sandbox='prod',
    )


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: NOW


@pytest.fixture
def valid_token() -> BearerToken:
    return BearerToken(token='X', expires=NOW + timedelta(hours=1))


@pytest.fixture
def token_store() -> MemoryTokenStore:
    return MemoryTokenStore()


@pytest.fixture
def authenticator(credentials, valid_token, fake_session, clock) -> Authenticator:
    """Authenticator holding a valid token, never exchanges"""
    return Authenticator(credentials, store=MemoryTokenStore(valid_token), session=fake_session, clock=clock)


@pytest.fixture
def client(authenticator, fake_session) -> PlatformClient:
    return PlatformClient(authenticator, HttpExecutor(session=fake_session))


@pytest.fixture
def dry_client(authenticator, fake_session) -> PlatformClient:
    return PlatformClient(authenticator, HttpExecutor(session=fake_session, dry_run=True))


@pytest.fixture
def ctx() -> Context:
    return Context.background()


@pytest.fixture
def key_file(tmp_path, rsa_pem):
    path = tmp_path / 'private.key'
    path.write_bytes(rsa_pem)
    return path
