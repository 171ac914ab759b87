#!/usr/bin/env python3
"""
PlatformClient - HTTP executor and streaming responses for aepctl

PlatformClient funnels every platform call through one path: the
RequestSpec is prepared with the authentication headers, executed with the
context's deadline and handed back as a ResponseStream. Non-2xx responses
are normalized into ApiError, transport failures into NetworkError.
"""

import threading
from typing import Callable, Iterable, Iterator, List, Optional

import requests

from .auth import Authenticator
from .config import DEFAULT_PLATFORM_URL, get_logger
from .context import Context
from .errors import ApiError, CancelledError, NetworkError, mask_secret, message_from_body
from .request import RequestSpec, prepare

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 60
CHUNK_SIZE = 16 * 1024
MAX_ERROR_BODY = 64 * 1024
SECRET_HEADERS = ('authorization',)


class ResponseStream:
    """
    Readable byte stream over a response body.

    Args:
        chunks: iterable of body chunks
        close: called once when the stream is closed
        has_body: False for dry runs and 204 responses
    """

    def __init__(self, chunks: Optional[Iterable[bytes]] = None, close: Optional[Callable[[], None]] = None,
                 status: int = 200, url: str = '', headers=None, has_body: bool = True,
                 ctx: Optional[Context] = None):
        self._chunks: Iterator[bytes] = iter(chunks or ())
        self._on_close: List[Callable[[], None]] = [close] if close is not None else []
        self._buffer = b''
        self._exhausted = False
        self._closed = False
        self._lock = threading.Lock()
        self._ctx = ctx
        self.status = status
        self.url = url
        self.headers = headers or {}
        self.has_body = has_body

    @classmethod
    def empty(cls, url: str = '', status: int = 200) -> 'ResponseStream':
        return cls(status=status, url=url, has_body=False)

    @classmethod
    def from_bytes(cls, data: bytes, chunk_size: int = CHUNK_SIZE, **kwargs) -> 'ResponseStream':
        chunks = (data[i:i + chunk_size] for i in range(0, len(data), chunk_size))
        return cls(chunks, **kwargs)

    @classmethod
    def from_response(cls, response, ctx: Optional[Context] = None, chunk_size: int = CHUNK_SIZE) -> 'ResponseStream':
        return cls(response.iter_content(chunk_size), close=response.close, status=response.status_code,
                   url=response.url, headers=response.headers, has_body=response.status_code != 204, ctx=ctx)

    @property
    def closed(self) -> bool:
        return self._closed

    def _next_chunk(self) -> bytes:
        if self._ctx is not None:
            self._ctx.check()
        try:
            return next(self._chunks)
        except StopIteration:
            self._exhausted = True
            if self._ctx is not None:
                self._ctx.check()
            return b''
        except (requests.exceptions.RequestException, OSError, ValueError) as e:
            if self._ctx is not None and self._ctx.cancelled:
                raise CancelledError(self._ctx.reason or 'context cancelled')
            if self._closed:
                raise CancelledError('response stream closed')
            raise NetworkError("Could not read response body", url=self.url, cause=e)

    def read(self, n: int = -1) -> bytes:
        """Read up to n bytes, all remaining bytes if n < 0; b'' at the end"""
        if self._closed:
            if self._ctx is not None:
                self._ctx.check()
            return b''
        while (n < 0 or len(self._buffer) < n) and not self._exhausted:
            chunk = self._next_chunk()
            if chunk:
                self._buffer += chunk
        if n < 0:
            data, self._buffer = self._buffer, b''
        else:
            data, self._buffer = self._buffer[:n], self._buffer[n:]
        return data

    def read_all(self) -> bytes:
        return self.read(-1)

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
        for callback in self._on_close:
            callback()

    def on_close(self, callback: Callable[[], None]):
        self._on_close.append(callback)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def describe_request(prepared: requests.PreparedRequest) -> str:
    lines = [f"{prepared.method} {prepared.url}"]
    for name, value in prepared.headers.items():
        if name.lower() in SECRET_HEADERS:
            scheme, _, token = value.partition(' ')
            value = f"{scheme} {mask_secret(token)}" if token else mask_secret(value)
        lines.append(f"{name}: {value}")
    if prepared.body:
        body = prepared.body if isinstance(prepared.body, str) else prepared.body.decode('utf-8', errors='replace')
        lines.append('')
        lines.append(body)
    return '\n'.join(lines)


class HttpExecutor:
    """
    Issue prepared requests.

    Args:
        session: requests session, one per invocation
        timeout: per request deadline in seconds, combined with the context
        dry_run: log the request instead of sending it
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT,
                 dry_run: bool = False, chunk_size: int = CHUNK_SIZE):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.dry_run = dry_run
        self.chunk_size = chunk_size
        self.calls = 0

    def request_timeout(self, ctx: Context) -> float:
        remaining = ctx.remaining()
        return self.timeout if remaining is None else min(self.timeout, remaining)

    def execute(self, ctx: Context, prepared: requests.PreparedRequest) -> ResponseStream:
        ctx.check()
        if self.dry_run:
            logger.info(f"Dry run, request not sent:\n{describe_request(prepared)}")
            return ResponseStream.empty(url=prepared.url)

        # the deadline covers the body read, not only each socket operation
        deadline = ctx.with_timeout(self.timeout)
        timer = None
        if deadline.remaining() is not None:
            timer = threading.Timer(deadline.remaining(), deadline.cancel, args=('deadline exceeded',))
            timer.daemon = True
            timer.start()

        def release():
            if timer is not None:
                timer.cancel()
            deadline.release()

        try:
            stream = self._send(ctx, deadline, prepared)
        except Exception:
            release()
            raise
        stream.on_close(release)
        return stream

    def _send(self, ctx: Context, deadline: Context, prepared: requests.PreparedRequest) -> ResponseStream:
        logger.debug(describe_request(prepared))
        self.calls += 1
        try:
            response = self.session.send(prepared, stream=True, timeout=self.request_timeout(deadline))
        except requests.exceptions.RequestException as e:
            ctx.check()
            raise NetworkError(f"{prepared.method} {prepared.url} failed", method=prepared.method,
                               url=prepared.url, cause=e)
        logger.debug(f"{response.status_code} {response.reason} {prepared.url}")

        if not 200 <= response.status_code < 300:
            try:
                body = self._read_capped(response)
            finally:
                response.close()
            raise ApiError(response.status_code,
                           message_from_body(body, fallback=response.reason or 'request failed'),
                           body=body.decode('utf-8', errors='replace'), url=prepared.url,
                           reason=response.reason)

        stream = ResponseStream.from_response(response, deadline, self.chunk_size)
        stream.on_close(deadline.on_cancel(stream.close))
        return stream

    @staticmethod
    def _read_capped(response) -> bytes:
        body = b''
        try:
            for chunk in response.iter_content(CHUNK_SIZE):
                body += chunk
                if len(body) >= MAX_ERROR_BODY:
                    return body[:MAX_ERROR_BODY]
        except requests.exceptions.RequestException as e:
            logger.debug(f"Could not read error body: {e}")
        return body


class PlatformClient:
    """Authenticated access to the platform REST endpoints"""

    def __init__(self, authenticator: Optional[Authenticator], executor: Optional[HttpExecutor] = None,
                 platform_url: str = DEFAULT_PLATFORM_URL):
        self.authenticator = authenticator
        self.executor = executor or HttpExecutor()
        self.platform_url = platform_url.rstrip('/')

    @property
    def dry_run(self) -> bool:
        return self.executor.dry_run

    @property
    def organization(self) -> str:
        return self.authenticator.credentials.organization if self.authenticator else ''

    def url(self, path: str) -> str:
        """Absolute URL of a platform path, absolute URLs are returned unchanged"""
        if path.startswith(('http://', 'https://')):
            return path
        return f"{self.platform_url}/{path.lstrip('/')}"

    def prepare(self, ctx: Context, spec: RequestSpec) -> requests.PreparedRequest:
        if not spec.url.startswith(('http://', 'https://')):
            spec = spec.clone()
            spec.url = self.url(spec.url)
        return prepare(spec, self.authenticator, ctx, mint=not self.dry_run)

    def call(self, ctx: Context, spec: RequestSpec) -> ResponseStream:
        return self.executor.execute(ctx, self.prepare(ctx, spec))
