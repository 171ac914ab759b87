#!/usr/bin/env python3
"""
Endpoint registry for the platform services.

Every endpoint is a builder returning a RequestSpec, wrapped by the endpoint
decorator. The resulting Endpoint object is called as

    endpoint(ctx, client, params) -> ResponseStream

where params is either a mapping of builder keyword arguments or an already
built RequestSpec, which is sent unchanged.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from ..core.api_client import PlatformClient, ResponseStream
from ..core.context import Context
from ..core.errors import ConfigError
from ..core.pager import STYLE_TOKEN, STYLE_URL, PageState, Pager
from ..core.query import Query
from ..core.request import RequestSpec

Params = Union[None, RequestSpec, Mapping[str, Any]]
Builder = Callable[..., RequestSpec]

REGISTRY: Dict[str, 'Endpoint'] = {}


@dataclass(frozen=True)
class Paging:
    """How the pages of a listing are linked and where the elements are"""
    path: Tuple[str, ...] = ()
    params: Tuple[str, ...] = ('continuationToken',)
    style: str = STYLE_TOKEN
    base: str = ''


class Endpoint:
    def __init__(self, name: str, build: Builder, paging: Optional[Paging] = None, paged: bool = True):
        self.name = name
        self.build = build
        self.paging = paging or Paging()
        self.paged = paged
        self.__doc__ = build.__doc__

    def __repr__(self) -> str:
        return f"Endpoint({self.name})"

    def request(self, params: Params = None) -> RequestSpec:
        if isinstance(params, RequestSpec):
            return params
        return self.build(**dict(params or {}))

    def __call__(self, ctx: Context, client: PlatformClient, params: Params = None) -> ResponseStream:
        return client.call(ctx, self.request(params))

    def pager(self, client: PlatformClient, params: Params = None, max_calls: Optional[int] = None) -> Pager:
        """Pager over all pages of this endpoint, single page for endpoints without paging"""
        paging = self.paging
        return Pager(client, self.request(params), params=paging.params, style=paging.style,
                     base=paging.base, max_calls=max_calls if self.paged else 1)

    def each(self, ctx: Context, client: PlatformClient, on_item: Callable[[Query], Any], params: Params = None,
             max_calls: Optional[int] = None) -> PageState:
        """Stream every listed element of all pages into on_item"""
        return self.pager(client, params, max_calls).run(ctx, self.payload_path, on_item=on_item)

    @property
    def payload_path(self) -> Tuple[str, ...]:
        return self.paging.path


def endpoint(name: str, path: Sequence[str] = (), params: Sequence[str] = ('continuationToken',),
             style: str = STYLE_TOKEN, base: str = '', paged: bool = True):
    """
    Register a RequestSpec builder under name.

    Args:
        name: key in the registry, e.g. 'catalog.datasets'
        path: payload path of the listed elements
        params: query parameters copied from the next link
        style: STYLE_TOKEN or STYLE_URL
        base: path prefix of relative next links (STYLE_URL)
        paged: False for endpoints returning a single document
    """
    def decorator(build: Builder) -> Endpoint:
        if name in REGISTRY:
            raise ValueError(f"Endpoint {name} registered twice")
        result = Endpoint(name, build, Paging(tuple(path), tuple(params), style, base), paged)
        REGISTRY[name] = result
        return result
    return decorator


def platform_url(path: str) -> str:
    """Path on the platform host, resolved against the client's platform URL"""
    return '/' + path.lstrip('/')


def to_millis(value: Optional[str], what: str = 'time') -> str:
    """
    Milliseconds since epoch as string.

    Numbers are passed through, RFC 3339 timestamps are converted, naive
    timestamps are taken as UTC.
    """
    if value is None or value == '':
        return ''
    value = str(value).strip()
    if value.isdigit():
        return value
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        raise ConfigError(f"Invalid {what} {value}, expected milliseconds or RFC 3339 timestamp")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return str(int(parsed.timestamp()) * 1000)


def flag(value: bool) -> str:
    return 'true' if value else ''


__all__ = ['Endpoint', 'Paging', 'REGISTRY', 'STYLE_TOKEN', 'STYLE_URL', 'endpoint', 'flag',
           'platform_url', 'to_millis']
