#!/usr/bin/env python3
"""
Pager - follow-up requests driven by the links of the previous page.

Two paging styles are supported:

    STYLE_TOKEN   the paging parameters (continuation token, start, orderby)
                  are taken from the query of _links.next.href and set on a
                  copy of the first request
    STYLE_URL     _links.next.href is called verbatim on the platform host,
                  relative links below an optional base path

Each page is streamed once: a Finder delivers the payload elements to the
item handler while another handler captures the next link. Pages are
processed strictly one after another.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Optional, Sequence, Tuple

from .api_client import PlatformClient, ResponseStream
from .config import get_logger
from .context import Context
from .errors import ParseError
from .json_cursor import TokenKind
from .json_finder import Finder
from .json_iterator import Iterator
from .query import Query
from .request import RequestSpec, get_param

logger = get_logger(__name__)

STYLE_TOKEN = 'token'
STYLE_URL = 'url'

NEXT_PATH = ('_links', 'next', 'href')

ItemHandler = Callable[[Query], Any]
PageHandler = Callable[[bytes, Query], Any]


@dataclass
class PageState:
    calls: int = 0
    next_token: str = ''
    next_url: str = ''
    next_params: Dict[str, str] = field(default_factory=dict)
    # key paths the finder watches in each page
    filter: FrozenSet[Tuple[str, ...]] = frozenset()

    @property
    def terminal(self) -> bool:
        return self.calls >= 1 and not self.next_token and not self.next_url


def split_path(path) -> tuple:
    if not path:
        return ()
    if isinstance(path, str):
        return tuple(p for p in path.split('.') if p)
    return tuple(path)


class Pager:
    """
    Drive one or more requests of a listing.

    Args:
        client: executes the requests
        spec: the first request
        params: query parameters copied from the next link, the first one
            carries the continuation token
        style: STYLE_TOKEN or STYLE_URL
        base: path prefix of relative next links in STYLE_URL
        next_path: path of the next link in every page
        max_calls: optional upper bound of requests, None for no bound
    """

    def __init__(self, client: PlatformClient, spec: RequestSpec, params: Sequence[str] = ('continuationToken',),
                 style: str = STYLE_TOKEN, base: str = '', next_path: Sequence[str] = NEXT_PATH,
                 max_calls: Optional[int] = None):
        if style not in (STYLE_TOKEN, STYLE_URL):
            raise ValueError(f"Unknown paging style {style}")
        self.client = client
        self.spec = spec
        if isinstance(params, str):
            params = (params,)
        self.params = tuple(params)
        self.style = style
        self.base = base.rstrip('/')
        self.next_path = tuple(next_path)
        self.max_calls = max_calls
        self.state = PageState()

    def _request(self) -> RequestSpec:
        if self.state.next_url:
            url = self.state.next_url
            if self.base and not url.startswith(('http://', 'https://')):
                url = self.base + '/' + url.lstrip('/')
            return RequestSpec('GET', self.client.url(url), headers=dict(self.spec.headers), expand=False)
        if self.state.next_token:
            spec = self.spec
            for name, value in self.state.next_params.items():
                spec = spec.with_query(name, value)
            return spec
        return self.spec

    def _advance(self, href: str):
        self.state.next_token = ''
        self.state.next_url = ''
        self.state.next_params = {}
        if not href:
            return
        if self.style == STYLE_URL:
            self.state.next_url = href
            return
        values = {name: get_param(href, name) for name in self.params}
        self.state.next_params = {name: value for name, value in values.items() if value}
        self.state.next_token = values[self.params[0]]

    def run(self, ctx: Context, payload_path=None, on_item: Optional[ItemHandler] = None,
            on_page: Optional[PageHandler] = None, iterate_objects: bool = True) -> PageState:
        """
        Request all pages.

        Args:
            payload_path: key path of the array or object holding the elements
            on_item: called with each element in document order
            on_page: called with the raw bytes and the decoded document of each
                page; the page is materialized instead of streamed
            iterate_objects: an object payload is a map of elements; False hands
                it to on_item as a single element
        """
        payload_path = split_path(payload_path)
        if payload_path and on_page is None:
            watched = {self.next_path, payload_path} if on_item is not None else {self.next_path}
            self.state.filter = frozenset(p for p in watched if p)
        while not self.state.terminal:
            if self.max_calls is not None and self.state.calls >= self.max_calls:
                logger.debug(f"Stopping after {self.state.calls} calls")
                break
            ctx.check()
            stream = self.client.call(ctx, self._request())
            self.state.calls += 1
            try:
                if not stream.has_body:
                    self._advance('')
                    break
                if on_page is not None:
                    href = self._materialized(stream, payload_path, on_item, on_page, iterate_objects)
                else:
                    href = self._streamed(ctx, stream, payload_path, on_item, iterate_objects)
            finally:
                stream.close()
            self._advance(href)
            logger.debug(f"Page {self.state.calls} done, next token {self.state.next_token!r}, "
                         f"next url {self.state.next_url!r}")
        return self.state

    def _streamed(self, ctx: Context, stream: ResponseStream, payload_path, on_item, iterate_objects: bool) -> str:
        it = Iterator.from_stream(stream, ctx)
        if not payload_path:
            if on_item is not None:
                deliver(it, on_item, iterate_objects)
            return ''
        captured = []
        finder = Finder()
        if self.next_path in self.state.filter:
            finder.add(self.next_path, lambda it: captured.append(it.next().str()))
        if payload_path in self.state.filter:
            finder.add(payload_path, lambda payload: deliver(payload, on_item, iterate_objects))
        finder.find(it)
        return captured[-1] if captured else ''

    def _materialized(self, stream: ResponseStream, payload_path, on_item, on_page, iterate_objects: bool) -> str:
        body = stream.read_all()
        try:
            document = Query(json.loads(body))
        except ValueError as e:
            raise ParseError(f"invalid JSON response: {e}", offset=getattr(e, 'pos', -1))
        on_page(body, document)
        if payload_path and on_item is not None:
            target = document.get(*payload_path)
            if target.kind == 'object' and iterate_objects:
                target.range_attributes(lambda name, q: on_item(q))
            elif target.kind == 'array':
                target.range(on_item)
            elif not target.is_null():
                on_item(target)
        return document.str(*self.next_path)


def deliver(it: Iterator, on_item: ItemHandler, iterate_objects: bool = True):
    """Stream the elements of an array or object value into on_item"""
    kind = it.cursor.peek_kind()
    if kind is TokenKind.ARRAY_OPEN or (kind is TokenKind.OBJECT_OPEN and iterate_objects):
        it.range(on_item)
    elif kind is TokenKind.OBJECT_OPEN:
        on_item(it.next())
    else:
        it.skip()
