#!/usr/bin/env python3
"""
Request builder

A RequestSpec is a pure value describing one platform call. prepare() turns
it into a requests.PreparedRequest with the authentication headers attached;
it performs no I/O apart from minting a token when none is cached.

URL templates use two kinds of placeholders:

    {} or {0}   positional path argument, inserted verbatim
    {name}      auxiliary value, path-escaped

The query block is never part of the template, it is encoded and appended
by the builder.
"""

import copy
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote, quote_plus, urlsplit

import requests
from requests.structures import CaseInsensitiveDict

from .errors import ConfigError

PLACEHOLDER = re.compile(r'\{([A-Za-z0-9_\-]*)\}')
JSON_CONTENT_TYPE = 'application/json'


def encode_query(query: Dict[str, List[str]]) -> str:
    """
    Encode a multimap as query string: keys sorted, empty values dropped,
    keys and values percent-encoded, '?' prefix.

    Returns an empty string if nothing remains.
    """
    pairs = []
    for key in sorted(query):
        for value in query[key]:
            if value == '' or value is None:
                continue
            pairs.append(f"{quote_plus(key, safe='')}={quote_plus(str(value), safe='')}")
    return '?' + '&'.join(pairs) if pairs else ''


def decode_query(encoded: str) -> Dict[str, List[str]]:
    result: Dict[str, List[str]] = {}
    for key, value in parse_qsl(encoded.lstrip('?'), keep_blank_values=False):
        result.setdefault(key, []).append(value)
    return result


def get_param(url: str, name: str) -> str:
    """First value of the query parameter name in url, empty if absent"""
    if not url:
        return ''
    return decode_query(urlsplit(url).query).get(name, [''])[0]


def path_escape(value: str) -> str:
    return quote(str(value), safe='')


@dataclass
class RequestSpec:
    method: str
    url: str
    args: Tuple[str, ...] = ()
    query: Dict[str, List[str]] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    aux: Dict[str, str] = field(default_factory=dict)
    expand: bool = True

    def add_query(self, name: str, value) -> 'RequestSpec':
        if value is None:
            return self
        self.query.setdefault(name, []).append(str(value))
        return self

    def add_queries(self, *pairs) -> 'RequestSpec':
        """add_queries('limit', 10, 'orderby', '') adds name/value pairs, dropping empty values"""
        if len(pairs) % 2:
            raise ValueError("add_queries expects name/value pairs")
        for name, value in zip(pairs[::2], pairs[1::2]):
            if value not in (None, ''):
                self.add_query(name, value)
        return self

    def with_query(self, name: str, value: str) -> 'RequestSpec':
        """Copy with the query parameter name replaced by value"""
        result = self.clone()
        result.query.pop(name, None)
        if value:
            result.query[name] = [value]
        return result

    def set_header(self, name: str, value: str) -> 'RequestSpec':
        self.headers[name] = value
        return self

    def set_header_if_absent(self, name: str, value: str) -> 'RequestSpec':
        if not any(k.lower() == name.lower() for k in self.headers):
            self.headers[name] = value
        return self

    def set_value(self, name: str, value: str) -> 'RequestSpec':
        self.aux[name] = value
        return self

    def get_value(self, name: str, default: str = '') -> str:
        return self.aux.get(name) or default

    def get_value_path(self, name: str, default: str = '') -> str:
        return path_escape(self.get_value(name, default))

    def clone(self) -> 'RequestSpec':
        return copy.deepcopy(self)

    def expanded_url(self) -> str:
        if not self.expand:
            return self.url
        positional = iter(self.args)

        def replace(match):
            name = match.group(1)
            if name == '':
                try:
                    return str(next(positional))
                except StopIteration:
                    raise ConfigError(f"Not enough path arguments for {self.url}")
            if name.isdigit():
                index = int(name)
                if index >= len(self.args):
                    raise ConfigError(f"Missing path argument {index} for {self.url}")
                return str(self.args[index])
            if not self.aux.get(name):
                raise ConfigError(f"Missing value '{name}' for {self.url}")
            return path_escape(self.aux[name])

        return PLACEHOLDER.sub(replace, self.url)

    def full_url(self) -> str:
        return self.expanded_url() + encode_query(self.query)


@dataclass
class PageParams:
    """Common listing parameters"""
    order: str = ''
    limit: Union[int, str, None] = None
    start: str = ''
    filter: str = ''
    token: bool = False

    def apply(self, spec: RequestSpec) -> RequestSpec:
        limit = str(self.limit) if self.limit else ''
        return spec.add_queries(
            'orderby', self.order,
            'limit', limit,
            'continuationToken' if self.token else 'start', self.start,
            'property', self.filter,
        )


def merge_headers(auth: Dict[str, str], spec: RequestSpec) -> CaseInsensitiveDict:
    """Authentication headers first, caller supplied headers win on collisions"""
    headers = CaseInsensitiveDict(auth)
    headers.update(spec.headers)
    if spec.body is not None and 'Content-Type' not in headers:
        headers['Content-Type'] = JSON_CONTENT_TYPE
    return headers


def prepare(spec: RequestSpec, authenticator=None, ctx=None, mint: bool = True) -> requests.PreparedRequest:
    """
    Materialize spec into a prepared request.

    Args:
        spec: the request description
        authenticator: supplies the authentication headers, None for none
        ctx: cancellation context for a possible token exchange
        mint: False never exchanges a token (dry run)
    """
    auth = authenticator.headers(ctx, mint=mint) if authenticator is not None else {}
    request = requests.Request(
        method=spec.method.upper(),
        url=spec.full_url(),
        headers=dict(merge_headers(auth, spec)),
        data=spec.body,
    )
    return request.prepare()
