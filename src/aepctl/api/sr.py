#!/usr/bin/env python3
"""
Schema registry

Resources live either in the tenant or in the global container. The
representation is selected by the Accept header:

    application/vnd.adobe.xed-id+json                 ids and titles only
    application/vnd.adobe.xed[-full][-desc][-notext]+json[; version=N]
"""

from typing import Optional

from ..core.errors import ConfigError
from ..core.request import PageParams, RequestSpec
from .base import endpoint, platform_url

BASE = 'data/foundation/schemaregistry'
PAGE_PARAMS = ('start', 'orderby')


def accept_header(short: bool = False, full: bool = False, descriptors: bool = False,
                  notext: bool = False, version: str = '') -> str:
    if short:
        return 'application/vnd.adobe.xed-id+json'
    value = 'application/vnd.adobe.xed'
    if full:
        value += '-full'
    if descriptors:
        value += '-desc'
    if notext:
        value += '-notext'
    value += '+json'
    if version:
        value += f"; version={version}"
    return value


def container(global_: bool) -> str:
    return 'global' if global_ else 'tenant'


@endpoint('sr.schemas', path=['results'], params=PAGE_PARAMS)
def list_schemas(page: Optional[PageParams] = None, global_: bool = False, full: bool = False,
                 short: bool = True) -> RequestSpec:
    """Schemas of the tenant (or global) container"""
    spec = RequestSpec('GET', platform_url(f"{BASE}/{{cid}}/schemas"), aux={'cid': container(global_)})
    spec.set_header('Accept', accept_header(short=short and not full, full=full))
    return (page or PageParams()).apply(spec)


@endpoint('sr.schema', paged=False)
def get_schema(schema_id: str = '', global_: bool = False, full: bool = False, descriptors: bool = False,
               notext: bool = False, version: str = '1') -> RequestSpec:
    """One schema by $id or meta:altId"""
    if not schema_id:
        raise ConfigError("schema id missing")
    spec = RequestSpec('GET', platform_url(f"{BASE}/{{cid}}/schemas/{{id}}"),
                       aux={'cid': container(global_), 'id': schema_id})
    return spec.set_header('Accept', accept_header(full=full, descriptors=descriptors, notext=notext,
                                                   version=version))


@endpoint('sr.behaviors', path=['results'], params=PAGE_PARAMS)
def list_behaviors(page: Optional[PageParams] = None) -> RequestSpec:
    """Behaviors exist in the global container only"""
    spec = RequestSpec('GET', platform_url(f"{BASE}/global/behaviors"))
    spec.set_header('Accept', accept_header(short=True))
    return (page or PageParams()).apply(spec)


@endpoint('sr.stats', paged=False)
def get_stats() -> RequestSpec:
    return RequestSpec('GET', platform_url(f"{BASE}/stats"))
