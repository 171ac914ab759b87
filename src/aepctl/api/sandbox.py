#!/usr/bin/env python3
"""
Sandbox management
"""

from ..core.errors import ConfigError
from ..core.request import RequestSpec
from .base import endpoint, platform_url

BASE = 'data/foundation/sandbox-management'


@endpoint('sandbox.list', path=['sandboxes'], params=['offset'])
def list_sandboxes(all_sandboxes: bool = False, limit=None, offset: str = '') -> RequestSpec:
    """Active sandboxes of the organization, all_sandboxes includes the inactive ones"""
    url = platform_url(f"{BASE}/sandboxes" if all_sandboxes else f"{BASE}/")
    return RequestSpec('GET', url).add_queries('limit', limit or '', 'offset', offset)


@endpoint('sandbox.types', path=['sandboxTypes'], paged=False)
def list_sandbox_types() -> RequestSpec:
    return RequestSpec('GET', platform_url(f"{BASE}/sandboxTypes"))


@endpoint('sandbox.get', paged=False)
def get_sandbox(name: str = '') -> RequestSpec:
    if not name:
        raise ConfigError("sandbox parameter missing")
    return RequestSpec('GET', platform_url(f"{BASE}/sandboxes/{{name}}"), aux={'name': name})
