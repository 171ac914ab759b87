#!/usr/bin/env python3
"""
Flow service - source and destination connections.

The next link of a page is relative to the flow service root and is called
verbatim.
"""

from ..core.request import RequestSpec
from .base import STYLE_URL, endpoint, flag, platform_url

BASE = '/data/foundation/flowservice'


@endpoint('flow.connections', path=['items'], style=STYLE_URL, base=BASE)
def list_connections(prop_filter: str = '', limit=None, order: str = '', token: str = '',
                     count: bool = False) -> RequestSpec:
    """
    Connections of the sandbox.

    Args:
        prop_filter: property filter, e.g. name~^test
        limit: page size
        order: sort property, prefix - for descending
        token: continuation token of a previous call
        count: return the number of connections only
    """
    spec = RequestSpec('GET', platform_url(f"{BASE}/connections"))
    return spec.add_queries(
        'property', prop_filter,
        'limit', limit or '',
        'orderby', order,
        'continuationToken', token,
        'count', flag(count),
    )
