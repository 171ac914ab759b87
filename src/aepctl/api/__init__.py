"""
Endpoint functions of the platform services.

    from aepctl.api import ALL
    stream = ALL['catalog.datasets'](ctx, client, {'limit': 10})
"""

from aepctl.api import access_control, catalog, flow, identity, od, qs, sandbox, sr, ups
from aepctl.api.base import REGISTRY, Endpoint, Paging, endpoint

ALL = dict(sorted(REGISTRY.items()))

__all__ = ['ALL', 'Endpoint', 'Paging', 'endpoint', 'access_control', 'catalog', 'flow', 'identity', 'od',
           'qs', 'sandbox', 'sr', 'ups']
