#!/usr/bin/env python3
"""
Identity service - namespaces and XID lookup.

Identity graph calls are served by the regional hosts
platform-<region>.adobe.io, the region defaults to va7.
"""

from ..core.errors import ConfigError
from ..core.request import RequestSpec
from .base import endpoint, platform_url

DEFAULT_NAMESPACE = 'ECID'
DEFAULT_REGION = 'va7'
REGIONAL = 'https://platform-{region}.adobe.io'


@endpoint('is.namespaces', paged=False)
def list_namespaces() -> RequestSpec:
    return RequestSpec('GET', platform_url('data/core/idnamespace/identities'))


@endpoint('is.namespace', paged=False)
def get_namespace(namespace_id: str = '') -> RequestSpec:
    """One namespace by its numeric id"""
    if not namespace_id:
        raise ConfigError("namespace id missing")
    return RequestSpec('GET', platform_url('data/core/idnamespace/identities/{id}'), aux={'id': str(namespace_id)})


@endpoint('is.xid', paged=False)
def get_xid(identity: str = '', namespace: str = '', namespace_id: str = '', region: str = '') -> RequestSpec:
    """
    XID of an identity.

    Args:
        identity: the identity value
        namespace: namespace code, ECID when neither code nor id is given
        namespace_id: numeric namespace id, exclusive with namespace
        region: regional host, va7 by default
    """
    if not identity:
        raise ConfigError("no ID set")
    if namespace and namespace_id:
        raise ConfigError("namespace id and namespace code are used together")
    if not namespace and not namespace_id:
        namespace = DEFAULT_NAMESPACE
    spec = RequestSpec('GET', REGIONAL + '/data/core/identity/identity')
    spec.add_queries('id', identity, 'namespace', namespace, 'nsid', namespace_id)
    return spec.set_value('region', region or DEFAULT_REGION)
