#!/usr/bin/env python3
"""
Offer decisioning

Offers are stored in the decisioning container of a sandbox. When no
container id is given it is looked up by the sandbox name.
"""

from ..core.api_client import PlatformClient
from ..core.context import Context
from ..core.errors import ConfigError
from ..core.query import Query
from ..core.request import RequestSpec
from .base import endpoint, platform_url

CONTAINER_KEY = 'https://ns.adobe.com/experience/xcore/container'
OFFER_SCHEMA = 'https://ns.adobe.com/experience/offer-management/personalized-offer'
PAGE_PARAMS = ('start', 'orderby')
DRY_RUN_CONTAINER = '<container-id>'


@endpoint('od.containers', path=['_embedded', CONTAINER_KEY], paged=False)
def list_containers() -> RequestSpec:
    """Decisioning containers of all sandboxes"""
    spec = RequestSpec('GET', platform_url('data/core/xcore/'))
    return spec.add_queries('product', 'acp', 'property', '_instance.containerType==decisioning')


@endpoint('od.query', path=['_embedded', 'results'], params=PAGE_PARAMS)
def query(container: str = '', schema: str = OFFER_SCHEMA, q: str = '', qop: str = '', field: str = '',
          order: str = '', limit=None) -> RequestSpec:
    """
    Search the instances of one schema.

    Args:
        container: decisioning container id
        schema: instance schema, personalized offers by default
        q: query string searched in the selected fields
        qop: AND or OR applied to the values of q
        field: fields to limit the search to
        order: orderby property
        limit: page size
    """
    if not container:
        raise ConfigError("container-id is empty")
    spec = RequestSpec('GET', platform_url('data/core/xcore/{container}/queries/core/search'),
                       aux={'container': container})
    return spec.add_queries(
        'schema', schema,
        'q', q,
        'qop', qop,
        'field', field,
        'orderby', order,
        'limit', limit or '',
    )


def container_for_sandbox(ctx: Context, client: PlatformClient, sandbox: str) -> str:
    """Id of the decisioning container of sandbox"""
    if client.dry_run:
        return DRY_RUN_CONTAINER
    found = []

    def collect(q: Query):
        if q.str('_instance', 'parentName') == sandbox:
            found.append(q.str('instanceId'))

    list_containers.each(ctx, client, collect)
    if not found:
        raise ConfigError(f"No decisioning container found for sandbox {sandbox}")
    return found[0]
