#!/usr/bin/env python3
"""
Catalog service - datasets and batches.

Both listings answer with an object keyed by id; paging uses the start and
limit query parameters and carries no next link.
"""

from ..core.request import RequestSpec
from .base import endpoint, platform_url, to_millis

BASE = 'data/foundation/catalog'


def _catalog_query(spec: RequestSpec, limit=None, created_after: str = '', created_before: str = '',
                   dataset: str = '', end_after: str = '', end_before: str = '', name: str = '',
                   order: str = '', start: str = '', start_after: str = '', start_before: str = '',
                   properties: str = '') -> RequestSpec:
    return spec.add_queries(
        'limit', limit or '',
        'createdAfter', to_millis(created_after, 'created-after'),
        'createdBefore', to_millis(created_before, 'created-before'),
        'dataSet', dataset,
        'endAfter', to_millis(end_after, 'end-after'),
        'endBefore', to_millis(end_before, 'end-before'),
        'name', name,
        'orderBy', order,
        'start', start,
        'startAfter', to_millis(start_after, 'start-after'),
        'startBefore', to_millis(start_before, 'start-before'),
        'properties', properties,
    )


@endpoint('catalog.datasets', paged=False)
def list_datasets(**options) -> RequestSpec:
    """
    Datasets of the sandbox.

    Args:
        limit: maximum number of returned datasets
        created_after, created_before: RFC 3339 or milliseconds
        name: filter by name
        order: orderBy expression, e.g. desc:created
        start: offset of the first dataset
    """
    return _catalog_query(RequestSpec('GET', platform_url(f"{BASE}/datasets")), **options)


@endpoint('catalog.batches', paged=False)
def list_batches(**options) -> RequestSpec:
    """Batches of the sandbox, optionally of one dataset"""
    return _catalog_query(RequestSpec('GET', platform_url(f"{BASE}/batches")), **options)
