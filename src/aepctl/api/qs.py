#!/usr/bin/env python3
"""
Query service
"""

from typing import Optional

from ..core.errors import ConfigError
from ..core.request import PageParams, RequestSpec
from .base import endpoint, platform_url

BASE = 'data/foundation/query'
PAGE_PARAMS = ('start', 'orderby')


def _listing(path: str, page: Optional[PageParams]) -> RequestSpec:
    spec = RequestSpec('GET', platform_url(f"{BASE}/{path}"))
    return (page or PageParams()).apply(spec)


@endpoint('qs.queries', path=['queries'], params=PAGE_PARAMS)
def list_queries(page: Optional[PageParams] = None, exclude_soft_deleted: bool = True,
                 exclude_hidden: bool = True) -> RequestSpec:
    """Queries, soft deleted and hidden ones only on request"""
    return _listing('queries', page).add_queries(
        'excludeSoftDeleted', '' if exclude_soft_deleted else 'false',
        'excludeHidden', '' if exclude_hidden else 'false',
    )


@endpoint('qs.schedules', path=['schedules'], params=PAGE_PARAMS)
def list_schedules(page: Optional[PageParams] = None) -> RequestSpec:
    return _listing('schedules', page)


@endpoint('qs.runs', path=['runsSchedules'], params=PAGE_PARAMS)
def list_runs(schedule: str = '', page: Optional[PageParams] = None) -> RequestSpec:
    """Runs of one scheduled query"""
    if not schedule:
        raise ConfigError("schedule id missing")
    spec = _listing('schedules/{id}/runs', page)
    return spec.set_value('id', schedule)


@endpoint('qs.templates', path=['templates'], params=PAGE_PARAMS)
def list_templates(page: Optional[PageParams] = None) -> RequestSpec:
    return _listing('query-templates', page)


@endpoint('qs.connection', paged=False)
def get_connection() -> RequestSpec:
    """Connection parameters for PostgreSQL clients"""
    return RequestSpec('GET', platform_url(f"{BASE}/connection_parameters"))
