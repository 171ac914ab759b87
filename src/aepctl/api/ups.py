#!/usr/bin/env python3
"""
Unified profile - entity access.
"""

from ..core.request import RequestSpec
from .base import STYLE_URL, endpoint, flag, platform_url, to_millis

BASE = '/data/core/ups/access'
PROFILE_SCHEMA = '_xdm.context.profile'
EVENT_SCHEMA = '_xdm.context.experienceevent'


@endpoint('ups.entities', path=['children'], style=STYLE_URL, base=BASE)
def get_entities(schema: str = PROFILE_SCHEMA, related_schema: str = '', entity: str = '', namespace: str = '',
                 related_entity: str = '', related_namespace: str = '', fields: str = '',
                 merge_policy: str = '', start: str = '', end: str = '', limit=None, order: str = '',
                 prop_filter: str = '', with_ca: bool = False) -> RequestSpec:
    """
    Profile entities or their time series events.

    Args:
        schema: schema.name, e.g. _xdm.context.profile
        related_schema: relatedSchema.name for experience events of a profile
        entity, namespace: entityId and entityIdNS
        start, end: time range, milliseconds or RFC 3339
    """
    spec = RequestSpec('GET', platform_url(f"{BASE}/entities"))
    return spec.add_queries(
        'schema.name', schema,
        'relatedSchema.name', related_schema,
        'entityId', entity,
        'entityIdNS', namespace,
        'relatedEntityId', related_entity,
        'relatedEntityIdNS', related_namespace,
        'fields', fields,
        'mergePolicyId', merge_policy,
        'startTime', to_millis(start, 'start time'),
        'endTime', to_millis(end, 'end time'),
        'limit', limit or '',
        'orderby', order,
        'property', prop_filter,
        'withCA', flag(with_ca),
    )
