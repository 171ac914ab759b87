#!/usr/bin/env python3
"""
Access control - effective policies of the technical account.
"""

import json
from typing import Sequence

from ..core.errors import ConfigError
from ..core.request import RequestSpec
from .base import endpoint, platform_url

DEFAULT_RESOURCES = ('/resource-types/*',)


@endpoint('ac.policies', paged=False)
def effective_policies(resources: Sequence[str] = DEFAULT_RESOURCES) -> RequestSpec:
    """Permissions granted on each resource path, e.g. /resource-types/schemas"""
    resources = [r for r in resources if r]
    if not resources:
        raise ConfigError("at least one resource path is required")
    body = json.dumps(list(resources)).encode('utf-8')
    return RequestSpec('POST', platform_url('data/foundation/access-control/acl/effective-policies'), body=body)
