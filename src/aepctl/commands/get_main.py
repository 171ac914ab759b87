#!/usr/bin/env python3
"""
aepctl get - display platform resources.

Every subcommand builds the request with an endpoint function of aepctl.api
and prints the (paged) response through the configured output format.
"""

import argparse

from .. import api
from ..core.config import get_logger
from . import tables
from .shared import Runtime, add_common_arguments, add_listing_arguments, page_params

logger = get_logger(__name__)


# ============================================================================
# HANDLERS
# ============================================================================

def get_token(args, rt: Runtime) -> int:
    authenticator = rt.authenticator
    token = authenticator.cached_token() if rt.client.dry_run else authenticator.get_token(rt.ctx)
    if token is None:
        logger.info("Dry run, no cached token available")
        rt.output.print_value({'token': None, 'expires': None}, tables.TOKEN)
        return 0
    rt.output.print_value({'token': token.token, 'expires': token.local_time()}, tables.TOKEN)
    return 0


def get_sandboxes(args, rt: Runtime) -> int:
    rt.print_listing(api.sandbox.list_sandboxes, {'all_sandboxes': args.all, 'limit': args.limit},
                     tables.SANDBOXES)
    return 0


def get_sandbox(args, rt: Runtime) -> int:
    for name in args.names:
        rt.print_listing(api.sandbox.get_sandbox, {'name': name}, tables.SANDBOX)
    return 0


def get_sandbox_types(args, rt: Runtime) -> int:
    rt.print_listing(api.sandbox.list_sandbox_types, None, tables.SANDBOX_TYPES)
    return 0


def _catalog_options(args) -> dict:
    return {
        'limit': args.limit,
        'created_after': args.created_after,
        'created_before': args.created_before,
        'name': args.name,
        'order': args.order,
        'start': args.start,
        'properties': args.properties,
    }


def get_datasets(args, rt: Runtime) -> int:
    rt.print_listing(api.catalog.list_datasets, _catalog_options(args), tables.DATASETS)
    return 0


def get_batches(args, rt: Runtime) -> int:
    options = _catalog_options(args)
    options['dataset'] = args.dataset
    rt.print_listing(api.catalog.list_batches, options, tables.BATCHES)
    return 0


def get_queries(args, rt: Runtime) -> int:
    params = {
        'page': page_params(args),
        'exclude_soft_deleted': not args.include_deleted,
        'exclude_hidden': not args.include_hidden,
    }
    rt.print_listing(api.qs.list_queries, params, tables.QUERIES)
    return 0


def get_schedules(args, rt: Runtime) -> int:
    rt.print_listing(api.qs.list_schedules, {'page': page_params(args)}, tables.SCHEDULES)
    return 0


def get_runs(args, rt: Runtime) -> int:
    rt.print_listing(api.qs.list_runs, {'schedule': args.schedule, 'page': page_params(args)}, tables.RUNS)
    return 0


def get_templates(args, rt: Runtime) -> int:
    rt.print_listing(api.qs.list_templates, {'page': page_params(args)}, tables.TEMPLATES)
    return 0


def get_connection(args, rt: Runtime) -> int:
    rt.print_listing(api.qs.get_connection, None, tables.CONNECTION)
    return 0


def get_schemas(args, rt: Runtime) -> int:
    params = {'page': page_params(args), 'global_': args.global_, 'full': args.full}
    rt.print_listing(api.sr.list_schemas, params, tables.SCHEMAS)
    return 0


def get_schema(args, rt: Runtime) -> int:
    for schema_id in args.ids:
        params = {
            'schema_id': schema_id,
            'global_': args.global_,
            'full': args.full,
            'descriptors': args.descriptors,
            'notext': args.notext,
            'version': args.schema_version,
        }
        rt.print_listing(api.sr.get_schema, params, tables.SCHEMA)
    return 0


def get_behaviors(args, rt: Runtime) -> int:
    rt.print_listing(api.sr.list_behaviors, {'page': page_params(args)}, tables.BEHAVIORS)
    return 0


def get_stats(args, rt: Runtime) -> int:
    rt.print_listing(api.sr.get_stats, None, tables.STATS)
    return 0


def get_namespaces(args, rt: Runtime) -> int:
    rt.print_listing(api.identity.list_namespaces, None, tables.NAMESPACES)
    return 0


def get_namespace(args, rt: Runtime) -> int:
    for namespace_id in args.ids:
        rt.print_listing(api.identity.get_namespace, {'namespace_id': namespace_id}, tables.NAMESPACE)
    return 0


def get_xid(args, rt: Runtime) -> int:
    for identity in args.ids:
        params = {
            'identity': identity,
            'namespace': args.namespace,
            'namespace_id': args.namespace_id,
            'region': args.region,
        }
        rt.print_listing(api.identity.get_xid, params, tables.XID)
    return 0


def get_connections(args, rt: Runtime) -> int:
    params = {
        'prop_filter': args.filter,
        'limit': args.limit,
        'order': args.order,
        'token': args.start,
    }
    rt.print_listing(api.flow.list_connections, params, tables.CONNECTIONS)
    return 0


def get_policies(args, rt: Runtime) -> int:
    resources = args.resources or list(api.access_control.DEFAULT_RESOURCES)
    rt.print_listing(api.access_control.effective_policies, {'resources': resources}, tables.POLICIES)
    return 0


def get_entities(args, rt: Runtime) -> int:
    params = {
        'schema': args.schema,
        'related_schema': args.related_schema,
        'entity': args.entity,
        'namespace': args.namespace,
        'fields': args.fields,
        'merge_policy': args.merge_policy,
        'start': args.start_time,
        'end': args.end_time,
        'limit': args.limit,
        'order': args.order,
    }
    rt.print_listing(api.ups.get_entities, params, tables.ENTITIES)
    return 0


def get_containers(args, rt: Runtime) -> int:
    rt.print_listing(api.od.list_containers, None, tables.CONTAINERS)
    return 0


def get_offers(args, rt: Runtime) -> int:
    container = args.container or api.od.container_for_sandbox(rt.ctx, rt.client, rt.config.get('sandbox'))
    params = {
        'container': container,
        'q': args.query,
        'qop': args.qop,
        'field': args.field,
        'order': args.order,
        'limit': args.limit,
    }
    rt.print_listing(api.od.query, params, tables.OFFERS)
    return 0


# ============================================================================
# PARSER
# ============================================================================

def _add(subparsers, name: str, func, help_text: str, common) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(name, help=help_text, description=help_text, parents=[common])
    parser.set_defaults(func=func, requires_auth=True)
    return parser


def _catalog_arguments(parser):
    parser.add_argument('--limit', type=int, help='Maximum number of returned entries')
    parser.add_argument('--created-after', default='', help='RFC 3339 timestamp or milliseconds')
    parser.add_argument('--created-before', default='', help='RFC 3339 timestamp or milliseconds')
    parser.add_argument('--name', default='', help='Filter by name')
    parser.add_argument('--order', default='', help='orderBy expression, e.g. desc:created')
    parser.add_argument('--start', default='', help='Offset of the first entry')
    parser.add_argument('--properties', default='', help='Comma separated list of returned properties')


def setup_parser(subparsers):
    """Register 'get' and its subcommands"""
    common = add_common_arguments(argparse.ArgumentParser(add_help=False))
    get_parser = subparsers.add_parser('get', help='Display one or many resources')
    get = get_parser.add_subparsers(dest='resource', metavar='RESOURCE')
    get.required = True

    _add(get, 'token', get_token, 'Display the bearer token', common)

    p = _add(get, 'sandboxes', get_sandboxes, 'Display the sandboxes', common)
    p.add_argument('--all', action='store_true', help='Include inactive sandboxes')
    p.add_argument('--limit', type=int, help='Page size')
    p = _add(get, 'sandbox', get_sandbox, 'Display one or many sandboxes by name', common)
    p.add_argument('names', nargs='+', metavar='NAME')
    _add(get, 'sandbox-types', get_sandbox_types, 'Display the sandbox types', common)

    p = _add(get, 'datasets', get_datasets, 'Display the datasets (Catalog Service)', common)
    _catalog_arguments(p)
    p = _add(get, 'batches', get_batches, 'Display the batches (Catalog Service)', common)
    _catalog_arguments(p)
    p.add_argument('--dataset', default='', help='Only batches of this dataset id')

    p = _add(get, 'queries', get_queries, 'Display the queries (Query Service)', common)
    add_listing_arguments(p)
    p.add_argument('--include-deleted', action='store_true', help='Include soft deleted queries')
    p.add_argument('--include-hidden', action='store_true', help='Include hidden queries')
    p = _add(get, 'schedules', get_schedules, 'Display the scheduled queries (Query Service)', common)
    add_listing_arguments(p)
    p = _add(get, 'runs', get_runs, 'Display the runs of a scheduled query (Query Service)', common)
    p.add_argument('schedule', metavar='SCHEDULE_ID')
    add_listing_arguments(p)
    p = _add(get, 'templates', get_templates, 'Display the query templates (Query Service)', common)
    add_listing_arguments(p)
    _add(get, 'connection', get_connection, 'Display the connection parameters (Query Service)', common)

    p = _add(get, 'schemas', get_schemas, 'Display the schemas (Schema Registry)', common)
    add_listing_arguments(p)
    p.add_argument('--global', dest='global_', action='store_true', help='Global instead of tenant schemas')
    p.add_argument('--full', action='store_true', help='Full representation')
    p = _add(get, 'schema', get_schema, 'Display one or many schemas (Schema Registry)', common)
    p.add_argument('ids', nargs='+', metavar='SCHEMA_ID')
    p.add_argument('--global', dest='global_', action='store_true', help='Global instead of tenant schema')
    p.add_argument('--full', action='store_true', help='Resolve all references')
    p.add_argument('--descriptors', action='store_true', help='Include the descriptors')
    p.add_argument('--notext', action='store_true', help='Omit titles and descriptions')
    p.add_argument('--schema-version', default='1', help='Major version of the schema (default: 1)')
    p = _add(get, 'behaviors', get_behaviors, 'Display the behaviors (Schema Registry)', common)
    add_listing_arguments(p)
    _add(get, 'stats', get_stats, 'Display the resource counts (Schema Registry)', common)

    _add(get, 'namespaces', get_namespaces, 'Display the identity namespaces (Identity Service)', common)
    p = _add(get, 'namespace', get_namespace, 'Display identity namespaces by id (Identity Service)', common)
    p.add_argument('ids', nargs='+', metavar='NAMESPACE_ID')
    p = _add(get, 'xid', get_xid, 'Display the XID of identities (Identity Service)', common)
    p.add_argument('ids', nargs='+', metavar='ID')
    p.add_argument('--namespace', '-n', default='', help='Namespace code (default: ECID)')
    p.add_argument('--namespace-id', default='', help='Numeric namespace id, exclusive with --namespace')
    p.add_argument('--region', default='', help='Region of the identity service (default: va7)')

    p = _add(get, 'connections', get_connections, 'Display the connections (Flow Service)', common)
    add_listing_arguments(p, token=True)

    p = _add(get, 'policies', get_policies, 'Display the effective policies (Access Control)', common)
    p.add_argument('resources', nargs='*', metavar='RESOURCE',
                   help='Resource paths (default: /resource-types/*)')

    p = _add(get, 'entities', get_entities, 'Display profile entities (Real-time Customer Profile)', common)
    p.add_argument('--schema', default=api.ups.PROFILE_SCHEMA, help='Schema name')
    p.add_argument('--related-schema', default='', help='Related schema name, e.g. _xdm.context.profile')
    p.add_argument('--entity', default='', help='Entity id')
    p.add_argument('--namespace', '-n', default='', help='Namespace of the entity id')
    p.add_argument('--fields', default='', help='Comma separated list of returned fields')
    p.add_argument('--merge-policy', default='', help='Merge policy id')
    p.add_argument('--start-time', default='', help='RFC 3339 timestamp or milliseconds')
    p.add_argument('--end-time', default='', help='RFC 3339 timestamp or milliseconds')
    p.add_argument('--limit', type=int, help='Page size')
    p.add_argument('--order', default='', help='Sort order, e.g. desc:timestamp')

    _add(get, 'containers', get_containers, 'Display the decisioning containers (Offer Decisioning)', common)
    p = _add(get, 'offers', get_offers, 'Display the personalized offers (Offer Decisioning)', common)
    p.add_argument('--container', '-c', default='', help='Container id (default: container of the sandbox)')
    p.add_argument('--query', '-q', default='', help='Query string searched in the selected fields')
    p.add_argument('--qop', default='', help='AND or OR applied to the values of --query')
    p.add_argument('--field', '-f', default='', help='Fields to limit the search to')
    p.add_argument('--order', default='', help='Sort property')
    p.add_argument('--limit', type=int, help='Page size')
    return get_parser
