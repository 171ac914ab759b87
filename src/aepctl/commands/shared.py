#!/usr/bin/env python3
"""
Shared helpers of the aepctl commands - colors, error printing, common
arguments and the per-invocation runtime.
"""

import argparse
import json
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TextIO

from ..core.api_client import HttpExecutor, PlatformClient
from ..core.auth import Authenticator
from ..core.config import Config, get_logger
from ..core.context import Context
from ..core.errors import ApiError, AuthError
from ..core.output import OutputConf
from ..core.pager import PageState
from ..core.request import PageParams
from ..core.table import TableDescriptor

logger = get_logger(__name__)

COLORS = {
    'HEADER': '\033[95m',
    'BLUE': '\033[94m',
    'GREEN': '\033[92m',
    'YELLOW': '\033[93m',
    'RED': '\033[91m',
    'ENDC': '\033[0m',
    'BOLD': '\033[1m',
}


def colorize(text: str, color: str, stream: Optional[TextIO] = None) -> str:
    stream = stream or sys.stdout
    isatty = getattr(stream, 'isatty', None)
    return f"{COLORS.get(color, '')}{text}{COLORS['ENDC']}" if isatty and isatty() else text


def indent_body(body: str, prefix: str = '  ') -> List[str]:
    """Pretty print a JSON body, other text unchanged, every line indented"""
    try:
        body = json.dumps(json.loads(body), indent=2, ensure_ascii=False)
    except ValueError:
        pass
    return [prefix + line for line in body.strip().splitlines()]


def print_error(error: BaseException, stream: Optional[TextIO] = None):
    """One line per error, followed by the remote body (indented) if present"""
    stream = stream or sys.stderr
    text = str(error)
    if not text.startswith('Error'):
        text = f"Error: {text}"
    print(colorize(text, 'RED', stream), file=stream)
    body = getattr(error, 'body', None) if isinstance(error, (ApiError, AuthError)) else None
    if body:
        for line in indent_body(body):
            print(line, file=stream)


# ============================================================================
# COMMON ARGUMENTS
# ============================================================================

COMMON_ARGS = {
    'config': (['--config'], {'help': 'Configuration file (default: <config-dir>/aepctl/config.yaml)'}),
    'debug': (['--debug', '-v'], {'action': 'store_true', 'help': 'Enable debug logging output'}),
    'dry-run': (['--dry-run'], {'action': 'store_true',
                                'help': 'Print the requests instead of sending them'}),
    'no-cache': (['--no-cache'], {'action': 'store_true', 'help': 'Neither read nor write the token cache'}),
    'timeout': (['--timeout'], {'type': int, 'help': 'Per request timeout in seconds (default: 60)'}),
    'organization': (['--organization'], {'help': 'IMS organization id'}),
    'tech-account': (['--tech-account'], {'help': 'Technical account id'}),
    'audience': (['--audience'], {'help': 'JWT audience (default: derived from the client id)'}),
    'client-id': (['--client-id'], {'help': 'Client id (API key)'}),
    'client-secret': (['--client-secret'], {'help': 'Client secret'}),
    'key': (['--key'], {'help': 'Private key file (PEM)'}),
    'sandbox': (['--sandbox', '-s'], {'help': 'Sandbox name (default: prod)'}),
    'server': (['--server'], {'help': 'IMS JWT exchange endpoint'}),
    'output': (['--output', '-o'], {'help': 'table (default), wide, csv, json, yaml, raw, jsonpath=EXPR, '
                                            'table=FILE or wide=FILE'}),
    'no-headers': (['--no-headers'], {'action': 'store_true', 'help': 'Do not print the header line'}),
    'max-calls': (['--max-calls'], {'type': int, 'help': 'Stop paging after this number of requests'}),
}

# flags overriding the configuration key of the same name
CONFIG_FLAGS = ('organization', 'tech-account', 'audience', 'client-id', 'client-secret', 'key', 'sandbox',
                'server', 'timeout')


def add_common_arguments(parser, include_args=None):
    """Add common arguments to an argument parser.

    Args:
        parser: ArgumentParser or subparser to add arguments to
        include_args: List of argument names to include. If None, includes all.

    Returns:
        parser: The modified parser (for chaining)
    """
    if include_args is None:
        include_args = list(COMMON_ARGS.keys())
    for name in include_args:
        flags, kwargs = COMMON_ARGS[name]
        # unset flags stay absent so that a value given before the command survives
        parser.add_argument(*flags, default=argparse.SUPPRESS, **kwargs)
    return parser


def add_listing_arguments(parser, token: bool = False):
    """--order, --limit, --start (or --token) and --filter of paged listings"""
    parser.add_argument('--order', default='', help='Sort property, prefix - for descending')
    parser.add_argument('--limit', type=int, help='Page size')
    if token:
        parser.add_argument('--token', dest='start', default='', help='Continuation token of a previous call')
    else:
        parser.add_argument('--start', default='', help='Start value of the first page')
    parser.add_argument('--filter', default='', help='Property filter, e.g. name~^test')
    return parser


def page_params(args, token: bool = False) -> PageParams:
    return PageParams(order=args.order, limit=args.limit, start=args.start, filter=args.filter, token=token)


def config_overrides(args) -> Dict[str, Any]:
    overrides = {name: getattr(args, name.replace('-', '_'), None) for name in CONFIG_FLAGS}
    if getattr(args, 'no_cache', False):
        overrides['cache'] = False
    return overrides


# ============================================================================
# RUNTIME
# ============================================================================

@dataclass
class Runtime:
    """Everything a command needs for one invocation"""
    config: Config
    client: PlatformClient
    ctx: Context
    output: OutputConf
    max_calls: Optional[int] = None

    @property
    def authenticator(self) -> Authenticator:
        return self.client.authenticator

    def print_listing(self, endpoint, params=None, descriptor: Optional[TableDescriptor] = None) -> PageState:
        """Page through endpoint and print every page in the configured output format"""
        pager = endpoint.pager(self.client, params, self.max_calls)
        state = self.output.print_pages(self.ctx, pager, descriptor)
        logger.debug(f"{endpoint.name}: {state.calls} calls")
        return state


def build_runtime(args, config: Optional[Config] = None, out: Optional[TextIO] = None) -> Runtime:
    """Load the configuration and wire authenticator, executor and client"""
    config = config or Config().load(getattr(args, 'config', None), config_overrides(args))
    output = OutputConf.parse(getattr(args, 'output', None), headers=not getattr(args, 'no_headers', False),
                              out=out)
    credentials = config.credentials()
    authenticator = Authenticator(credentials, cache=config.get_bool('cache', True))
    executor = HttpExecutor(timeout=config.get_int('timeout', 60), dry_run=getattr(args, 'dry_run', False))
    client = PlatformClient(authenticator, executor, platform_url=config.get('platform-url'))
    return Runtime(config=config, client=client, ctx=Context.background(), output=output,
                   max_calls=getattr(args, 'max_calls', None))
