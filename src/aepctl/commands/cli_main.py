#!/usr/bin/env python3
"""
aepctl - command-line client for the Adobe Experience Platform REST services.

Parses the command line, sets up logging, builds the runtime of the invocation
and dispatches to the command handler. Errors are printed once here and
mapped to the exit code of their kind.
"""

import argparse
import sys
from typing import List, Optional

from .._version import __version__
from ..core.config import get_logger, setup_logging
from ..core.errors import EXIT_USAGE, AepError
from . import configure_main, get_main
from .shared import add_common_arguments, build_runtime, print_error

EXIT_INTERRUPTED = 130


class ArgumentParser(argparse.ArgumentParser):
    """argparse parser exiting with the usage exit code"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def setup_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog='aepctl',
        description='Command-line client for the Adobe Experience Platform REST services',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Write the configuration file:
    %(prog)s configure

  List the sandboxes:
    %(prog)s get sandboxes

  Show the datasets as JSON:
    %(prog)s get datasets -o json

  Print the requests without sending them:
    %(prog)s get schemas --dry-run
"""
    )
    parser.add_argument('--version', action='version', version=f"aepctl v{__version__}")
    add_common_arguments(parser)

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    get_main.setup_parser(subparsers)
    configure_main.setup_parser(subparsers)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = setup_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=getattr(args, 'debug', False))
    logger = get_logger(__name__)

    if not getattr(args, 'command', None):
        parser.print_help()
        return EXIT_USAGE

    logger.debug(f"Command: {args.command} {getattr(args, 'resource', '') or ''}".rstrip())
    runtime = None
    try:
        if not args.requires_auth:
            return args.func(args) or 0
        runtime = build_runtime(args)
        return args.func(args, runtime) or 0
    except AepError as e:
        print_error(e)
        return e.exit_code
    except KeyboardInterrupt:
        if runtime is not None:
            runtime.ctx.cancel('interrupted')
        print("\nOperation cancelled by user", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == '__main__':
    sys.exit(main())
