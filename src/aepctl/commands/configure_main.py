#!/usr/bin/env python3
"""
aepctl configure - write the configuration file interactively.
"""

import argparse
import getpass
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .._version import __version__
from ..core.config import Config, get_logger, get_main_config_file, save_config
from .shared import add_common_arguments, colorize

logger = get_logger(__name__)

# key -> prompt, in prompt order
PROMPTS = {
    'client-id': 'Client ID',
    'client-secret': 'Client Secret',
    'tech-account': 'Technical Account ID',
    'organization': 'Organization ID',
    'key': 'Private Key File',
    'sandbox': 'Sandbox',
    'audience': 'Audience (empty for default)',
}

SECRETS = ('client-secret',)


def ask(key: str, current: Optional[Any], read: Callable[[str], str] = input,
        read_secret: Callable[[str], str] = getpass.getpass) -> Optional[Any]:
    """Prompt for one key, keeping the current value on empty input"""
    label = PROMPTS[key]
    if key in SECRETS:
        hint = ' [****]' if current else ''
        value = read_secret(f"{label}{hint}: ")
    else:
        hint = f" [{current}]" if current else ''
        value = read(f"{label}{hint}: ")
    value = value.strip()
    return value if value else current


def configure_command(args, read: Callable[[str], str] = input,
                      read_secret: Callable[[str], str] = getpass.getpass) -> int:
    config_file = getattr(args, 'config', None)
    path = Path(config_file).expanduser() if config_file else get_main_config_file()

    # current values are the prompt defaults
    config = Config().load(str(path) if path.exists() else None)
    values: Dict[str, Any] = {k: v for k, v in config.as_dict(mask=False).items()
                              if v != Config.DEFAULTS.get(k) or k in PROMPTS}

    for key in PROMPTS:
        values[key] = ask(key, values.get(key), read, read_secret)

    key_file = values.get('key')
    if key_file and not Path(str(key_file)).expanduser().exists():
        logger.warning(f"Private key file {key_file} does not exist yet")

    saved = save_config(values, path)
    print(colorize(f"Configuration written to {saved}", 'GREEN'))
    return 0


def version_command(args) -> int:
    print(f"aepctl v{__version__}")
    return 0


def setup_parser(subparsers):
    """Register 'configure' and 'version'"""
    configure_parser = subparsers.add_parser(
        'configure', help='Write the configuration file',
        description='Prompt for the authentication parameters and write them to the configuration file',
        parents=[add_common_arguments(argparse.ArgumentParser(add_help=False), ['config', 'debug'])])
    configure_parser.set_defaults(func=configure_command, requires_auth=False)

    version_parser = subparsers.add_parser('version', help='Print the version')
    version_parser.set_defaults(func=version_command, requires_auth=False)
    return configure_parser


if __name__ == '__main__':
    sys.exit(configure_command(argparse.Namespace()))
