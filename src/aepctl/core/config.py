#!/usr/bin/env python3
"""
aepctl configuration - paths, logging and the layered configuration file.

Configuration values come from (lowest to highest priority) the DEFAULTS
below, a YAML configuration file and explicit command line flags.
"""

import contextlib
import logging
import os
import platform
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from .errors import ConfigError

APP_NAME = 'aepctl'
DEFAULT_IMS_SERVER = 'https://ims-na1.adobelogin.com/ims/exchange/jwt/'
DEFAULT_AUDIENCE_PREFIX = 'https://ims-na1.adobelogin.com/c/'
DEFAULT_PLATFORM_URL = 'https://platform.adobe.io'

# ============================================================================
# CONFIG PATHS
# ============================================================================

def get_user_config_root() -> Path:
    """
    Get the per-user configuration root of the platform

    Returns:
        Path: $XDG_CONFIG_HOME or ~/.config on Linux, ~/Library/Application Support
        on macOS and %APPDATA% on Windows
    """
    system = platform.system()
    if system == 'Windows':
        appdata = os.environ.get('APPDATA')
        if appdata:
            return Path(appdata)
    elif system == 'Darwin':
        return Path.home() / 'Library' / 'Application Support'
    else:
        xdg = os.environ.get('XDG_CONFIG_HOME')
        if xdg and os.path.isabs(xdg):
            return Path(xdg)
    return Path.home() / '.config'


def get_config_dir(root: Optional[Path] = None) -> Path:
    """
    Get the configuration directory path (<user-config-root>/aepctl)

    The directory is not created here; writers create it with mode 0700.
    """
    return (root or get_user_config_root()) / APP_NAME


def get_config_file(filename: str, root: Optional[Path] = None) -> Path:
    """Get the full path to a file in the configuration directory"""
    return get_config_dir(root) / filename


def get_main_config_file(root: Optional[Path] = None) -> Path:
    """Get the path to the main config.yaml file"""
    return get_config_file('config.yaml', root)


def get_cache_dir(client_id: str, root: Optional[Path] = None) -> Path:
    """Get the cache directory of one client id"""
    return get_config_dir(root) / 'cache' / client_id


def get_token_file(client_id: str, root: Optional[Path] = None) -> Path:
    """Get the path to the cached bearer token of one client id"""
    return get_cache_dir(client_id, root) / 'token.json'


def config_search_path(root: Optional[Path] = None) -> List[Path]:
    return [
        get_main_config_file(root),
        Path('/etc') / APP_NAME / 'config.yaml',
        Path.cwd() / 'config.yaml',
    ]


# ============================================================================
# LOGGING
# ============================================================================

def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the CLI application.

    Args:
        verbose: Enable verbose (DEBUG) logging
        log_file: Optional file path to write logs to
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    log_format = (
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        if verbose else
        '%(levelname)s: %(message)s'
    )

    handlers = [logging.StreamHandler(sys.stderr)]
    handlers[0].setFormatter(logging.Formatter(log_format))

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        ))
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    if not verbose:
        for logger_name in ('urllib3', 'requests'):
            logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Name of the logger (typically __name__)
    """
    return logging.getLogger(name)


logger = get_logger(__name__)

# ============================================================================
# CONFIG LOADER
# ============================================================================

class Config:
    """Configuration manager for aepctl"""

    DEFAULTS = {
        'server': DEFAULT_IMS_SERVER,
        'sandbox': 'prod',
        'key': 'private.key',
        'cache': True,
        'timeout': 60,
        'platform-url': DEFAULT_PLATFORM_URL,
    }

    # Required for every authenticated call: key -> flag description
    REQUIRED_KEYS = {
        'client-id': 'Client ID (--client-id)',
        'client-secret': 'Client Secret (--client-secret)',
        'tech-account': 'Technical Account ID (--tech-account)',
        'organization': 'Organization ID (--organization)',
        'key': 'Private Key File (--key)',
    }

    KNOWN_KEYS = ('organization', 'tech-account', 'audience', 'client-id', 'client-secret',
                  'key', 'sandbox', 'server', 'cache', 'timeout', 'platform-url')

    def __init__(self, root: Optional[Path] = None):
        self._config: Dict[str, Any] = {}
        self._loaded = False
        self.root = root
        self.config_file: Optional[Path] = None

    def load(self, config_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        """Load defaults, then the configuration file, then the overrides"""
        self._config = dict(self.DEFAULTS)
        self._load_from_file(config_file)
        for key, value in (overrides or {}).items():
            if value is not None:
                self._config[key] = value
        self._loaded = True
        return self

    def _load_from_file(self, config_file: Optional[str]):
        if config_file:
            candidates: Iterable[Path] = [Path(config_file).expanduser()]
            if not candidates[0].exists():
                raise ConfigError(f"Configuration file {config_file} does not exist")
        else:
            candidates = config_search_path(self.root)

        for path in candidates:
            if not path.is_file():
                continue
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Could not read configuration file {path}", cause=e)
            if not isinstance(data, dict):
                raise ConfigError(f"Configuration file {path} must contain a mapping")
            unknown = [k for k in data if k not in self.KNOWN_KEYS]
            if unknown:
                logger.debug(f"Ignoring unknown configuration keys {unknown} in {path}")
            self._config.update({k: v for k, v in data.items() if k in self.KNOWN_KEYS and v is not None})
            self.config_file = path
            logger.debug(f"Successfully loaded configuration file {path}")
            return

    def get(self, key: str, default: Optional[Any] = None) -> Optional[Any]:
        """Get a configuration value"""
        if not self._loaded:
            self.load()
        value = self._config.get(key, default)
        return default if value == '' else value

    def get_required(self, key: str) -> Any:
        value = self.get(key)
        if value is None:
            raise ConfigError(f"Required configuration '{key}' is not set")
        return value

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Configuration '{key}' must be an integer, got: {value}")

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).lower() in ('true', '1', 'yes', 'on')

    def get_path(self, key: str, default: Optional[str] = None) -> Optional[Path]:
        value = self.get(key, default)
        return Path(os.path.expandvars(os.path.expanduser(str(value)))) if value else None

    def missing(self) -> List[str]:
        return [description for key, description in self.REQUIRED_KEYS.items() if not self.get(key)]

    def validate(self):
        """Raise ConfigError naming every missing authentication parameter"""
        missing = self.missing()
        if not missing:
            return
        noun = 'parameter' if len(missing) == 1 else 'parameters'
        raise ConfigError(
            f"Missing authentication {noun} {', '.join(missing)}\n"
            "Please provide all required flags or a configuration file (--config).\n\n"
            "Execute the following command to initialize aepctl:\n\n"
            "  aepctl configure")

    def credentials(self) -> 'Credentials':
        """Build the Credentials of this invocation, reading the private key file"""
        from .auth import Credentials

        self.validate()
        key_path = self.get_path('key')
        try:
            private_key = key_path.read_bytes()
        except OSError as e:
            raise ConfigError(f"Could not read private key file {key_path}", cause=e)
        return Credentials(
            organization=self.get('organization'),
            technical_account=self.get('tech-account'),
            client_id=self.get('client-id'),
            client_secret=self.get('client-secret'),
            private_key=private_key,
            audience=self.get('audience') or '',
            sandbox=self.get('sandbox'),
            server=self.get('server'),
        )

    def as_dict(self, mask: bool = True) -> Dict[str, Any]:
        if not self._loaded:
            self.load()
        result = dict(self._config)
        if mask and result.get('client-secret'):
            result['client-secret'] = '***'
        return result


def save_config(values: Dict[str, Any], path: Optional[Path] = None) -> Path:
    """Write the configuration file with mode 0600 inside a 0700 directory"""
    path = path or get_main_config_file()
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    temp_file = path.with_suffix('.tmp')
    try:
        with open(temp_file, 'w', encoding='utf-8') as f:
            yaml.safe_dump({k: v for k, v in values.items() if v not in (None, '')}, f,
                           default_flow_style=False, sort_keys=True)
        with contextlib.suppress(OSError, NotImplementedError):
            temp_file.chmod(0o600)
        temp_file.replace(path)
    except OSError as e:
        with contextlib.suppress(OSError):
            temp_file.unlink()
        raise ConfigError(f"Could not write configuration file {path}", cause=e)
    return path
