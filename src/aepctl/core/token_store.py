#!/usr/bin/env python3
"""
Bearer token and its best-effort cache.

The cache file is a JSON object {"Token": "...", "Expires": "<RFC 3339>"}
stored at <user-config-root>/aepctl/cache/<client-id>/token.json. Missing,
unreadable or corrupt files are a cache miss; failing to save never fails
the request that produced the token.
"""

import contextlib
import json
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .config import get_logger, get_token_file
from .errors import mask_secret

logger = get_logger(__name__)

RFC822 = '%d %b %y %H:%M %Z'


@dataclass(frozen=True)
class BearerToken:
    token: str
    expires: datetime

    def valid_in(self, seconds: float, now: Optional[datetime] = None) -> bool:
        """True if the token is still valid after the passed number of seconds"""
        now = now or datetime.now(timezone.utc)
        return now + timedelta(seconds=seconds) < self.expires

    def local_time(self) -> str:
        """Expiry date in the local time zone (RFC822)"""
        return self.expires.astimezone().strftime(RFC822)

    def to_dict(self) -> Dict[str, Any]:
        return {'Token': self.token, 'Expires': self.expires.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BearerToken':
        token = data['Token']
        if not isinstance(token, str) or not token:
            raise ValueError("Token must be a non-empty string")
        expires = datetime.fromisoformat(str(data['Expires']).replace('Z', '+00:00'))
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return cls(token=token, expires=expires)

    def __repr__(self) -> str:
        return f"BearerToken(token={mask_secret(self.token)!r}, expires={self.expires.isoformat()!r})"


class TokenStore:
    """Capability with two operations; subclasses decide where tokens live"""

    def load(self) -> Optional[BearerToken]:
        raise NotImplementedError

    def save(self, token: BearerToken) -> None:
        raise NotImplementedError


class MemoryTokenStore(TokenStore):
    def __init__(self, token: Optional[BearerToken] = None):
        self.token = token
        self.loads = 0
        self.saves = 0

    def load(self) -> Optional[BearerToken]:
        self.loads += 1
        return self.token

    def save(self, token: BearerToken) -> None:
        self.saves += 1
        self.token = token


class FileTokenStore(TokenStore):
    """Token cache file, file and directories with mode 0700"""

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def for_client(cls, client_id: str, root: Optional[Path] = None) -> 'FileTokenStore':
        return cls(get_token_file(client_id, root))

    def load(self) -> Optional[BearerToken]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                token = BearerToken.from_dict(json.load(f))
        except FileNotFoundError:
            logger.debug(f"No cached token at {self.path}")
            return None
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.debug(f"Ignoring unreadable token cache {self.path}: {e}")
            return None
        logger.debug(f"Loaded cached token {mask_secret(token.token)} valid until {token.expires.isoformat()}")
        return token

    def save(self, token: BearerToken) -> None:
        temp_file = self.path.with_suffix(f'.tmp.{os.getpid()}')
        try:
            self._ensure_dirs()
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(token.to_dict(), f)
            with contextlib.suppress(OSError, NotImplementedError):
                temp_file.chmod(0o700)
            temp_file.replace(self.path)
        except OSError as e:
            logger.debug(f"Could not save token cache {self.path}: {e}")
            with contextlib.suppress(OSError):
                temp_file.unlink()

    def _ensure_dirs(self):
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        # mkdir(mode=...) is subject to the umask and skips existing dirs
        for directory in (self.path.parent, self.path.parent.parent):
            with contextlib.suppress(OSError, NotImplementedError):
                directory.chmod(0o700)

    def clear(self):
        with contextlib.suppress(FileNotFoundError):
            self.path.unlink()
