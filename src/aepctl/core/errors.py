#!/usr/bin/env python3
"""
aepctl error hierarchy

Every error raised by the request engine derives from AepError. The CLI maps
each kind to an exit code and prints it; the core itself never logs errors on
behalf of the caller, it only attaches diagnostic context (URL, offset, HTTP
status).

    AepError
    ├── ConfigError     missing/invalid credential, malformed key, bad flag
    ├── CryptoError     signing failed
    ├── AuthError       IMS token exchange failed
    ├── ApiError        non-2xx platform response
    ├── NetworkError    transport failure, DNS, TLS, timeout
    ├── ParseError      malformed JSON or unexpected shape
    └── CancelledError  context cancelled before completion
"""

import json
from typing import Any, Dict, Optional

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_CONFIG = 2
EXIT_AUTH = 3
EXIT_API = 4
EXIT_IO = 5

IDEMPOTENT_METHODS = frozenset(('GET', 'HEAD', 'OPTIONS', 'PUT', 'DELETE'))


def mask_secret(value: Optional[str]) -> Optional[str]:
    """Mask a secret for display (show only the first 8 chars)"""
    if not value:
        return value
    return f"{value[:8]}..." if len(value) >= 12 else '***'


class AepError(Exception):
    """Base class of all aepctl errors

    Attributes:
        message: human readable message, never contains secrets
        cause: underlying exception (chained)
        details: additional diagnostic context
    """

    exit_code = EXIT_IO

    def __init__(self, message: str, cause: Optional[BaseException] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'cause': str(self.cause) if self.cause else None,
            'details': self.details,
        }


class ConfigError(AepError):
    """Raised when required configuration is missing or invalid"""

    exit_code = EXIT_CONFIG


class CryptoError(AepError):
    """Raised when the JWT could not be signed"""

    exit_code = EXIT_CONFIG


class AuthError(AepError):
    """IMS token exchange failed; carries the server-provided description"""

    exit_code = EXIT_AUTH

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.status = status
        self.body = body
        if status is not None:
            self.details['status'] = status


class ApiError(AepError):
    """Non-2xx platform response"""

    exit_code = EXIT_API

    def __init__(self, status: int, message: str, body: Optional[str] = None,
                 url: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body
        self.url = url
        self.reason = reason
        self.details.update({'status': status, 'url': url})

    def __str__(self) -> str:
        status = f"{self.status} {self.reason}" if self.reason else str(self.status)
        return f"Error ({status}): {self.message}"


class NetworkError(AepError):
    """Transport level failure. Retryable by the caller only for idempotent methods."""

    exit_code = EXIT_IO

    def __init__(self, message: str, method: Optional[str] = None, url: Optional[str] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.method = (method or '').upper()
        self.url = url
        self.details.update({'method': self.method, 'url': url})

    @property
    def retryable(self) -> bool:
        return self.method in IDEMPOTENT_METHODS


class ParseError(AepError):
    """Malformed JSON or unexpected document shape"""

    exit_code = EXIT_IO

    def __init__(self, message: str, offset: int = -1, expected: Optional[str] = None):
        super().__init__(message)
        self.offset = offset
        self.expected = expected
        self.details.update({'offset': offset, 'expected': expected})

    def __str__(self) -> str:
        if self.offset >= 0:
            return f"{self.message} at offset {self.offset}"
        return self.message


class CancelledError(AepError):
    """The context was cancelled or its deadline passed before completion"""

    exit_code = EXIT_IO


def message_from_body(body: bytes, fallback: str = '') -> str:
    """Extract error_description, then error, from a JSON error envelope.

    Falls back to the raw body when it is not JSON or carries neither field.
    """
    text = body.decode('utf-8', errors='replace') if isinstance(body, (bytes, bytearray)) else str(body or '')
    try:
        envelope = json.loads(text)
    except ValueError:
        return text.strip() or fallback
    if isinstance(envelope, dict):
        for name in ('error_description', 'error'):
            value = envelope.get(name)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and value.get('message'):
                return str(value['message'])
        for name in ('message', 'title', 'detail'):
            if isinstance(envelope.get(name), str) and envelope[name]:
                return envelope[name]
    return text.strip() or fallback
