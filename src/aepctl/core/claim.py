#!/usr/bin/env python3
"""
JSON Web Token for the service-to-service (JWT bearer) exchange.

The claim carries the three registered claims required for authentication
(see https://tools.ietf.org/html/rfc7519) plus the platform metascope. It is
signed with RSASSA-PKCS1-v1_5 over SHA-256 (RS256).
"""

import base64
import json
import time
from typing import Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .config import DEFAULT_AUDIENCE_PREFIX
from .errors import ConfigError, CryptoError

METASCOPE_CLAIM = 'https://ims-na1.adobelogin.com/s/ent_dataservices_sdk'
TOKEN_LIFETIME = 24 * 60 * 60

JWT_HEADER = {'alg': 'RS256', 'typ': 'JWT'}


def b64url(data: bytes) -> str:
    """base64url without padding"""
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode('ascii')


def b64url_decode(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + '=' * (-len(data) % 4))


def load_private_key_pem(pem: Union[str, bytes], password: Optional[bytes] = None) -> rsa.RSAPrivateKey:
    """Load a PEM encoded RSA private key (PKCS#8 or PKCS#1)"""
    if isinstance(pem, str):
        pem = pem.encode('utf-8')
    try:
        key = serialization.load_pem_private_key(pem, password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise ConfigError("Could not load private key, expected an RSA key in PEM format", cause=e)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise ConfigError(f"Private key must be an RSA key, got {type(key).__name__}")
    return key


def audience_for(client_id: str, audience: str = '') -> str:
    """The audience defaults to <ims>/c/<client-id>"""
    return audience or f"{DEFAULT_AUDIENCE_PREFIX}{client_id}"


class Claim:
    """
    Claim contains the registered claims of the exchange JWT.

    Args:
        iss: issuer, the organization id
        sub: subject, the technical account id
        aud: audience, usually <ims>/c/<client-id>
    """

    def __init__(self, iss: str, sub: str, aud: str, metascope: str = METASCOPE_CLAIM):
        self.iss = iss
        self.sub = sub
        self.aud = aud
        self.metascope = metascope

    def header(self) -> str:
        return b64url(json.dumps(JWT_HEADER, separators=(',', ':')).encode('utf-8'))

    def payload(self, now: Optional[float] = None) -> str:
        now = time.time() if now is None else now
        body = {
            'exp': int(now) + TOKEN_LIFETIME,
            'iss': self.iss,
            'sub': self.sub,
            'aud': self.aud,
            self.metascope: True,
        }
        return b64url(json.dumps(body, separators=(',', ':')).encode('utf-8'))

    def jwt(self, key: rsa.RSAPrivateKey, now: Optional[float] = None) -> str:
        """Sign the claim and return the compact JWT header.payload.signature"""
        message = f"{self.header()}.{self.payload(now)}"
        try:
            signature = key.sign(message.encode('ascii'), padding.PKCS1v15(), hashes.SHA256())
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise CryptoError("Could not sign JWT", cause=e)
        return f"{message}.{b64url(signature)}"


def decode_unverified(token: str) -> dict:
    """Decode header and payload of a compact JWT without verifying it"""
    try:
        header, payload, _ = token.split('.')
        return {
            'header': json.loads(b64url_decode(header)),
            'payload': json.loads(b64url_decode(payload)),
        }
    except ValueError as e:
        raise ConfigError("Malformed JWT", cause=e)
