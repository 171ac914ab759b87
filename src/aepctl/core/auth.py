#!/usr/bin/env python3
"""
Service-to-service authentication against the IMS JWT exchange endpoint.

The Authenticator mints a bearer token from a signed claim and keeps it in a
TokenStore. A cached token is reused as long as it is still valid one minute
from now; otherwise exactly one exchange request is issued.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

import requests

from .claim import Claim, audience_for, load_private_key_pem
from .config import DEFAULT_IMS_SERVER, get_logger
from .context import Context
from .errors import AuthError, NetworkError, mask_secret, message_from_body
from .token_store import BearerToken, FileTokenStore, TokenStore

logger = get_logger(__name__)

MIN_VALIDITY = 60
EXCHANGE_TIMEOUT = 60
USER_AGENT = 'aepctl'
PLACEHOLDER_TOKEN = '<bearer-token>'


@dataclass(frozen=True)
class Credentials:
    organization: str
    technical_account: str
    client_id: str
    client_secret: str = field(repr=False)
    private_key: bytes = field(repr=False)
    audience: str = ''
    sandbox: str = 'prod'
    server: str = DEFAULT_IMS_SERVER

    @property
    def effective_audience(self) -> str:
        return audience_for(self.client_id, self.audience)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Authenticator:
    """
    Exchange a signed JWT for a bearer token and cache the result.

    Args:
        credentials: the immutable credentials of this invocation
        store: token cache, defaults to the per-client token file
        cache: False disables loading and saving cached tokens
        session: requests session used for the exchange
        clock: returns the current UTC time
    """

    def __init__(self, credentials: Credentials, store: Optional[TokenStore] = None, cache: bool = True,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.credentials = credentials
        self.store = store if store is not None else FileTokenStore.for_client(credentials.client_id)
        self.cache = cache
        self.session = session or requests.Session()
        self.clock = clock
        self._token: Optional[BearerToken] = None
        self.exchanges = 0

    def get_token(self, ctx: Optional[Context] = None) -> BearerToken:
        """Return a token valid for at least one more minute"""
        ctx = ctx or Context.background()
        now = self.clock()
        cached = self._cached(now)
        if cached is not None:
            return cached
        ctx.check()
        token = self._exchange(ctx, now)
        self._token = token
        if self.cache:
            self.store.save(token)
        return token

    def cached_token(self) -> Optional[BearerToken]:
        """The in-memory or stored token if still valid for a minute, never exchanges"""
        return self._cached(self.clock())

    def _cached(self, now: datetime) -> Optional[BearerToken]:
        if self._token is not None and self._token.valid_in(MIN_VALIDITY, now):
            return self._token
        if not self.cache:
            return None
        token = self.store.load()
        if token is not None and token.valid_in(MIN_VALIDITY, now):
            logger.debug(f"Using cached token {mask_secret(token.token)}, expires {token.expires.isoformat()}")
            self._token = token
            return token
        logger.debug("No valid cached token, exchanging JWT")
        return None

    def _exchange(self, ctx: Context, now: datetime) -> BearerToken:
        creds = self.credentials
        key = load_private_key_pem(creds.private_key)
        claim = Claim(iss=creds.organization, sub=creds.technical_account, aud=creds.effective_audience)
        jwt_token = claim.jwt(key, now.timestamp())

        data = {
            'client_id': creds.client_id,
            'client_secret': creds.client_secret,
            'jwt_token': jwt_token,
        }
        remaining = ctx.remaining()
        timeout = EXCHANGE_TIMEOUT if remaining is None else min(EXCHANGE_TIMEOUT, remaining)
        logger.debug(f"POST {creds.server} client_id={creds.client_id} client_secret={mask_secret(creds.client_secret)}")
        self.exchanges += 1
        try:
            response = self.session.post(creds.server, data=data, timeout=timeout,
                                         headers={'User-Agent': USER_AGENT, 'Accept': 'application/json'})
        except requests.exceptions.RequestException as e:
            ctx.check()
            raise NetworkError("Token exchange failed", method='POST', url=creds.server, cause=e)
        logger.debug(f"Token exchange returned {response.status_code}")

        body = response.content or b''
        if not 200 <= response.status_code < 300:
            message = message_from_body(body, fallback=f"token exchange failed with status {response.status_code}")
            raise AuthError(f"Error ({response.status_code}): {message}", status=response.status_code,
                            body=body.decode('utf-8', errors='replace'))
        try:
            result = response.json()
            access_token = result['access_token']
            expires_in = int(result.get('expires_in', 0))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError("Invalid token exchange response", status=response.status_code, cause=e)
        if not isinstance(access_token, str) or not access_token:
            raise AuthError("Token exchange response carries no access_token", status=response.status_code)

        # expires_in is interpreted in milliseconds
        return BearerToken(token=access_token, expires=now + timedelta(milliseconds=expires_in))

    def headers(self, ctx: Optional[Context] = None, mint: bool = True) -> Dict[str, str]:
        """
        Authentication headers attached to every platform request.

        With mint=False no exchange is performed; a cached token is used when
        present, otherwise a placeholder (dry run).
        """
        token = self.get_token(ctx) if mint else self.cached_token()
        value = token.token if token is not None else PLACEHOLDER_TOKEN
        return {
            'Authorization': f"Bearer {value}",
            'x-api-key': self.credentials.client_id,
            'x-gw-ims-org-id': self.credentials.organization,
            'x-sandbox-name': self.credentials.sandbox,
        }
