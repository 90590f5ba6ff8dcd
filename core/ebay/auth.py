"""
OAuth application token for the Browse API (client-credentials grant).

One token is cached per TokenProvider instance. It is handed out until it
comes within `safety_margin` seconds of its real expiry, then refreshed.
Refresh is serialized with a lock so concurrent enrichment threads share a
single exchange.
"""
import base64
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from core.errors import AuthError
from core.logging import get_logger

logger = get_logger("ebay-auth")


OAUTH_PATH = "/identity/v1/oauth2/token"
DEFAULT_SCOPE = "https://api.ebay.com/oauth/api_scope"
DEFAULT_SAFETY_MARGIN = 300.0


@dataclass(frozen=True)
class Token:
    """
    Bearer token with its usable lifetime.

    expires_at is already shortened by the safety margin, so a token is
    usable exactly while now < expires_at.
    """
    value: str
    expires_at: float

    def is_usable(self, now: float) -> bool:
        return now < self.expires_at


class TokenProvider:
    """
    Obtains and caches the application access token.

    Example:
        provider = TokenProvider(app_id="...", cert_id="...")
        headers = {"Authorization": f"Bearer {provider.get_token()}"}
    """

    def __init__(
        self,
        app_id: str,
        cert_id: str,
        base_url: str = "https://api.ebay.com",
        scope: str = DEFAULT_SCOPE,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        if not app_id or not cert_id:
            raise ValueError(
                "EBAY_APP_ID and EBAY_CERT_ID are required. Set them in the .env file."
            )

        self._app_id = app_id
        self._cert_id = cert_id
        self.token_url = f"{base_url.rstrip('/')}{OAUTH_PATH}"
        self.scope = scope
        self.safety_margin = safety_margin
        self.timeout = timeout
        self._session = session or requests.Session()
        self._clock = clock

        self._token: Optional[Token] = None
        self._lock = threading.Lock()

    @property
    def token(self) -> Optional[Token]:
        """Currently cached token, if any (read-only view for diagnostics)."""
        return self._token

    def get_token(self) -> str:
        """
        Return a usable bearer token, refreshing it when needed.

        Raises:
            AuthError: when the token exchange fails
        """
        token = self._token
        if token is not None and token.is_usable(self._clock()):
            return token.value

        with self._lock:
            # Another thread may have refreshed while we waited
            token = self._token
            if token is not None and token.is_usable(self._clock()):
                return token.value

            self._token = self._refresh()
            return self._token.value

    def invalidate(self) -> None:
        """Drop the cached token so the next call performs a fresh exchange."""
        with self._lock:
            self._token = None

    def _basic_credentials(self) -> str:
        raw = f"{self._app_id}:{self._cert_id}".encode("utf-8")
        return base64.b64encode(raw).decode("ascii")

    def _refresh(self) -> Token:
        logger.info("Requesting OAuth application token", extra={"token_url": self.token_url})

        try:
            response = self._session.post(
                self.token_url,
                data={"grant_type": "client_credentials", "scope": self.scope},
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Authorization": f"Basic {self._basic_credentials()}",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"OAuth request failed: {e}")
            raise AuthError(f"Failed to get OAuth token: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(
                "OAuth token endpoint rejected the request",
                extra={"status_code": response.status_code, "body": (response.text or "")[:500]},
            )
            raise AuthError(
                f"Failed to get OAuth token (HTTP {response.status_code}). "
                "Check your EBAY_APP_ID and EBAY_CERT_ID."
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AuthError("OAuth token response is not valid JSON") from e

        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token or not isinstance(access_token, str):
            raise AuthError("OAuth token response has no access_token")

        try:
            lifetime = float(data.get("expires_in"))
        except (TypeError, ValueError) as e:
            raise AuthError("OAuth token response has no valid expires_in") from e

        if lifetime <= self.safety_margin:
            raise AuthError(
                f"OAuth token lifetime ({lifetime:.0f}s) does not exceed the "
                f"{self.safety_margin:.0f}s safety margin"
            )

        now = self._clock()
        token = Token(value=access_token, expires_at=now + lifetime - self.safety_margin)
        logger.info(
            "OAuth application token refreshed",
            extra={"expires_in": lifetime, "usable_for_seconds": round(token.expires_at - now)},
        )
        return token
