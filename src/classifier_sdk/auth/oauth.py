"""OAuth2 client-credentials provider with OIDC discovery.

The provider discovers the issuer's token endpoint once, exchanges the
client credentials for an access token, and keeps that token until it
expires. An expired token is renewed with the refresh-token grant when the
issuer handed out a refresh token and auto-refresh is enabled; otherwise,
or if the refresh fails, a fresh client-credentials grant is performed.

Concurrent callers share one in-flight exchange.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from classifier_sdk.auth.base import CredentialProvider
from classifier_sdk.exceptions import AuthenticationError

if TYPE_CHECKING:
    from classifier_sdk.config import ClassifierConfig

logger = logging.getLogger("classifier_sdk")

_DISCOVERY_PATH = ".well-known/openid-configuration"

# Renew slightly before the issuer's stated expiry.
_EXPIRY_LEEWAY_S = 30.0


class OAuthCredentialProvider(CredentialProvider):
    """Client-credentials token source backed by ``httpx``.

    Args:
        issuer_url: OIDC issuer base URL.
        client_id: OAuth client ID.
        client_secret: OAuth client secret.
        scope: Scope requested with the client-credentials grant.
        audience: Audience requested with the client-credentials grant.
        auto_refresh: Use the refresh-token grant on expiry when possible.
        http_client: Optional pre-built ``httpx.AsyncClient``. When omitted the
            provider creates and owns one.

    Raises:
        AuthenticationError: If *client_id* or *client_secret* is empty.
    """

    def __init__(
        self,
        issuer_url: str,
        client_id: str,
        client_secret: str,
        scope: str = "manage:classify",
        audience: str = "",
        auto_refresh: bool = True,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not client_id or not client_secret:
            raise AuthenticationError("OAuth client_id and client_secret are required")

        self._issuer_url = issuer_url.rstrip("/") + "/"
        self._client_id = client_id
        self._client_secret = client_secret
        self._scope = scope
        self._audience = audience
        self._auto_refresh = auto_refresh

        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=10.0)
        self._lock = asyncio.Lock()

        self._token_endpoint: str | None = None
        self._token: dict[str, Any] | None = None
        self._expires_at: float | None = None

    @classmethod
    def from_config(
        cls,
        config: ClassifierConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> OAuthCredentialProvider:
        """Build a provider from the ``oauth_*`` fields of *config*."""
        return cls(
            issuer_url=config.oauth_issuer_url,
            client_id=config.oauth_client_id,
            client_secret=config.oauth_client_secret,
            scope=config.oauth_scope,
            audience=config.oauth_audience,
            auto_refresh=config.oauth_auto_refresh,
            http_client=http_client,
        )

    async def get_header(self) -> str:
        """Return ``'<token_type> <access_token>'``, renewing the token if needed.

        Raises:
            AuthenticationError: If discovery or every token grant fails.
        """
        async with self._lock:
            await self._maybe_refresh()
            if self._token is None:
                raise AuthenticationError("No access token available")
            token_type = self._token.get("token_type") or "Bearer"
            return f"{token_type} {self._token['access_token']}"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    # --- Token lifecycle ---

    def _expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    async def _maybe_refresh(self) -> None:
        endpoint = self._token_endpoint
        if endpoint is None:
            endpoint = self._token_endpoint = await self._discover()

        if self._token is not None and self._expired():
            refresh_token = self._token.get("refresh_token")
            self._token = None
            if refresh_token and self._auto_refresh:
                try:
                    self._store(await self._grant(endpoint, {
                        "grant_type": "refresh_token",
                        "refresh_token": refresh_token,
                    }))
                    logger.debug("Refreshed OAuth access token")
                except AuthenticationError as exc:
                    logger.info("Token refresh failed, re-authenticating: %s", exc)

        if self._token is None:
            params = {"grant_type": "client_credentials", "scope": self._scope}
            if self._audience:
                params["audience"] = self._audience
            self._store(await self._grant(endpoint, params))
            logger.debug("Obtained OAuth access token for client %s", self._client_id)

    def _store(self, token: dict[str, Any]) -> None:
        self._token = token
        expires_in = token.get("expires_in")
        if expires_in is None:
            self._expires_at = None
        else:
            self._expires_at = time.monotonic() + max(0.0, float(expires_in) - _EXPIRY_LEEWAY_S)

    async def _discover(self) -> str:
        url = self._issuer_url + _DISCOVERY_PATH
        logger.info("Discovering OIDC server metadata from %s", url)
        try:
            response = await self._http.get(url)
            response.raise_for_status()
            endpoint = response.json().get("token_endpoint")
        except (httpx.HTTPError, ValueError) as exc:
            raise AuthenticationError(f"OIDC discovery failed for {url}: {exc}") from exc
        if not endpoint:
            raise AuthenticationError(f"OIDC discovery document at {url} has no token_endpoint")
        return str(endpoint)

    async def _grant(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        data = {**params, "client_id": self._client_id, "client_secret": self._client_secret}
        try:
            response = await self._http.post(endpoint, data=data)
            response.raise_for_status()
            token = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise AuthenticationError(
                f"OAuth {params['grant_type']} grant failed: {exc}"
            ) from exc
        if not isinstance(token, dict) or not token.get("access_token"):
            raise AuthenticationError(
                f"OAuth {params['grant_type']} response has no access_token"
            )
        return token
