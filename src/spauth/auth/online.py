"""Shared machinery for the Microsoft identity platform resolvers.

:class:`OnlineResolver` knows how to reach the authority for a site (token,
device-code, and authorize endpoints), how to POST a form to it and turn the
answer into either a payload or a classified exception, and how to write
tokens into its cache with the right lifetimes.

:class:`DelegatedResolver` adds the user-facing lifecycle shared by the
device-code and interactive-browser strategies: cached access token, then
refresh-token grant, then a fresh sign-in. A refresh rejected by the provider
evicts the refresh token and falls back to exactly one fresh sign-in.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from abc import abstractmethod
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from spauth import output
from spauth.auth.base import AuthResolver, AuthResult
from spauth.auth.hosting import resolve_authority_host
from spauth.auth.scopes import build_scopes, tenant_root_host
from spauth.cache import REFRESH_TOKEN_TTL, TokenCache, compute_ttl, make_cache_key
from spauth.exceptions import NetworkError, ProviderError
from spauth.models import BrokerSettings, TokenResponse

logger = logging.getLogger(__name__)

_FORM_HEADERS = {"Accept": "application/json"}


def parse_provider_response(response: httpx.Response) -> dict[str, Any]:
    """Decode an identity-provider response or raise :class:`ProviderError`.

    Args:
        response: The raw httpx response.

    Returns:
        The JSON object body of a successful response.

    Raises:
        ProviderError: If the body carries an OAuth ``error`` field, is not
            a JSON object, or the status is 4xx/5xx without an ``error``.
    """
    try:
        payload = response.json()
    except ValueError:
        raise ProviderError(
            "invalid_response",
            f"Expected JSON from identity provider, got status {response.status_code}",
            response.status_code,
        ) from None

    if not isinstance(payload, dict):
        raise ProviderError(
            "invalid_response", "Identity provider returned a non-object body", response.status_code
        )
    if payload.get("error"):
        raise ProviderError(
            str(payload["error"]), payload.get("error_description"), response.status_code
        )
    if response.is_error:
        raise ProviderError("http_error", f"HTTP {response.status_code}", response.status_code)
    return payload


class OnlineResolver(AuthResolver):
    """Base class for resolvers that talk to ``login.microsoftonline.*``.

    Args:
        site_url: Absolute SharePoint site URL.
        descriptor: The typed credential descriptor for this strategy.
        cache: Token cache shared by all resolvers of this strategy. A
            private cache is created when omitted.
        http_client: Client used for provider calls. When omitted, a
            short-lived :class:`httpx.AsyncClient` is opened per request
            with ``trust_env=True`` so proxy variables apply.
        settings: Broker settings; defaults are used when omitted.
    """

    strategy: str = "online"
    """Cache namespace and :attr:`auth_type` for the concrete resolver."""

    def __init__(
        self,
        site_url: str,
        descriptor: Any,
        *,
        cache: Optional[TokenCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[BrokerSettings] = None,
    ) -> None:
        super().__init__(site_url)
        self.descriptor = descriptor
        self.cache = cache if cache is not None else TokenCache()
        self.settings = settings or BrokerSettings()
        self._http_client = http_client
        self.authority_host = resolve_authority_host(site_url)
        self.resource_host = tenant_root_host(site_url)

    @property
    def auth_type(self) -> str:
        return self.strategy

    # ------------------------------------------------------------------
    # Endpoints and keys
    # ------------------------------------------------------------------

    def endpoint(self, name: str) -> str:
        """Return ``https://<authority>/<tenant>/oauth2/v2.0/<name>``."""
        return (
            f"https://{self.authority_host}/{self.descriptor.tenant_id}/oauth2/v2.0/{name}"
        )

    @property
    def token_endpoint(self) -> str:
        return self.endpoint("token")

    @abstractmethod
    def cache_tag(self) -> str:
        """Credential fingerprint or flow tag that completes the cache key."""
        ...

    def cache_key(self, refresh: bool = False) -> str:
        return make_cache_key(
            self.resource_host, self.descriptor.client_id, self.cache_tag(), refresh=refresh
        )

    # ------------------------------------------------------------------
    # Provider exchange
    # ------------------------------------------------------------------

    async def post_form(self, url: str, data: dict[str, str]) -> dict[str, Any]:
        """POST *data* form-encoded to *url* and return the decoded payload.

        Raises:
            NetworkError: On transport failures (DNS, refused, timeout).
            ProviderError: When the provider answers with an OAuth error.
        """
        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, data=data, headers=_FORM_HEADERS)
            else:
                async with httpx.AsyncClient(
                    timeout=self.settings.http_timeout,
                    verify=self.settings.verify_ssl,
                    trust_env=True,
                ) as client:
                    response = await client.post(url, data=data, headers=_FORM_HEADERS)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc
        return parse_provider_response(response)

    async def request_token(self, data: dict[str, str]) -> TokenResponse:
        """POST a grant to the token endpoint and validate the token payload."""
        payload = await self.post_form(self.token_endpoint, data)
        try:
            return TokenResponse.model_validate(payload)
        except ValidationError as exc:
            raise ProviderError(
                "invalid_response", "Token response missing 'access_token' field"
            ) from exc

    def store_tokens(self, token: TokenResponse) -> None:
        """Cache the access token (margin TTL) and refresh token (90 days)."""
        self.cache.set(self.cache_key(), token.access_token, compute_ttl(token.expires_in))
        if token.refresh_token:
            self.cache.set(self.cache_key(refresh=True), token.refresh_token, REFRESH_TOKEN_TTL)

    def cached_result(self) -> Optional[AuthResult]:
        token = self.cache.get(self.cache_key())
        if token is None:
            return None
        logger.debug("Using cached %s token for %s", self.strategy, self.resource_host)
        return AuthResult.bearer(token)


class DelegatedResolver(OnlineResolver):
    """Lifecycle shared by the user sign-in strategies.

    Subclasses implement :meth:`acquire`, the full sign-in that returns a
    token response. Everything else (cache lookup, refresh, fallback,
    storing) happens here.
    """

    def scopes(self) -> str:
        return build_scopes(self.site_url, self.descriptor.scopes)

    def add_client_secret(self, data: dict[str, str]) -> dict[str, str]:
        """Add ``client_secret`` for confidential clients; public clients send none."""
        if self.descriptor.client_secret:
            data["client_secret"] = self.descriptor.client_secret
        return data

    async def get_auth(self) -> AuthResult:
        cached = self.cached_result()
        if cached is not None:
            return cached

        refresh_key = self.cache_key(refresh=True)
        refresh_token = self.cache.get(refresh_key)
        if refresh_token is not None:
            try:
                return await self.refresh(refresh_token)
            except ProviderError as exc:
                logger.warning(
                    "Refresh token for %s was rejected (%s); starting a new sign-in",
                    self.resource_host,
                    exc.error,
                )
                self.cache.remove(refresh_key)

        token = await self.acquire()
        self.store_tokens(token)
        output.success(f"Signed in to {self.resource_host}")
        return AuthResult.bearer(token.access_token)

    async def refresh(self, refresh_token: str) -> AuthResult:
        """Redeem *refresh_token* for a new access token and cache the result."""
        data = self.add_client_secret(
            {
                "grant_type": "refresh_token",
                "client_id": self.descriptor.client_id,
                "refresh_token": refresh_token,
                "scope": self.scopes(),
            }
        )
        token = await self.request_token(data)
        self.store_tokens(token)
        logger.debug("Refreshed %s token for %s", self.strategy, self.resource_host)
        return AuthResult.bearer(token.access_token)

    @abstractmethod
    async def acquire(self) -> TokenResponse:
        """Run the full sign-in flow and return the provider's token response."""
        ...

    async def open_browser(self, url: str) -> bool:
        """Best-effort browser launch; failures are reported, never raised.

        Returns:
            ``True`` if a browser was launched.
        """
        if not self.settings.open_browser:
            return False
        try:
            opened = await asyncio.to_thread(webbrowser.open, url)
        except webbrowser.Error as exc:
            logger.debug("webbrowser.open(%s) failed: %s", url, exc)
            opened = False
        if not opened:
            output.warning(f"Could not open a browser automatically; visit {url}")
        return bool(opened)
