"""Tests for the app-only client-secret resolver (client-credentials grant)."""

from __future__ import annotations

import httpx
import pytest

from spauth.cache import TokenCache
from spauth.exceptions import NetworkError, ProviderError
from spauth.models import AppOnlyClientSecret
from spauth.plugins.client_credentials import AppOnlySecretResolver


SITE_URL = "https://contoso.sharepoint.com/sites/dev"


@pytest.fixture()
def descriptor() -> AppOnlyClientSecret:
    return AppOnlyClientSecret(client_id="app-id", tenant_id="tenant-id", client_secret="s3cret")


@pytest.fixture()
def cache() -> TokenCache:
    return TokenCache()


@pytest.fixture()
def resolver(descriptor, cache, http_client, settings) -> AppOnlySecretResolver:
    return AppOnlySecretResolver(
        SITE_URL, descriptor, cache=cache, http_client=http_client, settings=settings
    )


class TestClientCredentials:
    async def test_requests_token(self, resolver, provider) -> None:
        provider.token("tok", expires_in=3599)

        result = await resolver.get_auth()

        assert result.headers == {"Authorization": "Bearer tok"}
        request = provider.requests[0]
        assert str(request.url) == (
            "https://login.microsoftonline.com/tenant-id/oauth2/v2.0/token"
        )
        assert provider.form(request) == {
            "grant_type": "client_credentials",
            "client_id": "app-id",
            "client_secret": "s3cret",
            "scope": "https://contoso.sharepoint.com/.default",
        }

    async def test_second_call_served_from_cache(self, resolver, provider) -> None:
        provider.token("tok")

        first = await resolver.get_auth()
        second = await resolver.get_auth()

        assert first == second
        assert len(provider.requests) == 1

    async def test_token_expires_five_minutes_early(
        self, descriptor, http_client, settings, provider
    ) -> None:
        now = [0.0]
        resolver = AppOnlySecretResolver(
            SITE_URL,
            descriptor,
            cache=TokenCache(clock=lambda: now[0]),
            http_client=http_client,
            settings=settings,
        )
        provider.token("tok-1", expires_in=3600)
        provider.token("tok-2", expires_in=3600)

        await resolver.get_auth()
        now[0] = 3299
        assert (await resolver.get_auth()).headers["Authorization"] == "Bearer tok-1"
        now[0] = 3300
        assert (await resolver.get_auth()).headers["Authorization"] == "Bearer tok-2"

    async def test_cache_key_hides_secret(self, resolver) -> None:
        key = resolver.cache_key()
        assert key.startswith("contoso.sharepoint.com@app-id@")
        assert "s3cret" not in key

    async def test_sovereign_cloud_authority(self, descriptor, http_client, settings, provider) -> None:
        resolver = AppOnlySecretResolver(
            "https://contoso.sharepoint.us/sites/a",
            descriptor,
            http_client=http_client,
            settings=settings,
        )
        provider.token()

        await resolver.get_auth()

        assert provider.requests[0].url.host == "login.microsoftonline.us"

    async def test_provider_error_not_cached(self, resolver, provider, cache) -> None:
        provider.oauth_error("token", "invalid_client", status_code=401)

        with pytest.raises(ProviderError) as exc_info:
            await resolver.get_auth()

        assert exc_info.value.error == "invalid_client"
        assert exc_info.value.status_code == 401
        assert len(cache) == 0

    async def test_missing_access_token(self, resolver, provider) -> None:
        provider.queue("token", httpx.Response(200, json={"token_type": "Bearer"}))
        with pytest.raises(ProviderError, match="access_token"):
            await resolver.get_auth()

    async def test_non_json_body(self, resolver, provider) -> None:
        provider.queue("token", httpx.Response(502, text="<html>Bad gateway</html>"))
        with pytest.raises(ProviderError) as exc_info:
            await resolver.get_auth()
        assert exc_info.value.error == "invalid_response"

    async def test_network_failure(self, resolver, provider) -> None:
        provider.queue("token", httpx.ConnectError("connection refused"))
        with pytest.raises(NetworkError, match="connection refused"):
            await resolver.get_auth()
