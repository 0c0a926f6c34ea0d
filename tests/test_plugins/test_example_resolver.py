"""Tests for the example custom resolver shipped under plugins/."""

from __future__ import annotations

import base64
import json

import pytest

from plugins.example_resolver.plugin import CustomApiResolver, register
from spauth.auth.factory import ResolverFactory
from spauth.auth.registry import AuthRegistry
from spauth.exceptions import ConfigurationError


SITE_URL = "https://contoso.sharepoint.com/sites/dev"


@pytest.fixture()
def factory(settings, http_client) -> ResolverFactory:
    registry = AuthRegistry()
    register(registry)
    return ResolverFactory(registry=registry, settings=settings, http_client=http_client)


class TestCustomApiResolver:
    async def test_claims_tagged_descriptor(self, factory, monkeypatch) -> None:
        monkeypatch.setenv("GATEWAY_SECRET", "s3cret")

        resolver = factory.resolve(
            SITE_URL,
            {"authMethod": "customApi", "apiKey": "key-123", "apiSecret": "env:GATEWAY_SECRET"},
        )
        result = await resolver.get_auth()

        assert isinstance(resolver, CustomApiResolver)
        expected = base64.b64encode(b"key-123:s3cret").decode("ascii")
        assert result.headers == {"Authorization": f"Custom {expected}", "X-API-Key": "key-123"}

    def test_other_descriptors_fall_through(self, factory) -> None:
        resolver = factory.resolve(
            SITE_URL, {"clientId": "a", "tenantId": "t", "clientSecret": "s"}
        )
        assert resolver.auth_type == "app_only_secret"

    def test_method_listed(self, factory) -> None:
        method = factory.registry.get_method("customApi")
        assert [f.key for f in method.required_fields] == ["apiKey", "apiSecret"]

    async def test_config_file_validated_against_method(self, factory, tmp_path) -> None:
        path = tmp_path / "private.json"
        path.write_text(json.dumps({"authMethod": "customApi", "apiKey": "key-123"}))

        with pytest.raises(ConfigurationError, match="apiSecret"):
            await factory.get_auth(SITE_URL, None, config_path=path)
