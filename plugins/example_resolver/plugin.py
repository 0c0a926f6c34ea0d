"""Example resolver for an API-key gateway in front of SharePoint.

Shows the extension surface: a resolver class, a factory that claims
descriptors tagged ``authMethod: "customApi"``, and an auth-method entry so
``spauth methods`` and config-file validation know its fields. Call
:func:`register` once at startup::

    from plugins.example_resolver.plugin import register

    register()
    result = await spauth.get_auth(site_url, {
        "authMethod": "customApi",
        "apiKey": "key-123",
        "apiSecret": "env:GATEWAY_SECRET",
    })
"""

from __future__ import annotations

import base64
from typing import Any, Optional

from spauth.auth.base import AuthResolver, AuthResult
from spauth.auth.registry import AuthRegistry, default_registry
from spauth.config import resolve_credential
from spauth.exceptions import ConfigurationError
from spauth.models import AuthMethodConfig, FieldConfig

AUTH_METHOD = "customApi"

CUSTOM_API_METHOD = AuthMethodConfig(
    id=AUTH_METHOD,
    name="Custom API Authentication",
    description="using a gateway API key and secret",
    required_fields=[
        FieldConfig(key="apiKey", prompt="API Key"),
        FieldConfig(key="apiSecret", prompt="API Secret", secret=True),
    ],
)


class CustomApiResolver(AuthResolver):
    """Sends ``Authorization: Custom <base64(key:secret)>`` plus ``X-API-Key``."""

    def __init__(self, site_url: str, descriptor: dict[str, Any]) -> None:
        super().__init__(site_url)
        self.descriptor = descriptor

    @property
    def auth_type(self) -> str:
        return "custom_api"

    async def get_auth(self) -> AuthResult:
        api_key = self.descriptor.get("apiKey")
        api_secret = self.descriptor.get("apiSecret")
        if not api_key or not api_secret:
            raise ConfigurationError("customApi credentials need 'apiKey' and 'apiSecret'")
        secret = resolve_credential(api_secret)
        token = base64.b64encode(f"{api_key}:{secret}".encode("utf-8")).decode("ascii")
        return AuthResult(headers={"Authorization": f"Custom {token}", "X-API-Key": api_key})


def custom_api_factory(site_url: str, descriptor: dict[str, Any]) -> Optional[AuthResolver]:
    if descriptor.get("authMethod") == AUTH_METHOD:
        return CustomApiResolver(site_url, descriptor)
    return None


def register(registry: AuthRegistry = default_registry) -> None:
    registry.register_resolver(custom_api_factory)
    registry.register_method(CUSTOM_API_METHOD)
