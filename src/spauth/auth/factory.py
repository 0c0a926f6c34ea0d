"""Resolver factory -- turns a site URL and a descriptor into a resolver.

Resolution order is part of the contract:

1. No descriptor: a :class:`~spauth.auth.file_config.FileConfigResolver`
   reading ``BrokerSettings.config_path``.
2. Custom factories from the :class:`~spauth.auth.registry.AuthRegistry`,
   in registration order. The first one to return a resolver wins.
3. Built-in strategies, chosen by
   :func:`~spauth.auth.discriminators.classify`.

Nothing matching raises :class:`~spauth.exceptions.ConfigurationError`.

Every built-in resolver gets the token cache for its strategy from the
factory's :class:`~spauth.cache.TokenCacheRegistry`, so all resolvers of one
strategy share one cache.

See Also:
    :func:`spauth.get_auth` -- one-call helper on the default factory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import httpx

from spauth.auth.base import AuthResolver, AuthResult
from spauth.auth.discriminators import DescriptorInput, as_mapping, classify
from spauth.auth.file_config import FileConfigResolver
from spauth.auth.registry import AuthRegistry, default_registry
from spauth.cache import TokenCacheRegistry
from spauth.config import load_settings, resolve_descriptor_secrets
from spauth.exceptions import ConfigurationError
from spauth.models import BrokerSettings

logger = logging.getLogger(__name__)


def builtin_resolvers() -> dict[type, type]:
    """Map each built-in descriptor type to its resolver class."""
    from spauth.models import (
        AppOnlyCertificate,
        AppOnlyClientSecret,
        DeviceCode,
        InteractiveBrowser,
        OnPremiseAddin,
        OnPremiseUserCredentials,
    )
    from spauth.plugins.certificate import AppOnlyCertificateResolver
    from spauth.plugins.client_credentials import AppOnlySecretResolver
    from spauth.plugins.device_code import DeviceCodeResolver
    from spauth.plugins.interactive_browser import InteractiveBrowserResolver
    from spauth.plugins.on_premise import (
        OnPremiseAddinResolver,
        OnPremiseUserCredentialsResolver,
    )

    return {
        DeviceCode: DeviceCodeResolver,
        InteractiveBrowser: InteractiveBrowserResolver,
        AppOnlyClientSecret: AppOnlySecretResolver,
        AppOnlyCertificate: AppOnlyCertificateResolver,
        OnPremiseAddin: OnPremiseAddinResolver,
        OnPremiseUserCredentials: OnPremiseUserCredentialsResolver,
    }


class ResolverFactory:
    """Builds resolvers and owns the per-strategy token caches.

    Args:
        registry: Registry of custom factories and auth methods.
        caches: Per-strategy caches; a fresh registry when omitted.
        settings: Broker settings passed to every resolver.
        http_client: Client shared by the built-in resolvers. When omitted,
            each provider call opens its own short-lived client.

    Example::

        factory = ResolverFactory()
        resolver = factory.resolve(
            "https://contoso.sharepoint.com/sites/dev",
            {"authMethod": "deviceCode", "clientId": "...", "tenantId": "..."},
        )
        headers = (await resolver.get_auth()).headers
    """

    def __init__(
        self,
        registry: Optional[AuthRegistry] = None,
        caches: Optional[TokenCacheRegistry] = None,
        settings: Optional[BrokerSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        self.caches = caches if caches is not None else TokenCacheRegistry()
        self.settings = settings or BrokerSettings()
        self.http_client = http_client

    def resolve(
        self,
        site_url: Optional[str],
        descriptor: Optional[DescriptorInput] = None,
        config_path: Optional[str | Path] = None,
    ) -> AuthResolver:
        """Select and build the resolver for *descriptor*.

        Args:
            site_url: Absolute SharePoint site URL. May be ``None`` only
                when the descriptor comes from a file carrying ``siteUrl``.
            descriptor: Mapping or typed descriptor; ``None`` reads the
                descriptor file.
            config_path: Descriptor file used when *descriptor* is
                ``None``. Defaults to ``settings.config_path``.

        Raises:
            ConfigurationError: If no custom factory claims the descriptor
                and no built-in strategy matches it.
        """
        if descriptor is None:
            return FileConfigResolver(
                site_url, config_path or self.settings.config_path, factory=self
            )
        if not site_url:
            raise ConfigurationError("A site URL is required to resolve credentials")

        data = resolve_descriptor_secrets(as_mapping(descriptor))

        custom = self.registry.resolve(site_url, data)
        if custom is not None:
            return custom

        typed = classify(data)
        resolver_cls = builtin_resolvers().get(type(typed))
        if resolver_cls is None:
            raise ConfigurationError(
                f"No resolver is registered for authMethod '{typed.auth_method}'"
            )
        logger.debug("Resolved %s for %s", resolver_cls.__name__, site_url)
        return resolver_cls(
            site_url,
            typed,
            cache=self.caches.for_strategy(resolver_cls.strategy),
            http_client=self.http_client,
            settings=self.settings,
        )

    async def get_auth(
        self,
        site_url: Optional[str],
        descriptor: Optional[DescriptorInput] = None,
        **kwargs: Any,
    ) -> AuthResult:
        return await self.resolve(site_url, descriptor, **kwargs).get_auth()


# ------------------------------------------------------------------ #
# Process-wide factory
# ------------------------------------------------------------------ #

_factory: Optional[ResolverFactory] = None


def get_factory() -> ResolverFactory:
    """Return the process-wide factory, creating it from the environment on first use."""
    global _factory
    if _factory is None:
        _factory = ResolverFactory(registry=default_registry, settings=load_settings())
    return _factory


def set_factory(factory: ResolverFactory) -> None:
    global _factory
    _factory = factory


def reset_factory() -> None:
    """Drop the process-wide factory and its token caches (used by tests)."""
    global _factory
    _factory = None


async def get_auth(
    site_url: Optional[str],
    descriptor: Optional[DescriptorInput] = None,
    config_path: Optional[str | Path] = None,
) -> AuthResult:
    """Resolve credentials with the process-wide factory.

    Example::

        result = await get_auth(
            "https://contoso.sharepoint.com/sites/dev",
            {"clientId": "...", "tenantId": "...", "clientSecret": "..."},
        )
        request.headers.update(result.headers)
    """
    return await get_factory().get_auth(site_url, descriptor, config_path=config_path)
