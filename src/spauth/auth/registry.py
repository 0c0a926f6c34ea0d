"""Registry of custom resolver factories and auth-method definitions.

:class:`AuthRegistry` holds the two extension points:

- **Resolver factories** -- callables ``(site_url, descriptor) -> resolver |
  None``. :class:`~spauth.auth.factory.ResolverFactory` offers every
  descriptor to them, in registration order, before the built-in strategies.
- **Auth methods** -- :class:`~spauth.models.AuthMethodConfig` entries
  naming the fields each ``authMethod`` needs. The built-in methods are
  pre-registered.

Both lists are append-only. Registering an auth method whose ``id`` already
exists logs a warning and keeps the original.

Most callers use the process-wide :data:`default_registry` through
:func:`register_auth_resolver` and :func:`register_auth_method`::

    from spauth import register_auth_resolver

    def my_factory(site_url, descriptor):
        if descriptor.get("authMethod") == "myCert":
            return MyCertResolver(site_url, descriptor)
        return None

    register_auth_resolver(my_factory)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from spauth.auth.base import AuthResolver
from spauth.auth.discriminators import method_id as shape_method_id
from spauth.exceptions import PluginError
from spauth.models import AuthMethodConfig, FieldConfig

logger = logging.getLogger(__name__)

ResolverFactoryFn = Callable[[str, dict[str, Any]], Optional[AuthResolver]]
"""Signature of a custom resolver factory."""


def _field(
    key: str,
    prompt: str,
    secret: bool = False,
    optional: bool = False,
    aliases: tuple[str, ...] = (),
) -> FieldConfig:
    return FieldConfig(
        key=key, prompt=prompt, secret=secret, optional=optional, aliases=list(aliases)
    )


BUILTIN_AUTH_METHODS: tuple[AuthMethodConfig, ...] = (
    AuthMethodConfig(
        id="interactive",
        name="Interactive Browser",
        description="recommended - supports MFA",
        required_fields=[
            _field("clientId", "Client ID"),
            _field("tenantId", "Tenant ID"),
            _field("clientSecret", "Client Secret", secret=True, optional=True),
            _field("redirectPort", "Redirect port", optional=True),
        ],
    ),
    AuthMethodConfig(
        id="deviceCode",
        name="Device Code Flow",
        description="supports MFA",
        required_fields=[
            _field("clientId", "Client ID"),
            _field("tenantId", "Tenant ID"),
            _field("clientSecret", "Client Secret", secret=True, optional=True),
        ],
    ),
    AuthMethodConfig(
        id="appOnly",
        name="Online App-Only (Certificate)",
        description="certificate-based authentication",
        required_fields=[
            _field("clientId", "Client ID"),
            _field("tenantId", "Tenant ID"),
            _field("pfxCertificatePath", "Certificate Path (.pfx file)", aliases=("pfxPath",)),
            _field("shaThumbprint", "SHA Thumbprint", aliases=("sha1Thumbprint",)),
            _field(
                "certificatePassword",
                "Certificate Password",
                secret=True,
                optional=True,
                aliases=("certPassword",),
            ),
        ],
    ),
    AuthMethodConfig(
        id="appOnlySecret",
        name="Online App-Only (Client Secret)",
        description="client secret authentication",
        required_fields=[
            _field("clientId", "Client ID"),
            _field("tenantId", "Tenant ID"),
            _field("clientSecret", "Client Secret", secret=True),
        ],
    ),
    AuthMethodConfig(
        id="onPremiseAddin",
        name="On-Premise Add-in Only",
        description="using SharePoint Add-in credentials",
        required_fields=[
            _field("clientId", "Client ID"),
            _field("realm", "Realm"),
            _field("issuerId", "Issuer ID"),
            _field("rsaPrivateKeyPath", "RSA Private Key Path", aliases=("rsaKeyPath",)),
            _field("shaThumbprint", "SHA Thumbprint", aliases=("sha1Thumbprint",)),
        ],
    ),
    AuthMethodConfig(
        id="onPremiseUserCredentials",
        name="On-Premise User Credentials",
        description="using Windows user credentials",
        required_fields=[
            _field("username", "Username"),
            _field("password", "Password", secret=True),
            _field("domain", "Domain", optional=True),
            _field("workstation", "Workstation", optional=True),
            _field("rejectUnauthorized", "Reject Unauthorized SSL (true/false)", optional=True),
        ],
    ),
)


class AuthRegistry:
    """Append-only registry of resolver factories and auth methods.

    Args:
        include_builtin_methods: Pre-register :data:`BUILTIN_AUTH_METHODS`.
    """

    def __init__(self, include_builtin_methods: bool = True) -> None:
        self._resolver_factories: list[ResolverFactoryFn] = []
        self._methods: dict[str, AuthMethodConfig] = {}
        if include_builtin_methods:
            for method in BUILTIN_AUTH_METHODS:
                self._methods[method.id] = method

    # ------------------------------------------------------------------
    # Resolver factories
    # ------------------------------------------------------------------

    def register_resolver(self, factory: ResolverFactoryFn) -> None:
        """Append a custom resolver factory.

        Raises:
            PluginError: If *factory* is not callable.
        """
        if not callable(factory):
            raise PluginError(f"Resolver factory must be callable, got {type(factory).__name__}")
        self._resolver_factories.append(factory)
        logger.debug("Registered resolver factory %r", factory)

    @property
    def resolver_factories(self) -> tuple[ResolverFactoryFn, ...]:
        """Registered factories in the order they are consulted."""
        return tuple(self._resolver_factories)

    def resolve(self, site_url: str, descriptor: Mapping[str, Any]) -> Optional[AuthResolver]:
        """Offer *descriptor* to each custom factory; return the first resolver built.

        Each factory receives its own copy of the descriptor, so a factory
        cannot alter what later factories or the built-ins see.
        """
        for factory in self._resolver_factories:
            resolver = factory(site_url, dict(descriptor))
            if resolver is not None:
                logger.debug("Custom factory %r claimed the descriptor", factory)
                return resolver
        return None

    # ------------------------------------------------------------------
    # Auth methods
    # ------------------------------------------------------------------

    def register_method(self, method: Union[AuthMethodConfig, Mapping[str, Any]]) -> bool:
        """Add an auth method definition.

        Args:
            method: The definition, as a model or a mapping with ``id``,
                ``name``, ``description`` and ``requiredFields``.

        Returns:
            ``False`` (after logging a warning) when the ``id`` is already
            registered, ``True`` otherwise.

        Raises:
            PluginError: If a mapping fails validation.
        """
        if isinstance(method, AuthMethodConfig):
            config = method
        else:
            try:
                config = AuthMethodConfig.model_validate(method)
            except ValidationError as exc:
                raise PluginError(f"Invalid auth method definition: {exc}") from exc
        if config.id in self._methods:
            logger.warning("Auth method '%s' is already registered. Skipping.", config.id)
            return False
        self._methods[config.id] = config
        return True

    def get_method(self, method_id: str) -> Optional[AuthMethodConfig]:
        return self._methods.get(method_id)

    def list_methods(self) -> list[AuthMethodConfig]:
        """Registered auth methods, built-ins first, then in registration order."""
        return list(self._methods.values())

    def missing_fields(self, descriptor: Mapping[str, Any]) -> list[str]:
        """Required fields absent from *descriptor* for its ``authMethod``.

        Returns an empty list for untagged descriptors and unknown methods;
        those are left to classification. An ``appOnly`` descriptor is
        checked against the shape it classifies as, certificate or secret.
        """
        method_id = shape_method_id(descriptor)
        method = self.get_method(method_id) if method_id else None
        if method is None:
            return []
        return method.missing_fields(dict(descriptor))


default_registry = AuthRegistry()
"""Process-wide registry used by :func:`spauth.get_auth` and the command line."""


def register_auth_resolver(factory: ResolverFactoryFn) -> None:
    """Register a custom resolver factory on :data:`default_registry`."""
    default_registry.register_resolver(factory)


def register_auth_method(method: Union[AuthMethodConfig, Mapping[str, Any]]) -> bool:
    """Register an auth method on :data:`default_registry`."""
    return default_registry.register_method(method)
