"""Credential resolution for SharePoint sites.

This package turns a site URL plus a credential descriptor into the HTTP
headers needed to call the site. It supports several strategies: app-only
with a client secret or certificate, delegated device code and interactive
browser flows, and on-premise high-trust add-ins.

The main entry points are:

- :class:`AuthResolver` -- abstract base class every strategy implements.
- :class:`ResolverFactory` -- picks the resolver for a descriptor and owns
  the per-strategy token caches.
- :class:`AuthRegistry` -- custom resolver factories and auth-method
  definitions, consulted before the built-ins.
- :func:`classify` -- maps an untyped descriptor to its typed model.

Typical usage::

    from spauth.auth import ResolverFactory

    factory = ResolverFactory()
    result = await factory.get_auth(site_url, descriptor)
    # result.headers is ready to merge into a request.
"""

from spauth.auth.base import AuthResolver, AuthResult
from spauth.auth.discriminators import classify
from spauth.auth.factory import ResolverFactory, get_auth, get_factory
from spauth.auth.file_config import FileConfigResolver
from spauth.auth.registry import (
    AuthRegistry,
    default_registry,
    register_auth_method,
    register_auth_resolver,
)

__all__ = [
    "AuthRegistry",
    "AuthResolver",
    "AuthResult",
    "FileConfigResolver",
    "ResolverFactory",
    "classify",
    "default_registry",
    "get_auth",
    "get_factory",
    "register_auth_method",
    "register_auth_resolver",
]
