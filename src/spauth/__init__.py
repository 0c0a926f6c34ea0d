"""spauth -- Resolve SharePoint credentials into ready-to-use request headers.

Hand the broker a site URL and a credential descriptor and it returns the
``Authorization`` header for that site. It acquires tokens from the Microsoft
identity platform (or signs them locally for on-premise add-ins), caches them
per strategy, and refreshes delegated tokens silently.

Typical usage::

    import spauth

    result = await spauth.get_auth(
        "https://contoso.sharepoint.com/sites/dev",
        {"authMethod": "deviceCode", "clientId": "...", "tenantId": "..."},
    )
    httpx.get(url, headers=result.headers)

or from a shell::

    spauth header https://contoso.sharepoint.com/sites/dev --config private.json

Modules:
    app: Typer application and CLI entry point.
    auth: Resolver base classes, factory, registry and classification.
    plugins: Built-in resolvers, one per strategy.
    models: Pydantic models shared across the entire package.
    config: Environment settings and descriptor file loading.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes for the command line.
    output: stdout/stderr formatting and logging setup with Rich.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from spauth.auth.base import AuthResult

__version__ = "0.1.0"


async def get_auth(
    site_url: Optional[str], descriptor: Any = None, config_path: Any = None
) -> AuthResult:
    """Resolve headers with the process-wide factory; see :func:`spauth.auth.get_auth`."""
    from spauth.auth.factory import get_auth as _get_auth

    return await _get_auth(site_url, descriptor, config_path=config_path)


def register_auth_resolver(factory: Any) -> None:
    """Register a custom resolver factory on the process-wide registry."""
    from spauth.auth.registry import register_auth_resolver as _register

    _register(factory)


def register_auth_method(method: Any) -> bool:
    """Register an auth method definition on the process-wide registry."""
    from spauth.auth.registry import register_auth_method as _register

    return _register(method)
