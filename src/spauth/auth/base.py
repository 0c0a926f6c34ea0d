"""Abstract base class for credential resolvers.

This module defines the two foundational types of the auth subsystem:

- :class:`AuthResult` -- the header container handed to the proxy layer.
- :class:`AuthResolver` -- the abstract base class every strategy extends.

To implement a new strategy, subclass :class:`AuthResolver`, set the
:attr:`~AuthResolver.auth_type` property, and implement the coroutine
:meth:`~AuthResolver.get_auth`. Register a factory for it with
:func:`spauth.auth.registry.register_auth_resolver`.

See Also:
    :mod:`spauth.auth.online` for the shared machinery of the Microsoft
    identity platform resolvers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AuthResult:
    """Headers to attach to an outgoing SharePoint request.

    Args:
        headers: HTTP headers, normally just ``Authorization``.

    Example::

        result = AuthResult.bearer("tok123")
        assert result.headers["Authorization"] == "Bearer tok123"
        assert result.to_dict() == {"headers": {"Authorization": "Bearer tok123"}}
    """

    def __init__(self, headers: dict[str, str] | None = None):
        self.headers = headers or {}

    @classmethod
    def bearer(cls, token: str) -> AuthResult:
        return cls(headers={"Authorization": f"Bearer {token}"})

    def to_dict(self) -> dict[str, Any]:
        """Return the ``{"headers": {...}}`` shape consumed by the proxy layer."""
        return {"headers": dict(self.headers)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuthResult):
            return NotImplemented
        return self.headers == other.headers

    def __repr__(self) -> str:
        return f"AuthResult(headers={sorted(self.headers)})"


class AuthResolver(ABC):
    """Abstract base class for credential resolvers.

    A resolver is bound to one site URL and one credential descriptor at
    construction time. Every call to :meth:`get_auth` returns a valid header,
    using cached tokens where possible.

    Args:
        site_url: Absolute URL of the SharePoint site being proxied.
    """

    def __init__(self, site_url: str) -> None:
        self.site_url = site_url

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Return the strategy identifier, e.g. ``"device_code"``."""
        ...

    @abstractmethod
    async def get_auth(self) -> AuthResult:
        """Produce the auth header for :attr:`site_url`.

        Raises:
            SpauthError: A subclass describing why no header could be
                produced. Terminal errors are never swallowed.
        """
        ...
