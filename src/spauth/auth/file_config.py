"""Resolver that reads its credential descriptor from a JSON file.

:class:`FileConfigResolver` is what the factory returns when no descriptor is
supplied. On first use it loads the file, checks the fields required by the
descriptor's ``authMethod`` against the auth-method registry, and builds the
real resolver through the factory. Later calls reuse that resolver, so its
token cache behaves exactly as if the descriptor had been passed directly.

The file is plain JSON, e.g.::

    {
        "siteUrl": "https://contoso.sharepoint.com/sites/dev",
        "authMethod": "deviceCode",
        "clientId": "...",
        "tenantId": "..."
    }
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from spauth.auth.base import AuthResolver, AuthResult
from spauth.config import load_descriptor_file
from spauth.exceptions import ConfigurationError

if TYPE_CHECKING:
    from spauth.auth.factory import ResolverFactory

logger = logging.getLogger(__name__)


class FileConfigResolver(AuthResolver):
    """Delegate to the resolver described by a JSON configuration file.

    Args:
        site_url: Target site. When ``None`` the file's ``siteUrl`` is used.
        config_path: Path to the JSON descriptor.
        factory: Factory used to build the inner resolver.
    """

    def __init__(
        self,
        site_url: Optional[str],
        config_path: str | Path,
        factory: ResolverFactory,
    ) -> None:
        super().__init__(site_url or "")
        self.config_path = Path(config_path)
        self._factory = factory
        self._inner: Optional[AuthResolver] = None

    @property
    def auth_type(self) -> str:
        return "file_config"

    def load_descriptor(self) -> dict[str, Any]:
        """Read and validate the descriptor file.

        Raises:
            ConfigurationError: If the file is missing or invalid, lacks
                required fields for its ``authMethod``, or no site URL is
                known.
        """
        data = load_descriptor_file(self.config_path)
        missing = self._factory.registry.missing_fields(data)
        if missing:
            raise ConfigurationError(
                f"Credential config {self.config_path} is missing required "
                f"field(s) for '{data.get('authMethod')}': {', '.join(missing)}"
            )
        file_site_url = data.pop("siteUrl", None)
        if not self.site_url:
            if not file_site_url:
                raise ConfigurationError(
                    f"No site URL given and {self.config_path} has no 'siteUrl'"
                )
            self.site_url = file_site_url
        return data

    def inner(self) -> AuthResolver:
        if self._inner is None:
            descriptor = self.load_descriptor()
            self._inner = self._factory.resolve(self.site_url, descriptor)
            logger.debug(
                "Loaded %s credentials from %s", self._inner.auth_type, self.config_path
            )
        return self._inner

    async def get_auth(self) -> AuthResult:
        return await self.inner().get_auth()
