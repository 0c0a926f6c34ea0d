"""App-only access with a client secret (OAuth2 client-credentials grant).

This module provides :class:`AppOnlySecretResolver`, which exchanges a
``client_id`` and ``client_secret`` for an access token at
``https://<authority>/<tenant>/oauth2/v2.0/token`` (:rfc:`6749` section 4.4).

Client-credentials tokens are not refreshable, so the scope is the bare
resource ``/.default`` without ``offline_access`` and only the access token is
cached. Failures propagate uncached.

See Also:
    :mod:`spauth.plugins.certificate` for the same grant authenticated with
    a signed assertion instead of a secret.
"""

from __future__ import annotations

import logging

from spauth.auth.base import AuthResult
from spauth.auth.online import OnlineResolver
from spauth.auth.scopes import build_scopes
from spauth.cache import fingerprint
from spauth.models import AppOnlyClientSecret

logger = logging.getLogger(__name__)


class AppOnlySecretResolver(OnlineResolver):
    """Resolve an app-only bearer token from a client secret."""

    strategy = "app_only_secret"
    descriptor: AppOnlyClientSecret

    def cache_tag(self) -> str:
        return fingerprint(self.descriptor.client_secret)

    async def get_auth(self) -> AuthResult:
        """Return the cached token, or fetch one with the client-credentials grant.

        Raises:
            ProviderError: If the provider rejects the client (e.g.
                ``invalid_client``).
            NetworkError: If the token endpoint cannot be reached.
        """
        cached = self.cached_result()
        if cached is not None:
            return cached

        logger.debug("Requesting app-only token for %s", self.resource_host)
        token = await self.request_token(
            {
                "grant_type": "client_credentials",
                "client_id": self.descriptor.client_id,
                "client_secret": self.descriptor.client_secret,
                "scope": build_scopes(self.site_url, include_offline_access=False),
            }
        )
        self.store_tokens(token)
        return AuthResult.bearer(token.access_token)
