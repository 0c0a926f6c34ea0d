"""Resolvers for on-premise SharePoint farms.

:class:`OnPremiseAddinResolver` implements high-trust (server-to-server)
add-in authentication. No identity provider is contacted: the resolver signs
an actor token with the add-in's RSA private key, and the farm trusts it
because the matching certificate is registered as a token issuer. The token
is cached for its twelve-hour lifetime minus the usual margin.

:class:`OnPremiseUserCredentialsResolver` exists so that NTLM descriptors
classify cleanly, but NTLM negotiation is not built in. It raises
:class:`~spauth.exceptions.ConfigurationError` pointing at
:func:`~spauth.auth.registry.register_auth_resolver`.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from spauth.auth.base import AuthResolver, AuthResult
from spauth.auth.hosting import site_hostname
from spauth.auth.signing import load_private_key, sign_rs256
from spauth.cache import TokenCache, compute_ttl, make_cache_key
from spauth.exceptions import ConfigurationError
from spauth.models import OnPremiseAddin, OnPremiseUserCredentials

logger = logging.getLogger(__name__)

SHAREPOINT_PRINCIPAL = "00000003-0000-0ff1-ce00-000000000000"
"""Well-known application id of SharePoint, the audience of actor tokens."""

HIGH_TRUST_TOKEN_LIFETIME = 12 * 60 * 60


class OnPremiseAddinResolver(AuthResolver):
    """Self-signed actor tokens for high-trust SharePoint add-ins.

    Args:
        site_url: Absolute on-premise site URL.
        descriptor: Add-in credentials (client id, realm, issuer id, key).
        cache: Shared token cache for this strategy.
    """

    strategy = "on_premise_addin"

    def __init__(
        self,
        site_url: str,
        descriptor: OnPremiseAddin,
        *,
        cache: Optional[TokenCache] = None,
        **_: Any,
    ) -> None:
        super().__init__(site_url)
        self.descriptor = descriptor
        self.cache = cache if cache is not None else TokenCache()
        self.host = site_hostname(site_url)

    @property
    def auth_type(self) -> str:
        return self.strategy

    def cache_key(self) -> str:
        return make_cache_key(
            self.host, self.descriptor.client_id, self.descriptor.rsa_private_key_path
        )

    def build_actor_claims(self, now: int) -> dict[str, Any]:
        realm = self.descriptor.realm
        return {
            "aud": f"{SHAREPOINT_PRINCIPAL}/{self.host}@{realm}",
            "iss": f"{self.descriptor.issuer_id}@{realm}",
            "nameid": f"{self.descriptor.client_id}@{realm}",
            "nbf": now - HIGH_TRUST_TOKEN_LIFETIME,
            "exp": now + HIGH_TRUST_TOKEN_LIFETIME,
            "trustedfordelegation": True,
        }

    async def get_auth(self) -> AuthResult:
        key = self.cache_key()
        token = self.cache.get(key)
        if token is None:
            private_key = load_private_key(self.descriptor.rsa_private_key_path)
            token = sign_rs256(
                self.build_actor_claims(int(time.time())),
                private_key,
                headers={"x5t": self.descriptor.sha1_thumbprint},
            )
            self.cache.set(key, token, compute_ttl(HIGH_TRUST_TOKEN_LIFETIME))
            logger.debug("Signed new high-trust actor token for %s", self.host)
        return AuthResult.bearer(token)


class OnPremiseUserCredentialsResolver(AuthResolver):
    """Placeholder for NTLM user credentials; always raises on use."""

    strategy = "on_premise_user_credentials"

    def __init__(self, site_url: str, descriptor: OnPremiseUserCredentials, **_: Any) -> None:
        super().__init__(site_url)
        self.descriptor = descriptor

    @property
    def auth_type(self) -> str:
        return self.strategy

    async def get_auth(self) -> AuthResult:
        raise ConfigurationError(
            "NTLM user credentials are not handled by the built-in resolvers; "
            "register a resolver for 'onPremiseUserCredentials' with register_auth_resolver()"
        )
