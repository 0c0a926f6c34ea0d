"""App-only access with a certificate-signed client assertion.

This module provides :class:`AppOnlyCertificateResolver`. It performs the
client-credentials grant but proves the application's identity with a JWT
signed by the certificate's private key instead of a shared secret:

1. Load the private key from the PKCS#12 bundle (``pfxPath``), optionally
   decrypting it with ``certPassword``.
2. Sign an RS256 assertion whose ``x5t`` header is the caller-supplied
   SHA-1 thumbprint. The thumbprint is used verbatim, never recomputed from
   the certificate.
3. POST the assertion with
   ``client_assertion_type=urn:ietf:params:oauth:client-assertion-type:jwt-bearer``.

A fresh assertion (new ``jti``) is built for every token request.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from spauth.auth.base import AuthResult
from spauth.auth.online import OnlineResolver
from spauth.auth.scopes import build_scopes
from spauth.auth.signing import load_private_key, sign_rs256
from spauth.models import AppOnlyCertificate

logger = logging.getLogger(__name__)

JWT_BEARER_ASSERTION = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
ASSERTION_LIFETIME = 3600
CLOCK_SKEW = 300


class AppOnlyCertificateResolver(OnlineResolver):
    """Resolve an app-only bearer token with a JWT-bearer client assertion."""

    strategy = "app_only_certificate"
    descriptor: AppOnlyCertificate

    def cache_tag(self) -> str:
        return self.descriptor.pfx_path

    @property
    def assertion_audience(self) -> str:
        return f"https://{self.authority_host}/{self.descriptor.tenant_id}/v2.0"

    def build_assertion_claims(self, now: int) -> dict[str, Any]:
        client_id = self.descriptor.client_id
        return {
            "aud": self.assertion_audience,
            "iss": client_id,
            "sub": client_id,
            "jti": str(uuid.uuid4()),
            "nbf": now - CLOCK_SKEW,
            "exp": now + ASSERTION_LIFETIME,
        }

    def build_client_assertion(self) -> str:
        """Load the private key and sign a new client assertion.

        Raises:
            CertificateError: If the bundle cannot be read or decrypted, or
                signing fails.
        """
        key = load_private_key(self.descriptor.pfx_path, self.descriptor.cert_password)
        claims = self.build_assertion_claims(int(time.time()))
        return sign_rs256(claims, key, headers={"x5t": self.descriptor.sha1_thumbprint})

    async def get_auth(self) -> AuthResult:
        cached = self.cached_result()
        if cached is not None:
            return cached

        logger.debug("Requesting certificate app-only token for %s", self.resource_host)
        token = await self.request_token(
            {
                "grant_type": "client_credentials",
                "client_id": self.descriptor.client_id,
                "client_assertion_type": JWT_BEARER_ASSERTION,
                "client_assertion": self.build_client_assertion(),
                "scope": build_scopes(self.site_url, include_offline_access=False),
            }
        )
        self.store_tokens(token)
        return AuthResult.bearer(token.access_token)
