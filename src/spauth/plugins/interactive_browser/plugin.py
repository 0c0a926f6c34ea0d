"""Authorization-code grant with PKCE (:rfc:`7636`) through the user's browser.

:class:`InteractiveBrowserResolver` signs the user in with their own
browser, which is the strategy that copes with MFA and conditional access:

1. Generate a PKCE verifier/challenge pair and an anti-forgery ``state``.
2. Bind a loopback listener on the redirect port, *then* open the
   authorization URL, so the redirect can never arrive before the
   listener is ready.
3. Validate the single redirect: a provider ``error`` or a ``state``
   mismatch is rejected with a failure page.
4. Exchange ``code`` + ``code_verifier`` for tokens, then show a success
   page.

The listener is closed on every exit path, including the five-minute
timeout. Token caching and the refresh-token path are shared with the
device-code strategy through :class:`~spauth.auth.online.DelegatedResolver`.

Also exports :func:`generate_pkce_pair` and :func:`generate_state`.
"""

from __future__ import annotations

import base64
import hashlib
import html
import logging
import secrets
from typing import Optional
from urllib.parse import urlencode, urlparse

from spauth import output
from spauth.auth.online import DelegatedResolver
from spauth.exceptions import ProviderError, SpauthError
from spauth.models import InteractiveBrowser, TokenResponse
from spauth.plugins.interactive_browser.callback import (
    CallbackListener,
    CallbackRequest,
    render_page,
)

logger = logging.getLogger(__name__)


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_pkce_pair() -> tuple[str, str]:
    """Generate a PKCE ``code_verifier`` and its S256 ``code_challenge``.

    The verifier is 32 random bytes, URL-safe base64 encoded without padding
    (43 characters). The challenge is the URL-safe base64 SHA-256 digest of
    the verifier's ASCII form.

    Returns:
        A tuple of ``(code_verifier, code_challenge)``.
    """
    code_verifier = _b64url(secrets.token_bytes(32))
    code_challenge = _b64url(hashlib.sha256(code_verifier.encode("ascii")).digest())
    return code_verifier, code_challenge


def generate_state() -> str:
    """16 random bytes, hex encoded."""
    return secrets.token_hex(16)


class InteractiveBrowserResolver(DelegatedResolver):
    """Delegated sign-in through the browser and a loopback redirect."""

    strategy = "interactive"
    descriptor: InteractiveBrowser

    def cache_tag(self) -> str:
        return self.strategy

    # ------------------------------------------------------------------
    # Redirect URI
    # ------------------------------------------------------------------

    def redirect_target(self) -> tuple[int, str]:
        """Return the ``(port, path)`` the listener must serve."""
        if self.descriptor.redirect_uri:
            parsed = urlparse(self.descriptor.redirect_uri)
            return parsed.port or self.settings.redirect_port, parsed.path or "/"
        port = self.descriptor.redirect_port
        return (self.settings.redirect_port if port is None else port), "/"

    def redirect_uri(self, port: int) -> str:
        if self.descriptor.redirect_uri:
            return self.descriptor.redirect_uri
        return f"http://localhost:{port}"

    def authorization_url(self, redirect_uri: str, state: str, code_challenge: str) -> str:
        params = {
            "client_id": self.descriptor.client_id,
            "response_type": "code",
            "redirect_uri": redirect_uri,
            "response_mode": "query",
            "scope": self.scopes(),
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        return f"{self.endpoint('authorize')}?{urlencode(params)}"

    # ------------------------------------------------------------------
    # Flow
    # ------------------------------------------------------------------

    async def acquire(self) -> TokenResponse:
        code_verifier, code_challenge = generate_pkce_pair()
        state = generate_state()
        port, path = self.redirect_target()

        async with CallbackListener(port, path) as listener:
            redirect_uri = self.redirect_uri(listener.port)
            auth_url = self.authorization_url(redirect_uri, state, code_challenge)
            output.notice(
                "Browser sign-in",
                f"Complete sign-in in your browser. If it did not open, visit:\n{auth_url}",
            )
            await self.open_browser(auth_url)
            request = await listener.wait(self.settings.interactive_timeout)
            return await self.complete(request, state, code_verifier, redirect_uri)

    async def complete(
        self,
        request: CallbackRequest,
        expected_state: str,
        code_verifier: str,
        redirect_uri: str,
    ) -> TokenResponse:
        """Validate the redirect and redeem its authorization code.

        The browser page is chosen here: failure (400) for provider errors,
        "Invalid Response" (400) for a bad ``state`` or missing ``code``,
        and success (200) only after the token exchange succeeded.

        Raises:
            ProviderError: On a provider ``error`` (its code), a state
                mismatch or missing code (``invalid_state``), or a rejected
                token exchange.
        """
        error = request.get("error")
        if error:
            description = request.get("error_description")
            request.respond(
                400, render_page("Authentication Failed", html.escape(description or error))
            )
            raise ProviderError(error, description)

        code = request.get("code")
        if not _same_state(request.get("state"), expected_state) or not code:
            request.respond(400, render_page("Invalid Response"))
            raise ProviderError(
                "invalid_state",
                "Sign-in redirect carried an unexpected state or no authorization code",
            )

        data = self.add_client_secret(
            {
                "grant_type": "authorization_code",
                "client_id": self.descriptor.client_id,
                "code": code,
                "redirect_uri": redirect_uri,
                "code_verifier": code_verifier,
                "scope": self.scopes(),
            }
        )
        try:
            token = await self.request_token(data)
        except SpauthError as exc:
            request.respond(
                500, render_page("Authentication Failed", html.escape(str(exc)))
            )
            raise

        request.respond(
            200,
            render_page(
                "Authentication Successful!",
                "You can close this window and return to the application.",
            ),
        )
        return token


def _same_state(received: Optional[str], expected: str) -> bool:
    return received is not None and secrets.compare_digest(
        received.encode("utf-8"), expected.encode("utf-8")
    )
