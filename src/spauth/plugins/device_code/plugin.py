"""OAuth2 Device Authorization Grant (:rfc:`8628`) resolver.

:class:`DeviceCodeResolver` signs a user in from a headless or browserless
host. The flow has three phases:

1. **Initiate** -- POST ``client_id`` and the scope (with ``offline_access``)
   to the ``devicecode`` endpoint, show the provider's message, and try to
   open the verification URL in a browser.
2. **Poll** -- POST the device code to the token endpoint every ``interval``
   seconds. ``authorization_pending`` keeps the interval, ``slow_down`` waits
   five seconds longer before the next poll only, and any other error is
   terminal. Polling stops with
   :class:`~spauth.exceptions.AuthTimeoutError` once ``expires_in`` seconds
   have passed since initiation.
3. **Cache** -- handled by :class:`~spauth.auth.online.DelegatedResolver`,
   which also covers the refresh-token path on later calls.

Polling sleeps with :func:`asyncio.sleep`, so cancelling the awaiting task
stops the loop.
"""

from __future__ import annotations

import asyncio
import logging
import time

from pydantic import ValidationError

from spauth import output
from spauth.auth.online import DelegatedResolver
from spauth.exceptions import AuthTimeoutError, ProviderError
from spauth.models import DeviceCode, DeviceCodeResponse, TokenResponse

logger = logging.getLogger(__name__)

DEVICE_CODE_GRANT = "urn:ietf:params:oauth:grant-type:device_code"
DEFAULT_INTERVAL = 5
SLOW_DOWN_INCREMENT = 5


class DeviceCodeResolver(DelegatedResolver):
    """Delegated sign-in through the device authorization grant."""

    strategy = "device_code"
    descriptor: DeviceCode

    def cache_tag(self) -> str:
        return self.strategy

    async def acquire(self) -> TokenResponse:
        started = time.monotonic()
        device = await self.request_device_code()
        self.display_instructions(device)
        await self.open_browser(device.verification_uri)
        return await self.poll_for_token(
            device.device_code,
            interval=device.interval or DEFAULT_INTERVAL,
            deadline=started + device.expires_in,
        )

    async def request_device_code(self) -> DeviceCodeResponse:
        """Start the flow at the ``devicecode`` endpoint.

        Raises:
            ProviderError: If the provider rejects the request or the
                response lacks the device-code fields.
            NetworkError: If the endpoint cannot be reached.
        """
        payload = await self.post_form(
            self.endpoint("devicecode"),
            {"client_id": self.descriptor.client_id, "scope": self.scopes()},
        )
        try:
            return DeviceCodeResponse.model_validate(payload)
        except ValidationError as exc:
            raise ProviderError(
                "invalid_response", "Device code response is missing required fields"
            ) from exc

    def display_instructions(self, device: DeviceCodeResponse) -> None:
        message = device.message or (
            f"To sign in, open {device.verification_uri} and enter the code {device.user_code}"
        )
        output.notice("Device code sign-in", message)

    async def poll_for_token(
        self, device_code: str, interval: int, deadline: float
    ) -> TokenResponse:
        """Poll the token endpoint until the user finishes signing in.

        Args:
            device_code: The code returned by :meth:`request_device_code`.
            interval: Seconds between polls as requested by the provider.
            deadline: :func:`time.monotonic` value after which the code is
                considered expired.

        Returns:
            The token response once the user has authorized the device.

        Raises:
            AuthTimeoutError: If the deadline passes or the provider reports
                ``expired_token``.
            ProviderError: For any non-transient provider error, such as
                ``access_denied``.
        """
        data = self.add_client_secret(
            {
                "grant_type": DEVICE_CODE_GRANT,
                "device_code": device_code,
                "client_id": self.descriptor.client_id,
            }
        )
        poll_interval = max(interval, 1)
        wait = poll_interval

        while time.monotonic() < deadline:
            await asyncio.sleep(wait)
            wait = poll_interval
            try:
                return await self.request_token(data)
            except ProviderError as exc:
                if exc.error == "expired_token":
                    raise AuthTimeoutError(
                        "Device code expired before sign-in completed; run the flow again"
                    ) from exc
                if not exc.is_transient:
                    raise
                if exc.error == "slow_down":
                    # Only the next poll is delayed.
                    wait = poll_interval + SLOW_DOWN_INCREMENT
                    logger.debug("Provider asked to slow down; next poll in %ss", wait)

        raise AuthTimeoutError("Device code expired before sign-in completed; run the flow again")
