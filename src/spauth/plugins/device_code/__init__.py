"""OAuth2 Device Authorization Grant (:rfc:`8628`) resolver.

Designed for hosts without a usable browser (SSH sessions, containers). The
user is shown a URL and a short code to enter on another device while the
resolver polls for completion.

See Also:
    :class:`~spauth.plugins.device_code.plugin.DeviceCodeResolver`
"""

from spauth.plugins.device_code.plugin import DeviceCodeResolver

__all__ = ["DeviceCodeResolver"]
