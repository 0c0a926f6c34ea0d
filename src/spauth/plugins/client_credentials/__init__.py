"""App-only client-secret resolver (OAuth2 client-credentials grant).

See Also:
    :class:`~spauth.plugins.client_credentials.plugin.AppOnlySecretResolver`
"""

from spauth.plugins.client_credentials.plugin import AppOnlySecretResolver

__all__ = ["AppOnlySecretResolver"]
