"""App-only certificate resolver (client-credentials grant with a JWT-bearer assertion).

See Also:
    :class:`~spauth.plugins.certificate.plugin.AppOnlyCertificateResolver`
    :mod:`spauth.auth.signing` for key loading and RS256 signing.
"""

from spauth.plugins.certificate.plugin import AppOnlyCertificateResolver

__all__ = ["AppOnlyCertificateResolver"]
