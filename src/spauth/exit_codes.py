"""Numeric process exit codes used by the ``spauth`` command line.

Each constant maps to one failure category and is referenced by the
corresponding :class:`~spauth.exceptions.SpauthError` subclass. Wrapper
scripts can inspect the exit code to tell a bad configuration apart from a
rejected credential without parsing stderr.

Example::

    $ spauth header https://contoso.sharepoint.com --config private.json
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the identity provider rejected the request
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_CONFIG = 2
"""No resolver matched the credential descriptor or a required field is missing."""

EXIT_AUTH_FAILURE = 3
"""The identity provider returned an OAuth error."""

EXIT_TIMEOUT = 4
"""The device code expired or the interactive sign-in window elapsed."""

EXIT_CERTIFICATE_ERROR = 5
"""A certificate or private key could not be read, decrypted, or used for signing."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred while talking to the identity provider."""

EXIT_PLUGIN_ERROR = 10
"""A custom resolver or auth method could not be registered."""
