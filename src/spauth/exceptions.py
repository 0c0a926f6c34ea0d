"""Exception hierarchy for spauth.

All exceptions inherit from :class:`SpauthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`spauth.exit_codes`.
The command line entry point in :func:`spauth.app.main` catches
``SpauthError`` and exits with the matching code. Library callers (the proxy
layer) catch the specific subclasses they care about.

Subclass hierarchy::

    SpauthError (exit 1)
    +-- ConfigurationError  (exit 2)
    +-- ProviderError       (exit 3)
    +-- AuthTimeoutError    (exit 4)
    +-- CertificateError    (exit 5)
    +-- NetworkError        (exit 6)
    +-- PluginError         (exit 10)
"""

from __future__ import annotations

from spauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CERTIFICATE_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_CONFIG,
    EXIT_PLUGIN_ERROR,
    EXIT_TIMEOUT,
)

TRANSIENT_PROVIDER_ERRORS = frozenset({"authorization_pending", "slow_down"})
"""OAuth error codes that mean "try again later" rather than "give up"."""


class SpauthError(Exception):
    """Base exception for all spauth errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`spauth.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(SpauthError):
    """Raised when no resolver matches a descriptor or a required field is missing."""

    exit_code = EXIT_INVALID_CONFIG


class ProviderError(SpauthError):
    """Raised when the identity provider answers with an OAuth ``error`` field.

    Args:
        error: The OAuth error code (e.g. ``"invalid_grant"``).
        description: The provider's ``error_description``, if any.
        status_code: HTTP status of the provider response, if known.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(
        self,
        error: str,
        description: str | None = None,
        status_code: int | None = None,
    ):
        message = f"Identity provider returned '{error}'"
        if description:
            message += f": {description}"
        super().__init__(message)
        self.error = error
        self.description = description
        self.status_code = status_code

    @property
    def is_transient(self) -> bool:
        """``True`` for errors the device-code poll loop retries by design."""
        return self.error in TRANSIENT_PROVIDER_ERRORS


class AuthTimeoutError(SpauthError):
    """Raised when a device code expires or the interactive sign-in window elapses.

    Not named ``TimeoutError`` to avoid shadowing the built-in.
    """

    exit_code = EXIT_TIMEOUT


class CertificateError(SpauthError):
    """Raised for unreadable or undecryptable certificates and signing failures.

    The underlying I/O or crypto exception is chained as ``__cause__``.
    """

    exit_code = EXIT_CERTIFICATE_ERROR


class NetworkError(SpauthError):
    """Raised on transport failures reaching the identity provider (DNS, refused, timeout)."""

    exit_code = EXIT_CONNECTION_ERROR


class PluginError(SpauthError):
    """Raised when a custom resolver factory or auth method cannot be registered."""

    exit_code = EXIT_PLUGIN_ERROR
