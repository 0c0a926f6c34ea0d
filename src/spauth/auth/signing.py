"""Private-key loading and RS256 JWT signing.

Used by the certificate client-assertion flow and by the on-premise high-trust
add-in flow. Keys are loaded with :mod:`cryptography`; tokens are signed with
PyJWT. Every failure surfaces as :class:`~spauth.exceptions.CertificateError`
with the underlying I/O or crypto exception chained.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.serialization import pkcs12

from spauth.exceptions import CertificateError

_PEM_MARKER = b"-----BEGIN"


def load_private_key(path: str | Path, password: Optional[str] = None) -> RSAPrivateKey:
    """Load an RSA private key from a PKCS#12 bundle or a PEM file.

    The format is sniffed from the file content: anything starting with a PEM
    armour line is read as PEM, everything else as PKCS#12 (``.pfx``).

    Args:
        path: Path to the key material; ``~`` is expanded.
        password: Passphrase protecting the bundle or key, if any.

    Raises:
        CertificateError: If the file cannot be read, the password is wrong,
            the bundle holds no private key, or the key is not RSA.
    """
    key_path = Path(path).expanduser()
    try:
        data = key_path.read_bytes()
    except OSError as exc:
        raise CertificateError(f"Cannot read certificate file {key_path}: {exc}") from exc

    secret = password.encode("utf-8") if password else None
    try:
        if data.lstrip().startswith(_PEM_MARKER):
            key = serialization.load_pem_private_key(data, password=secret)
        else:
            key, _cert, _chain = pkcs12.load_key_and_certificates(data, secret)
    except (ValueError, TypeError) as exc:
        raise CertificateError(
            f"Cannot decrypt or parse certificate {key_path}: {exc}"
        ) from exc

    if key is None:
        raise CertificateError(f"Certificate bundle {key_path} does not contain a private key")
    if not isinstance(key, RSAPrivateKey):
        raise CertificateError(
            f"Certificate {key_path} holds a {type(key).__name__}; RS256 needs an RSA key"
        )
    return key


def sign_rs256(
    payload: dict[str, Any],
    key: RSAPrivateKey,
    headers: Optional[dict[str, Any]] = None,
) -> str:
    """Sign *payload* as an RS256 JWT.

    PyJWT fills in ``alg`` and ``typ``; *headers* adds the rest (``x5t``).

    Raises:
        CertificateError: If signing fails.
    """
    try:
        return jwt.encode(
            payload,
            key,
            algorithm="RS256",
            headers={"typ": "JWT", **(headers or {})},
        )
    except (jwt.PyJWTError, ValueError, TypeError) as exc:
        raise CertificateError(f"Failed to sign JWT assertion: {exc}") from exc
