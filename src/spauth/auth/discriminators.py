"""Classification of untyped credential descriptors.

A descriptor is classified in two separate passes:

1. **Explicit tag** -- if ``authMethod`` is present it alone decides the
   type. Unknown tags become :class:`~spauth.models.CustomCredential`, which
   only a registered resolver factory can handle.
2. **Legacy heuristics** -- only when ``authMethod`` is absent. The
   classifiers in :data:`LEGACY_CLASSIFIERS` run in a fixed order and the
   first match wins, so overlapping shapes (a certificate descriptor also
   "has tenantId and no clientSecret") resolve the same way every time.

The two passes are never interleaved: a tagged descriptor is never
reinterpreted by a heuristic.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from spauth.exceptions import ConfigurationError
from spauth.models import (
    AppOnlyCertificate,
    AppOnlyClientSecret,
    AuthMethod,
    CredentialDescriptor,
    CustomCredential,
    DeviceCode,
    InteractiveBrowser,
    OnPremiseAddin,
    OnPremiseUserCredentials,
)

logger = logging.getLogger(__name__)

DescriptorInput = Union[Mapping[str, Any], CredentialDescriptor]

_PFX_KEYS = ("pfxPath", "pfxCertificatePath", "pfx_path")

_MODEL_TAGS: dict[type[CredentialDescriptor], AuthMethod] = {
    DeviceCode: AuthMethod.DEVICE_CODE,
    InteractiveBrowser: AuthMethod.INTERACTIVE,
    AppOnlyClientSecret: AuthMethod.APP_ONLY_SECRET,
    AppOnlyCertificate: AuthMethod.APP_ONLY,
    OnPremiseAddin: AuthMethod.ON_PREMISE_ADDIN,
    OnPremiseUserCredentials: AuthMethod.ON_PREMISE_USER_CREDENTIALS,
}


def as_mapping(descriptor: DescriptorInput) -> dict[str, Any]:
    """Return a fresh camelCase dict for *descriptor*; the input is never mutated.

    A typed built-in model without ``auth_method`` gets the tag of its own
    type, so it is never reinterpreted by the legacy heuristics.
    """
    if isinstance(descriptor, BaseModel):
        data = descriptor.model_dump(by_alias=True, exclude_none=True)
        tag = _MODEL_TAGS.get(type(descriptor))
        if tag is not None:
            data.setdefault("authMethod", tag.value)
        return data
    if not isinstance(descriptor, Mapping):
        raise ConfigurationError(
            f"Credential descriptor must be a mapping, got {type(descriptor).__name__}"
        )
    return dict(descriptor)


def _value(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _has(data: Mapping[str, Any], *keys: str) -> bool:
    return _value(data, *keys) is not None


def _auth_method(data: Mapping[str, Any]) -> Optional[str]:
    tag = _value(data, "authMethod", "auth_method")
    return str(tag) if tag is not None else None


def _device_flow(data: Mapping[str, Any]) -> bool:
    return _value(data, "deviceFlow", "device_flow") is True


def has_certificate(data: Mapping[str, Any]) -> bool:
    """Whether *data* names a ``.pfx`` certificate under any accepted key."""
    return _has(data, *_PFX_KEYS)


def method_id(data: Mapping[str, Any]) -> Optional[str]:
    """The auth-method id whose required fields apply to *data*.

    Usually the ``authMethod`` tag itself. ``appOnly`` without certificate
    fields is classified as the client-secret shape, so it maps to
    ``appOnlySecret``.
    """
    tag = _auth_method(data)
    if tag == AuthMethod.APP_ONLY.value and not has_certificate(data):
        return AuthMethod.APP_ONLY_SECRET.value
    return tag


# --- Pass 1: explicit tag ---


def classify_explicit(data: Mapping[str, Any]) -> Optional[type[CredentialDescriptor]]:
    """Map an ``authMethod`` tag to its descriptor type, or ``None`` if untagged."""
    tag = _auth_method(data)
    if tag is None:
        return None
    if tag == AuthMethod.DEVICE_CODE.value:
        return DeviceCode
    if tag == AuthMethod.INTERACTIVE.value:
        return InteractiveBrowser
    if tag == AuthMethod.APP_ONLY.value:
        # "appOnly" covers both app-only shapes; the certificate path decides.
        return AppOnlyCertificate if has_certificate(data) else AppOnlyClientSecret
    if tag == AuthMethod.APP_ONLY_SECRET.value:
        return AppOnlyClientSecret
    if tag == AuthMethod.ON_PREMISE_ADDIN.value:
        return OnPremiseAddin
    if tag == AuthMethod.ON_PREMISE_USER_CREDENTIALS.value:
        return OnPremiseUserCredentials
    return CustomCredential


# --- Pass 2: legacy heuristics ---


def is_legacy_device_code(data: Mapping[str, Any]) -> bool:
    return _device_flow(data)


def is_legacy_interactive(data: Mapping[str, Any]) -> bool:
    return (
        _has(data, "tenantId", "tenant_id")
        and not _has(data, "clientSecret", "client_secret")
        and not has_certificate(data)
        and not _device_flow(data)
    )


def is_legacy_app_only_secret(data: Mapping[str, Any]) -> bool:
    return _has(data, "clientSecret", "client_secret") and not _device_flow(data)


def is_legacy_app_only_certificate(data: Mapping[str, Any]) -> bool:
    return has_certificate(data) and _has(data, "tenantId", "tenant_id")


def is_legacy_addin(data: Mapping[str, Any]) -> bool:
    return _has(data, "realm") and _has(data, "issuerId", "issuer_id")


def is_legacy_user_credentials(data: Mapping[str, Any]) -> bool:
    return _has(data, "username") and _has(data, "password")


LEGACY_CLASSIFIERS: tuple[tuple[Callable[[Mapping[str, Any]], bool], type[CredentialDescriptor]], ...] = (
    (is_legacy_device_code, DeviceCode),
    (is_legacy_interactive, InteractiveBrowser),
    (is_legacy_app_only_secret, AppOnlyClientSecret),
    (is_legacy_app_only_certificate, AppOnlyCertificate),
    (is_legacy_addin, OnPremiseAddin),
    (is_legacy_user_credentials, OnPremiseUserCredentials),
)
"""Heuristic classifiers in priority order; first match wins."""


def classify_legacy(data: Mapping[str, Any]) -> Optional[type[CredentialDescriptor]]:
    for predicate, model in LEGACY_CLASSIFIERS:
        if predicate(data):
            return model
    return None


# --- Entry point ---


def classify(descriptor: DescriptorInput) -> CredentialDescriptor:
    """Classify *descriptor* and validate it into its typed model.

    Args:
        descriptor: A plain mapping (camelCase or snake_case keys) or an
            already-typed descriptor model.

    Returns:
        An instance of the matching :class:`~spauth.models.CredentialDescriptor`
        subclass.

    Raises:
        ConfigurationError: If no classifier matches, or the descriptor is
            missing fields its type requires.
    """
    data = as_mapping(descriptor)
    model = classify_explicit(data)
    if model is None:
        model = classify_legacy(data)
        if model is None:
            raise ConfigurationError(
                "Cannot determine the authentication method; set 'authMethod' "
                "in the credential descriptor"
            )
        logger.debug("Descriptor classified by legacy heuristics as %s", model.__name__)

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid {model.__name__} descriptor: {_describe(exc)}"
        ) from exc


def _describe(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"])
        problems.append(f"{location} ({err['msg']})")
    return "; ".join(problems)
