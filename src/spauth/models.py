"""Canonical Pydantic models shared across all spauth modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Credential descriptors** -- the tagged union a caller hands to the resolver
factory: :class:`AppOnlyClientSecret`, :class:`AppOnlyCertificate`,
:class:`DeviceCode`, :class:`InteractiveBrowser`, :class:`OnPremiseAddin`,
:class:`OnPremiseUserCredentials`, and :class:`CustomCredential`. They all
derive from :class:`CredentialDescriptor` and accept the camelCase keys used in
JSON configuration files as well as snake_case field names.

**Identity provider payloads** -- :class:`TokenResponse` and
:class:`DeviceCodeResponse`, validated from the JSON bodies returned by the
token and device-code endpoints.

**Configuration models** -- :class:`BrokerSettings` and the auth-method
registry entries :class:`AuthMethodConfig` / :class:`FieldConfig`.

Descriptor models use ``extra="allow"`` so that fields consumed by custom
resolvers are preserved in ``model_extra``.
"""

from __future__ import annotations

import enum
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AuthMethod(str, enum.Enum):
    """Explicit ``authMethod`` tags understood by the built-in resolvers."""

    DEVICE_CODE = "deviceCode"
    INTERACTIVE = "interactive"
    APP_ONLY = "appOnly"
    APP_ONLY_SECRET = "appOnlySecret"
    ON_PREMISE_ADDIN = "onPremiseAddin"
    ON_PREMISE_USER_CREDENTIALS = "onPremiseUserCredentials"


# --- Credential descriptors ---


class CredentialDescriptor(BaseModel):
    """Fields shared by every credential descriptor.

    ``auth_method`` is the explicit discriminator. ``device_flow`` is the
    deprecated boolean that older configuration files use to request the
    device-code flow; it only matters when ``auth_method`` is absent.
    """

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    auth_method: Optional[str] = Field(
        default=None, description="Explicit strategy tag, e.g. 'deviceCode'"
    )
    device_flow: Optional[bool] = Field(
        default=None, description="Legacy device-code flag"
    )


class AppOnlyClientSecret(CredentialDescriptor):
    """App-only access with a client secret (client-credentials grant)."""

    client_id: str
    tenant_id: str
    client_secret: str


class AppOnlyCertificate(CredentialDescriptor):
    """App-only access with a certificate-signed JWT assertion."""

    client_id: str
    tenant_id: str
    pfx_path: str = Field(
        validation_alias=AliasChoices("pfxPath", "pfxCertificatePath", "pfx_path"),
        description="Path to a PKCS#12 bundle or PEM private key",
    )
    cert_password: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "certPassword", "certificatePassword", "cert_password"
        ),
    )
    sha1_thumbprint: str = Field(
        validation_alias=AliasChoices(
            "sha1Thumbprint", "shaThumbprint", "sha1_thumbprint"
        ),
        description="Certificate thumbprint placed verbatim in the x5t header",
    )


class DeviceCode(CredentialDescriptor):
    """Delegated access through the OAuth2 device authorization grant."""

    client_id: str
    tenant_id: str
    client_secret: Optional[str] = None
    scopes: Optional[Union[list[str], str]] = Field(
        default=None, description="Extra scopes requested after the resource scope"
    )


class InteractiveBrowser(CredentialDescriptor):
    """Delegated access through the authorization-code grant with PKCE."""

    client_id: str
    tenant_id: str
    client_secret: Optional[str] = None
    redirect_port: Optional[int] = None
    redirect_uri: Optional[str] = Field(
        default=None, description="Full loopback redirect URI, e.g. http://localhost:5000"
    )
    scopes: Optional[Union[list[str], str]] = None


class OnPremiseAddin(CredentialDescriptor):
    """High-trust SharePoint add-in credentials for on-premise farms."""

    client_id: str
    realm: str
    issuer_id: str
    rsa_private_key_path: str = Field(
        validation_alias=AliasChoices(
            "rsaPrivateKeyPath", "rsaKeyPath", "rsa_private_key_path"
        ),
    )
    sha1_thumbprint: str = Field(
        validation_alias=AliasChoices(
            "sha1Thumbprint", "shaThumbprint", "sha1_thumbprint"
        ),
    )


class OnPremiseUserCredentials(CredentialDescriptor):
    """Windows user credentials for NTLM-protected on-premise farms."""

    username: str
    password: str
    domain: Optional[str] = None
    workstation: Optional[str] = None
    reject_unauthorized: Optional[bool] = None


class CustomCredential(CredentialDescriptor):
    """Open extension point handled by a registered resolver factory."""

    auth_method: str


# --- Identity provider payloads ---


class TokenResponse(BaseModel):
    """Successful response from the ``/token`` endpoint.

    ``expires_in`` falls back to 3599 seconds when the provider omits it.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 3599
    refresh_token: Optional[str] = None
    scope: Optional[str] = None


class DeviceCodeResponse(BaseModel):
    """Response from the ``/devicecode`` endpoint."""

    model_config = ConfigDict(extra="allow")

    device_code: str
    user_code: str
    verification_uri: str
    expires_in: int = 900
    interval: int = 5
    message: Optional[str] = None


# --- Configuration ---


class BrokerSettings(BaseModel):
    """Process-level knobs shared by all resolvers.

    Loaded from ``SPAUTH_*`` environment variables by
    :func:`spauth.config.load_settings`.
    """

    http_timeout: float = Field(default=30.0, gt=0)
    redirect_port: int = Field(default=5000, ge=1, le=65535)
    interactive_timeout: float = Field(default=300.0, gt=0)
    open_browser: bool = True
    verify_ssl: bool = True
    config_path: str = "./config/private.json"


class FieldConfig(BaseModel):
    """A single field an auth method needs in its descriptor."""

    key: str
    prompt: str
    secret: bool = False
    optional: bool = False
    aliases: list[str] = Field(
        default_factory=list, description="Other keys accepted in place of key"
    )

    def is_present(self, descriptor: dict) -> bool:
        return any(
            descriptor.get(name) not in (None, "") for name in (self.key, *self.aliases)
        )


class AuthMethodConfig(BaseModel):
    """An entry in the auth-method registry.

    Example::

        AuthMethodConfig(
            id="myCert",
            name="Certificate-Based",
            description="using X.509 certificate",
            required_fields=[FieldConfig(key="clientId", prompt="Client ID")],
        )
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: str
    name: str
    description: str = ""
    required_fields: list[FieldConfig] = Field(default_factory=list)

    def missing_fields(self, descriptor: dict) -> list[str]:
        """Return required, non-optional keys absent (or empty) in *descriptor*."""
        return [
            field.key
            for field in self.required_fields
            if not field.optional and not field.is_present(descriptor)
        ]
