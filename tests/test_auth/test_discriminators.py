"""Tests for credential descriptor classification.

Covers:
- Explicit ``authMethod`` tags, including the dual-shape ``appOnly`` tag
- Legacy heuristics and their priority order
- Typed descriptor input
- Validation failures surfacing as ConfigurationError
"""

from __future__ import annotations

import pytest

from spauth.auth.discriminators import (
    LEGACY_CLASSIFIERS,
    as_mapping,
    classify,
    classify_explicit,
    classify_legacy,
)
from spauth.exceptions import ConfigurationError
from spauth.models import (
    AppOnlyCertificate,
    AppOnlyClientSecret,
    CustomCredential,
    DeviceCode,
    InteractiveBrowser,
    OnPremiseAddin,
    OnPremiseUserCredentials,
)


ONLINE = {"clientId": "app-id", "tenantId": "tenant-id"}


# ------------------------------------------------------------------ #
# Explicit tags
# ------------------------------------------------------------------ #


class TestExplicitTag:
    @pytest.mark.parametrize(
        ("descriptor", "expected"),
        [
            ({"authMethod": "deviceCode", **ONLINE}, DeviceCode),
            ({"authMethod": "interactive", **ONLINE}, InteractiveBrowser),
            ({"authMethod": "appOnlySecret", "clientSecret": "s", **ONLINE}, AppOnlyClientSecret),
            (
                {"authMethod": "onPremiseAddin", "clientId": "c", "realm": "r",
                 "issuerId": "i", "rsaPrivateKeyPath": "k.pem", "shaThumbprint": "t"},
                OnPremiseAddin,
            ),
            (
                {"authMethod": "onPremiseUserCredentials", "username": "u", "password": "p"},
                OnPremiseUserCredentials,
            ),
        ],
    )
    def test_tag_selects_type(self, descriptor, expected) -> None:
        assert type(classify(descriptor)) is expected

    def test_tag_wins_over_heuristics(self) -> None:
        """A secret would make this app-only under the heuristics."""
        result = classify({"authMethod": "deviceCode", "clientSecret": "s", **ONLINE})
        assert isinstance(result, DeviceCode)
        assert result.client_secret == "s"

    def test_app_only_with_certificate(self) -> None:
        result = classify(
            {"authMethod": "appOnly", "pfxCertificatePath": "c.pfx",
             "shaThumbprint": "AB12", **ONLINE}
        )
        assert isinstance(result, AppOnlyCertificate)
        assert result.pfx_path == "c.pfx"
        assert result.sha1_thumbprint == "AB12"

    def test_app_only_with_secret(self) -> None:
        result = classify({"authMethod": "appOnly", "clientSecret": "s", **ONLINE})
        assert isinstance(result, AppOnlyClientSecret)

    def test_unknown_tag_is_custom(self) -> None:
        result = classify({"authMethod": "myCert", "thumb": "x"})
        assert isinstance(result, CustomCredential)
        assert result.auth_method == "myCert"
        assert result.model_extra == {"thumb": "x"}

    def test_untagged_returns_none(self) -> None:
        assert classify_explicit(ONLINE) is None


# ------------------------------------------------------------------ #
# Legacy heuristics
# ------------------------------------------------------------------ #


class TestLegacyHeuristics:
    def test_device_flow_flag(self) -> None:
        assert classify_legacy({"deviceFlow": True, **ONLINE}) is DeviceCode

    def test_device_flow_beats_client_secret(self) -> None:
        assert classify_legacy({"deviceFlow": True, "clientSecret": "s", **ONLINE}) is DeviceCode

    def test_device_flow_false_is_ignored(self) -> None:
        assert classify_legacy({"deviceFlow": False, **ONLINE}) is InteractiveBrowser

    def test_tenant_without_secret_is_interactive(self) -> None:
        assert classify_legacy(ONLINE) is InteractiveBrowser

    def test_secret_is_app_only(self) -> None:
        assert classify_legacy({"clientSecret": "s", **ONLINE}) is AppOnlyClientSecret

    def test_certificate_is_not_interactive(self) -> None:
        descriptor = {"pfxPath": "c.pfx", "sha1Thumbprint": "t", **ONLINE}
        assert classify_legacy(descriptor) is AppOnlyCertificate

    def test_addin(self) -> None:
        descriptor = {"clientId": "c", "realm": "r", "issuerId": "i"}
        assert classify_legacy(descriptor) is OnPremiseAddin

    def test_user_credentials(self) -> None:
        assert classify_legacy({"username": "u", "password": "p"}) is OnPremiseUserCredentials

    def test_no_match(self) -> None:
        assert classify_legacy({"clientId": "c"}) is None

    def test_order_is_fixed(self) -> None:
        models = [model for _, model in LEGACY_CLASSIFIERS]
        assert models[:2] == [DeviceCode, InteractiveBrowser]

    def test_unclassifiable_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="authMethod"):
            classify({"clientId": "c"})


# ------------------------------------------------------------------ #
# Input handling and validation
# ------------------------------------------------------------------ #


class TestClassifyInput:
    def test_snake_case_keys(self) -> None:
        result = classify({"client_id": "a", "tenant_id": "t", "client_secret": "s"})
        assert isinstance(result, AppOnlyClientSecret)
        assert result.client_id == "a"

    def test_typed_descriptor_keeps_its_type(self) -> None:
        typed = DeviceCode(client_id="a", tenant_id="t")
        assert isinstance(classify(typed), DeviceCode)

    def test_as_mapping_does_not_mutate(self) -> None:
        original = {"clientId": "a"}
        copy = as_mapping(original)
        copy["extra"] = 1
        assert original == {"clientId": "a"}

    def test_as_mapping_rejects_non_mapping(self) -> None:
        with pytest.raises(ConfigurationError, match="mapping"):
            as_mapping(["clientId"])  # type: ignore[arg-type]

    def test_missing_required_field(self) -> None:
        with pytest.raises(ConfigurationError, match="tenantId"):
            classify({"authMethod": "deviceCode", "clientId": "a"})

    def test_extra_fields_preserved(self) -> None:
        result = classify({"custom": 1, **ONLINE})
        assert result.model_extra == {"custom": 1}
