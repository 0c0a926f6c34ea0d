"""Sovereign-cloud detection and identity-provider authority lookup.

The hosting environment is inferred from the SharePoint site's domain suffix
and mapped to a Microsoft identity platform authority host through a static
table. No discovery documents are fetched.
"""

from __future__ import annotations

import enum
from typing import Final
from urllib.parse import urlparse

from spauth.exceptions import ConfigurationError


class HostingEnvironment(str, enum.Enum):
    PRODUCTION = "Production"
    CHINA = "China"
    GERMANY = "Germany"
    US_GOVERNMENT = "USGovernment"
    US_DEFENSE = "USDefense"


AUTHORITY_HOSTS: Final[dict[HostingEnvironment, str]] = {
    HostingEnvironment.PRODUCTION: "login.microsoftonline.com",
    HostingEnvironment.CHINA: "login.chinacloudapi.cn",
    HostingEnvironment.GERMANY: "login.microsoftonline.de",
    HostingEnvironment.US_GOVERNMENT: "login.microsoftonline.us",
    HostingEnvironment.US_DEFENSE: "login.microsoftonline.us",
}

_SUFFIXES: Final[tuple[tuple[str, HostingEnvironment], ...]] = (
    (".sharepoint.cn", HostingEnvironment.CHINA),
    (".sharepoint.de", HostingEnvironment.GERMANY),
    (".sharepoint.us", HostingEnvironment.US_GOVERNMENT),
    (".dps.mil", HostingEnvironment.US_DEFENSE),
)


def site_hostname(site_url: str) -> str:
    """Return the lower-cased hostname of *site_url*.

    Raises:
        ConfigurationError: If ``site_url`` is not absolute or lacks a host.
    """
    parsed = urlparse(site_url)
    if not parsed.scheme or not parsed.hostname:
        raise ConfigurationError(f"Site URL must be absolute, got '{site_url}'")
    return parsed.hostname.lower()


def resolve_hosting_environment(site_url: str) -> HostingEnvironment:
    """Classify *site_url* by domain suffix; unknown domains are Production."""
    host = site_hostname(site_url)
    for suffix, environment in _SUFFIXES:
        if host.endswith(suffix):
            return environment
    return HostingEnvironment.PRODUCTION


def resolve_authority_host(site_url: str) -> str:
    """Return the authority hostname (no scheme) used to sign in to *site_url*."""
    return AUTHORITY_HOSTS[resolve_hosting_environment(site_url)]
