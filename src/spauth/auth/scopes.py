from __future__ import annotations

from typing import Final, Iterable, Optional, Union

from spauth.auth.hosting import site_hostname

OFFLINE_ACCESS: Final[str] = "offline_access"
_SHAREPOINT_DOMAIN: Final[str] = ".sharepoint.com"


def tenant_root_host(site_url: str) -> str:
    """Return the tenant's root SharePoint host for *site_url*.

    Anything trailing ``.sharepoint.com`` in the hostname is dropped; hosts in
    other domains are returned as-is.
    """
    host = site_hostname(site_url)
    if _SHAREPOINT_DOMAIN in host:
        return host.split(_SHAREPOINT_DOMAIN)[0] + _SHAREPOINT_DOMAIN
    return host


def resource_scope(site_url: str) -> str:
    return f"https://{tenant_root_host(site_url)}/.default"


def build_scopes(
    site_url: str,
    extra_scopes: Optional[Union[str, Iterable[str]]] = None,
    include_offline_access: bool = True,
) -> str:
    """Build the space-separated OAuth scope string for *site_url*.

    Args:
        site_url: Absolute SharePoint site URL.
        extra_scopes: Caller-supplied scopes, as an iterable or a
            space-separated string.
        include_offline_access: Append ``offline_access`` so the provider
            issues a refresh token.

    Returns:
        The resource ``/.default`` scope, then ``offline_access``, then the
        extra scopes, without duplicates and in that order.

    Example::

        >>> build_scopes("https://contoso.sharepoint.com/sites/a")
        'https://contoso.sharepoint.com/.default offline_access'
    """
    scopes = [resource_scope(site_url)]
    if include_offline_access:
        scopes.append(OFFLINE_ACCESS)
    if isinstance(extra_scopes, str):
        extra_scopes = extra_scopes.split()
    if extra_scopes:
        scopes.extend(s.strip() for s in extra_scopes if s and s.strip())
    return " ".join(dict.fromkeys(scopes))
