"""Process-wide token caching for spauth.

This package provides :class:`TokenCache`, a lazily-expiring in-memory store
for access and refresh tokens, :class:`TokenCacheRegistry`, which hands out
one shared cache per resolver strategy, and :func:`compute_ttl`, the
access-token lifetime policy (provider ``expires_in`` minus five minutes,
floored at sixty seconds).
"""

from spauth.cache.token_cache import (
    REFRESH_TOKEN_TTL,
    TokenCache,
    TokenCacheRegistry,
    compute_ttl,
    fingerprint,
    make_cache_key,
)

__all__ = [
    "REFRESH_TOKEN_TTL",
    "TokenCache",
    "TokenCacheRegistry",
    "compute_ttl",
    "fingerprint",
    "make_cache_key",
]
