"""In-memory TTL cache for access and refresh tokens.

Entries live for the lifetime of the process and are never written to disk.
Expiry is checked lazily: :meth:`TokenCache.get` treats an entry whose
deadline has passed as absent and drops it. There is no capacity bound, since
keys are limited to distinct site/credential combinations.

Keys are built with :func:`make_cache_key` as
``<resource-host>@<client-id>@<fingerprint>`` where the fingerprint is a
SHA-256 prefix of the client secret or certificate path, or a flow tag such
as ``device_code``. Refresh tokens use the same key plus a ``:refresh``
suffix.

See Also:
    :class:`TokenCacheRegistry` -- hands one shared cache per strategy to
    the resolvers built by :class:`~spauth.auth.factory.ResolverFactory`.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

EXPIRY_MARGIN = 300
"""Seconds subtracted from the provider's ``expires_in`` before caching."""

MIN_TTL = 60
"""Floor for the cached lifetime of an access token, in seconds."""

REFRESH_TOKEN_TTL = 90 * 24 * 60 * 60
"""Refresh tokens are kept for 90 days regardless of provider guidance."""

REFRESH_SUFFIX = ":refresh"


def compute_ttl(expires_in: int | float) -> int:
    """Return the cache lifetime for an access token.

    >>> compute_ttl(3600)
    3300
    >>> compute_ttl(120)
    60
    """
    return max(int(expires_in) - EXPIRY_MARGIN, MIN_TTL)


def fingerprint(secret: str) -> str:
    """Short, stable digest of a secret so the raw value never appears in a key."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()[:16]


def make_cache_key(host: str, client_id: str, tag: str, refresh: bool = False) -> str:
    """Compose a cache key for *host* / *client_id* / *tag*."""
    key = f"{host}@{client_id}@{tag}"
    return key + REFRESH_SUFFIX if refresh else key


@dataclass
class TokenCacheEntry:
    key: str
    value: str
    expires_at: float


class TokenCache:
    """TTL key/value store for tokens.

    Args:
        clock: Monotonic time source in seconds. Tests pass a fake clock to
            step past expiry without sleeping.

    Example::

        cache = TokenCache()
        cache.set("contoso.sharepoint.com@app@device_code", "eyJ0...", 3300)
        cache.get("contoso.sharepoint.com@app@device_code")
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, TokenCacheEntry] = {}

    def get(self, key: str) -> Optional[str]:
        """Return the cached value, or ``None`` if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            logger.debug("Cache entry expired: %s", key)
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: str, ttl: int | float) -> None:
        """Store *value* under *key* for *ttl* seconds, replacing any previous entry."""
        self._entries[key] = TokenCacheEntry(key, value, self._clock() + ttl)

    def remove(self, key: str) -> None:
        """Evict *key*. Missing keys are ignored."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)


class TokenCacheRegistry:
    """One shared :class:`TokenCache` per resolver strategy.

    Resolvers of the same strategy read and write the same cache and are
    isolated from each other only by key. The factory owns one registry for
    the whole process and passes ``registry.for_strategy(name)`` into every
    resolver it builds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._caches: dict[str, TokenCache] = {}

    def for_strategy(self, strategy: str) -> TokenCache:
        cache = self._caches.get(strategy)
        if cache is None:
            cache = self._caches[strategy] = TokenCache(clock=self._clock)
        return cache

    def clear(self) -> None:
        """Empty every strategy cache (e.g. after a credential rotation)."""
        for cache in self._caches.values():
            cache.clear()
