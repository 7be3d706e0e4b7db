"""Short-lived scan results owned by the caller.

Nothing here is global: the caller keeps the ``ScanCache`` value it got back,
passes it into the next call, and drops it when the underlying books change.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple

import config


@dataclass(frozen=True)
class ScanCache:
    data: Any
    timestamp: float

    def is_fresh(self, now: Optional[float] = None, ttl_seconds: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        ttl_seconds = config.SCAN_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        return now - self.timestamp < ttl_seconds


def cached_scan(
    cache: Optional[ScanCache],
    compute: Callable[[], Any],
    *,
    now: Optional[float] = None,
    ttl_seconds: Optional[float] = None,
) -> Tuple[Any, ScanCache]:
    """Return ``(data, cache)``, recomputing only when ``cache`` is missing or stale."""
    now = time.time() if now is None else now
    if cache is not None and cache.is_fresh(now, ttl_seconds):
        return cache.data, cache
    data = compute()
    return data, ScanCache(data=data, timestamp=now)


async def cached_scan_async(
    cache: Optional[ScanCache],
    compute: Callable[[], Awaitable[Any]],
    *,
    now: Optional[float] = None,
    ttl_seconds: Optional[float] = None,
) -> Tuple[Any, ScanCache]:
    now = time.time() if now is None else now
    if cache is not None and cache.is_fresh(now, ttl_seconds):
        return cache.data, cache
    data = await compute()
    return data, ScanCache(data=data, timestamp=now)
