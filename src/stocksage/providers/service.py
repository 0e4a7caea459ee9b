from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable

from stocksage.config import DataConfig, FallbackPolicy
from stocksage.models import MarketSnapshot
from stocksage.providers.base import SnapshotProvider
from stocksage.providers.factory import build_snapshot_provider
from stocksage.providers.mock_provider import DemoSnapshotProvider

logger = logging.getLogger(__name__)


class SnapshotUnavailableError(RuntimeError):
    """Raised only under ``FallbackPolicy.RAISE`` when the provider fails."""


def normalize_symbol(symbol: str) -> str:
    out = (symbol or "").strip().upper()
    if not out:
        raise ValueError("symbol must not be empty")
    return out


class SnapshotService:
    """Fetch snapshots with time-bucketed caching and synthetic fallback.

    Cache keys are ``"<SYMBOL>_<bucket>"`` where the bucket is the current time
    in milliseconds rounded down to the TTL, so every symbol is fetched at most
    once per bucket. Under the default ``SYNTHETIC`` policy a provider failure
    never reaches the caller: a demo snapshot is returned instead.
    Not thread-safe.
    """

    def __init__(
        self,
        config: DataConfig | None = None,
        provider: SnapshotProvider | None = None,
        fallback_provider: SnapshotProvider | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or DataConfig()
        self.provider = provider or build_snapshot_provider(self.config)
        self.fallback_provider = fallback_provider or DemoSnapshotProvider()
        self.clock = clock
        self._cache: dict[str, MarketSnapshot] = {}
        self._ttl_ms = max(1, int(self.config.cache_ttl_seconds * 1000))

    def _bucket(self) -> int:
        now_ms = int(self.clock() * 1000)
        return now_ms - now_ms % self._ttl_ms

    def _store(self, key: str, bucket: int, snapshot: MarketSnapshot) -> None:
        suffix = f"_{bucket}"
        stale = [k for k in self._cache if not k.endswith(suffix)]
        for k in stale:
            del self._cache[k]
        self._cache[key] = snapshot

    def get_snapshot(self, symbol: str) -> MarketSnapshot:
        symbol = normalize_symbol(symbol)
        bucket = self._bucket()
        key = f"{symbol}_{bucket}"

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("cache hit: %s", key)
            return cached

        try:
            snapshot = self.provider.get_snapshot(symbol)
        except Exception as e:
            if self.config.fallback is FallbackPolicy.RAISE:
                raise SnapshotUnavailableError(
                    f"{type(self.provider).__name__} failed for {symbol}: {e}"
                ) from e
            logger.warning(
                "%s failed for %s (%s: %s); using demo data",
                type(self.provider).__name__,
                symbol,
                type(e).__name__,
                e,
            )
            snapshot = self.fallback_provider.get_snapshot(symbol)
            if not snapshot.is_synthetic:
                snapshot = replace(snapshot, is_synthetic=True)

        self._store(key, bucket, snapshot)
        return snapshot

    def clear_cache(self) -> None:
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._cache)
