from __future__ import annotations

from abc import ABC, abstractmethod

from stocksage.models import MarketSnapshot


class ProviderError(RuntimeError):
    """A provider could not produce a snapshot (transport, rate limit or parse failure)."""


class SnapshotProvider(ABC):
    name: str = "base"

    @abstractmethod
    def get_snapshot(self, symbol: str) -> MarketSnapshot:
        raise NotImplementedError
