"""Tests for SnapshotService caching and fallback, and DataConfig."""

from __future__ import annotations

import random

import pytest

from stocksage.config import DataConfig, FallbackPolicy, ProviderCredentials
from stocksage.models import MarketSnapshot
from stocksage.providers.base import ProviderError, SnapshotProvider
from stocksage.providers.mock_provider import DemoSnapshotProvider
from stocksage.providers.service import SnapshotService, SnapshotUnavailableError, normalize_symbol


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class CountingProvider(SnapshotProvider):
    name = "counting"

    def __init__(self, snapshot_factory) -> None:
        self.calls: list[str] = []
        self.make = snapshot_factory

    def get_snapshot(self, symbol: str) -> MarketSnapshot:
        self.calls.append(symbol)
        return self.make(symbol=symbol, source=self.name)


class FailingProvider(SnapshotProvider):
    name = "failing"

    def get_snapshot(self, symbol: str) -> MarketSnapshot:
        raise ProviderError("API limit reached")


class TestCache:
    def test_same_bucket_hits_cache(self, snapshot_factory):
        provider = CountingProvider(snapshot_factory)
        clock = FakeClock(1_700_000_010.0)
        service = SnapshotService(DataConfig(), provider=provider, clock=clock)

        first = service.get_snapshot("AAPL")
        clock.now += 20
        second = service.get_snapshot("AAPL")

        assert first is second
        assert provider.calls == ["AAPL"]

    def test_next_bucket_refetches_and_prunes(self, snapshot_factory):
        provider = CountingProvider(snapshot_factory)
        clock = FakeClock(1_700_000_010.0)
        service = SnapshotService(DataConfig(cache_ttl_seconds=60), provider=provider, clock=clock)

        service.get_snapshot("AAPL")
        service.get_snapshot("MSFT")
        assert service.cache_size == 2

        clock.now += 60
        service.get_snapshot("AAPL")
        assert provider.calls == ["AAPL", "MSFT", "AAPL"]
        assert service.cache_size == 1

    def test_bucket_boundary_is_aligned_to_ttl(self, snapshot_factory):
        provider = CountingProvider(snapshot_factory)
        clock = FakeClock(1_699_999_979.0)  # 1s before a 60s boundary
        service = SnapshotService(DataConfig(), provider=provider, clock=clock)

        service.get_snapshot("AAPL")
        clock.now += 2
        service.get_snapshot("AAPL")
        assert len(provider.calls) == 2

    def test_symbol_is_normalized(self, snapshot_factory):
        provider = CountingProvider(snapshot_factory)
        service = SnapshotService(DataConfig(), provider=provider, clock=FakeClock())
        service.get_snapshot("  aapl ")
        service.get_snapshot("AAPL")
        assert provider.calls == ["AAPL"]

    def test_clear_cache(self, snapshot_factory):
        provider = CountingProvider(snapshot_factory)
        service = SnapshotService(DataConfig(), provider=provider, clock=FakeClock())
        service.get_snapshot("AAPL")
        service.clear_cache()
        service.get_snapshot("AAPL")
        assert len(provider.calls) == 2

    @pytest.mark.parametrize("symbol", ["", "   "])
    def test_empty_symbol_rejected(self, symbol):
        with pytest.raises(ValueError):
            normalize_symbol(symbol)


class TestFallback:
    def test_failure_returns_synthetic_snapshot(self):
        service = SnapshotService(
            DataConfig(),
            provider=FailingProvider(),
            fallback_provider=DemoSnapshotProvider(rng=random.Random(0)),
            clock=FakeClock(),
        )
        snap = service.get_snapshot("tsla")
        assert snap.symbol == "TSLA"
        assert snap.is_synthetic is True
        assert snap.source == "demo"

    def test_fallback_is_cached(self):
        fallback = DemoSnapshotProvider(rng=random.Random(0))
        service = SnapshotService(DataConfig(), provider=FailingProvider(), fallback_provider=fallback, clock=FakeClock())
        assert service.get_snapshot("TSLA") is service.get_snapshot("TSLA")

    def test_fallback_marks_non_synthetic_result(self, snapshot_factory):
        service = SnapshotService(
            DataConfig(),
            provider=FailingProvider(),
            fallback_provider=CountingProvider(snapshot_factory),
            clock=FakeClock(),
        )
        assert service.get_snapshot("TSLA").is_synthetic is True

    def test_raise_policy(self):
        service = SnapshotService(
            DataConfig(fallback=FallbackPolicy.RAISE),
            provider=FailingProvider(),
            clock=FakeClock(),
        )
        with pytest.raises(SnapshotUnavailableError) as exc:
            service.get_snapshot("TSLA")
        assert isinstance(exc.value.__cause__, ProviderError)

    def test_unexpected_exception_also_falls_back(self):
        class Broken(SnapshotProvider):
            name = "broken"

            def get_snapshot(self, symbol):
                raise KeyError("05. price")

        service = SnapshotService(DataConfig(), provider=Broken(), clock=FakeClock())
        assert service.get_snapshot("AAPL").is_synthetic is True


class TestDataConfig:
    def test_defaults(self):
        cfg = DataConfig()
        assert cfg.provider == "demo"
        assert cfg.cache_ttl_seconds == 60
        assert cfg.fallback is FallbackPolicy.SYNTHETIC

    def test_invalid_provider(self):
        with pytest.raises(ValueError):
            DataConfig(provider="bloomberg")

    def test_invalid_ttl(self):
        with pytest.raises(ValueError):
            DataConfig(cache_ttl_seconds=0)

    def test_fallback_from_string(self):
        assert DataConfig(fallback="raise").fallback is FallbackPolicy.RAISE

    def test_from_env(self):
        cfg = DataConfig.from_env(
            {
                "STOCKSAGE_PROVIDER": "AlphaVantage",
                "ALPHA_VANTAGE_API_KEY": "abc",
                "STOCKSAGE_CACHE_TTL": "30",
                "STOCKSAGE_FALLBACK": "RAISE",
            }
        )
        assert cfg.provider == "alphavantage"
        assert cfg.credentials.alpha_vantage_api_key == "abc"
        assert cfg.credentials.has_alpha_vantage
        assert cfg.cache_ttl_seconds == 30
        assert cfg.fallback is FallbackPolicy.RAISE

    def test_from_env_empty(self):
        cfg = DataConfig.from_env({})
        assert cfg.provider == "demo"
        assert cfg.credentials.alpha_vantage_api_key is None

    @pytest.mark.parametrize(
        "env",
        [{"STOCKSAGE_CACHE_TTL": "soon"}, {"STOCKSAGE_FALLBACK": "retry"}, {"STOCKSAGE_PROVIDER": "x"}],
    )
    def test_from_env_invalid(self, env):
        with pytest.raises(ValueError):
            DataConfig.from_env(env)

    def test_demo_key_counts_as_absent(self):
        assert not ProviderCredentials(alpha_vantage_api_key="demo").has_alpha_vantage
        assert not ProviderCredentials(alpha_vantage_api_key="  ").has_alpha_vantage

    @pytest.mark.parametrize("ttl", [0.0004, 0.0, float("nan"), float("inf")])
    def test_ttl_below_one_millisecond_rejected(self, ttl):
        with pytest.raises(ValueError):
            DataConfig(cache_ttl_seconds=ttl)

    def test_from_env_ttl_below_one_millisecond(self):
        with pytest.raises(ValueError):
            DataConfig.from_env({"STOCKSAGE_CACHE_TTL": "0.0004"})

    def test_one_millisecond_ttl_fetches(self, snapshot_factory):
        provider = CountingProvider(snapshot_factory)
        clock = FakeClock(1.7e9)
        service = SnapshotService(DataConfig(cache_ttl_seconds=0.001), provider=provider, clock=clock)
        assert service.get_snapshot("AAPL").symbol == "AAPL"
        clock.now += 0.002
        service.get_snapshot("AAPL")
        assert provider.calls == ["AAPL", "AAPL"]
