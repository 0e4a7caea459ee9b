"""
Shared pytest fixtures for the StockSage test suite.

Provides:
  - ``snapshot_factory``: builds a ``MarketSnapshot`` from a strongly bullish,
    high-quality baseline; keyword arguments override single fields.
  - ``isolated_db``: points ``stocksage.storage`` at a fresh SQLite file.
  - ``clean_env``: removes StockSage environment variables.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import pytest

from stocksage import storage
from stocksage.models import MarketSnapshot

BASELINE = dict(
    symbol="TEST",
    company_name="Test Corporation",
    price=100.0,
    change=1.0,
    change_percent=1.0,
    volume=1_000_000,
    sma20=99.0,
    sma50=95.0,
    sma200=90.0,
    rsi=50.0,
    macd=1.0,
    atr=3.0,
    pe=10.0,
    eps=5.0,
    dividend_yield=2.0,
    roe=22.0,
    roa=8.0,
    debt_to_equity=0.5,
    book_value=30.0,
    market_cap="50B",
    beta=1.0,
    source="test",
    is_synthetic=False,
    timestamp=datetime(2024, 1, 8, 15, 0, tzinfo=timezone.utc),
)


@pytest.fixture
def snapshot_factory() -> Callable[..., MarketSnapshot]:
    def make(**overrides: object) -> MarketSnapshot:
        fields = {**BASELINE, **overrides}
        return MarketSnapshot(**fields)

    return make


@pytest.fixture
def isolated_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    db = tmp_path / "stocksage.db"
    monkeypatch.setattr(storage, "DB_PATH", db)
    storage.init_storage()
    return db


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "STOCKSAGE_PROVIDER",
        "STOCKSAGE_CACHE_TTL",
        "STOCKSAGE_FALLBACK",
        "ALPHA_VANTAGE_API_KEY",
        "FMP_API_KEY",
        "IEX_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
