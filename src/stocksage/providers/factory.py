from __future__ import annotations

import logging

from stocksage.config import DataConfig
from stocksage.providers.alphavantage_provider import AlphaVantageSnapshotProvider
from stocksage.providers.base import SnapshotProvider
from stocksage.providers.mock_provider import DemoSnapshotProvider
from stocksage.providers.yfinance_provider import YFinanceSnapshotProvider

logger = logging.getLogger(__name__)


def build_snapshot_provider(config: DataConfig) -> SnapshotProvider:
    mode = config.provider.strip().lower()
    if mode == "demo":
        return DemoSnapshotProvider()
    if mode == "alphavantage":
        if not config.credentials.has_alpha_vantage:
            logger.info("no Alpha Vantage API key configured; using demo data")
            return DemoSnapshotProvider()
        return AlphaVantageSnapshotProvider(
            api_key=str(config.credentials.alpha_vantage_api_key),
            timeout=config.request_timeout_seconds,
        )
    if mode == "yfinance":
        return YFinanceSnapshotProvider()
    raise ValueError(f"unsupported snapshot provider: {config.provider}")
