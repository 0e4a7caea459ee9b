from __future__ import annotations

import logging
import random

import httpx

from stocksage.models import MarketSnapshot
from stocksage.providers.base import ProviderError, SnapshotProvider
from stocksage.providers.mock_provider import (
    company_name,
    hashed_rsi,
    price_scaled_atr,
    market_cap_label,
    synthetic_fundamentals,
    synthetic_indicators,
)

logger = logging.getLogger(__name__)


def _parse_float(raw: object, field_name: str) -> float:
    try:
        return float(str(raw).strip().rstrip("%"))
    except (TypeError, ValueError) as e:
        raise ProviderError(f"Alpha Vantage field {field_name!r} is not numeric: {raw!r}") from e


class AlphaVantageSnapshotProvider(SnapshotProvider):
    """Quote data from Alpha Vantage ``GLOBAL_QUOTE``.

    The quote endpoint carries price, change and volume only. Indicator and
    fundamental fields are filled with synthetic values; RSI is derived from
    the price so the same quote always yields the same RSI.
    """

    name = "alphavantage"
    BASE_URL = "https://www.alphavantage.co/query"

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.client = client
        self.rng = rng or random.Random()

    def _fetch_quote(self, symbol: str) -> dict:
        params = {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.api_key}
        try:
            if self.client is not None:
                response = self.client.get(self.BASE_URL, params=params, timeout=self.timeout)
            else:
                response = httpx.get(self.BASE_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error("Alpha Vantage HTTP error for %s: %s", symbol, e)
            raise ProviderError(f"Alpha Vantage API error: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Alpha Vantage returned invalid JSON: {e}") from e

        logger.debug("[GLOBAL_QUOTE] %s: %s", symbol, data)
        if not isinstance(data, dict):
            raise ProviderError("Invalid response from Alpha Vantage")
        if data.get("Error Message"):
            raise ProviderError(f"Alpha Vantage API error: {data['Error Message']}")
        if data.get("Note") or data.get("Information"):
            raise ProviderError("Alpha Vantage API limit reached")
        return data

    def parse_quote(self, data: dict) -> MarketSnapshot:
        quote = data.get("Global Quote")
        if not quote:
            raise ProviderError("Invalid response from Alpha Vantage")

        symbol = str(quote.get("01. symbol", "")).strip().upper()
        if not symbol:
            raise ProviderError("Alpha Vantage quote has no symbol")
        price = _parse_float(quote.get("05. price"), "05. price")
        change = _parse_float(quote.get("09. change"), "09. change")
        change_percent = _parse_float(quote.get("10. change percent"), "10. change percent")
        volume = int(_parse_float(quote.get("06. volume"), "06. volume"))

        indicators = synthetic_indicators(price, self.rng)
        indicators["rsi"] = hashed_rsi(price)
        indicators["atr"] = price_scaled_atr(price, self.rng)

        return MarketSnapshot(
            symbol=symbol,
            company_name=company_name(symbol),
            price=price,
            change=change,
            change_percent=change_percent,
            volume=volume,
            market_cap=market_cap_label(symbol, self.rng),
            source=self.name,
            is_synthetic=False,
            **synthetic_fundamentals(self.rng),
            **indicators,
        )

    def get_snapshot(self, symbol: str) -> MarketSnapshot:
        return self.parse_quote(self._fetch_quote(symbol))
