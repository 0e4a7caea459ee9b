from __future__ import annotations

import logging
import random

from stocksage.models import MarketSnapshot
from stocksage.providers.base import ProviderError, SnapshotProvider
from stocksage.providers.mock_provider import (
    company_name,
    hashed_rsi,
    price_scaled_atr,
    synthetic_fundamentals,
    synthetic_indicators,
)

logger = logging.getLogger(__name__)


def _safe_float(v: object) -> float | None:
    if v is None:
        return None
    if isinstance(v, str) and v.strip() in {"", "-", "--", "None", "nan"}:
        return None
    try:
        out = float(v)
    except (TypeError, ValueError):
        return None
    if out != out:
        return None
    return out


def _format_market_cap(v: float | None) -> str:
    if v is None:
        return "N/A"
    if v >= 1e12:
        return f"{v / 1e12:.2f}T"
    if v >= 1e9:
        return f"{v / 1e9:.0f}B"
    return f"{v / 1e6:.0f}M"


class YFinanceSnapshotProvider(SnapshotProvider):
    """Quote and fundamentals from ``yfinance`` ``Ticker.info``.

    Fields Yahoo does not report (SMA20, RSI, MACD, ATR) are synthetic.
    Ratios Yahoo reports as fractions (ROE, ROA) are scaled to
    percentages; debt-to-equity comes as a percentage and is scaled down.
    """

    name = "yfinance"

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def _load_info(self, symbol: str) -> dict:
        try:
            import yfinance as yf
        except Exception as e:
            raise RuntimeError("yfinance is not installed; run `pip install yfinance`.") from e

        try:
            info = yf.Ticker(symbol).info or {}
        except Exception as e:
            raise ProviderError(f"yfinance request failed for {symbol}: {type(e).__name__}: {e}") from e
        return dict(info)

    def snapshot_from_info(self, symbol: str, info: dict) -> MarketSnapshot:
        price = _safe_float(info.get("currentPrice")) or _safe_float(info.get("regularMarketPrice"))
        if price is None:
            raise ProviderError(f"yfinance returned no price for {symbol}")

        prev_close = _safe_float(info.get("previousClose")) or _safe_float(
            info.get("regularMarketPreviousClose")
        )
        change = round(price - prev_close, 2) if prev_close else 0.0
        change_percent = round(change / prev_close * 100, 2) if prev_close else 0.0

        indicators = synthetic_indicators(price, self.rng)
        indicators["rsi"] = hashed_rsi(price)
        indicators["atr"] = price_scaled_atr(price, self.rng)
        fundamentals = synthetic_fundamentals(self.rng)

        def pick(key: str, fallback: float, scale: float = 1.0) -> float:
            v = _safe_float(info.get(key))
            return round(v * scale, 2) if v is not None else fallback

        sma50 = pick("fiftyDayAverage", indicators["sma50"])
        sma200 = pick("twoHundredDayAverage", indicators["sma200"])
        missing = [k for k in ("trailingPE", "returnOnEquity", "beta") if _safe_float(info.get(k)) is None]
        if missing:
            logger.info("yfinance %s missing %s; using synthetic values", symbol, ", ".join(missing))

        return MarketSnapshot(
            symbol=symbol,
            company_name=str(info.get("shortName") or info.get("longName") or company_name(symbol)),
            price=price,
            change=change,
            change_percent=change_percent,
            volume=int(_safe_float(info.get("volume")) or _safe_float(info.get("regularMarketVolume")) or 0),
            sma20=indicators["sma20"],
            sma50=sma50,
            sma200=sma200,
            rsi=indicators["rsi"],
            macd=indicators["macd"],
            atr=indicators["atr"],
            pe=pick("trailingPE", fundamentals["pe"]),
            eps=pick("trailingEps", fundamentals["eps"]),
            dividend_yield=pick("dividendYield", fundamentals["dividend_yield"]),
            roe=pick("returnOnEquity", fundamentals["roe"], 100.0),
            roa=pick("returnOnAssets", fundamentals["roa"], 100.0),
            debt_to_equity=pick("debtToEquity", fundamentals["debt_to_equity"], 0.01),
            book_value=pick("bookValue", fundamentals["book_value"]),
            market_cap=_format_market_cap(_safe_float(info.get("marketCap"))),
            beta=pick("beta", indicators["beta"]),
            fifty_two_week_high=_safe_float(info.get("fiftyTwoWeekHigh")),
            fifty_two_week_low=_safe_float(info.get("fiftyTwoWeekLow")),
            source=self.name,
            is_synthetic=False,
        )

    def get_snapshot(self, symbol: str) -> MarketSnapshot:
        return self.snapshot_from_info(symbol, self._load_info(symbol))
