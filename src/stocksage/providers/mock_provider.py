from __future__ import annotations

import math
import random

from stocksage.models import MarketSnapshot
from stocksage.providers.base import SnapshotProvider

BASE_PRICES = {
    "AAPL": 185.25,
    "MSFT": 340.15,
    "GOOGL": 135.80,
    "AMZN": 145.30,
    "TSLA": 245.75,
    "NVDA": 450.20,
    "META": 325.45,
    "NFLX": 420.10,
    "AMD": 125.60,
    "INTC": 45.20,
    "CRM": 220.30,
    "ORCL": 115.80,
    "BABA": 90.40,
    "UBER": 65.20,
    "SPOT": 180.90,
}

COMPANY_NAMES = {
    "AAPL": "Apple Inc.",
    "MSFT": "Microsoft Corporation",
    "GOOGL": "Alphabet Inc.",
    "AMZN": "Amazon.com Inc.",
    "TSLA": "Tesla Inc.",
    "NVDA": "NVIDIA Corporation",
    "META": "Meta Platforms Inc.",
    "NFLX": "Netflix Inc.",
    "AMD": "Advanced Micro Devices Inc.",
    "INTC": "Intel Corporation",
    "CRM": "Salesforce Inc.",
    "ORCL": "Oracle Corporation",
    "BABA": "Alibaba Group Holding Ltd",
    "UBER": "Uber Technologies Inc.",
    "SPOT": "Spotify Technology S.A.",
}

MEGA_CAPS = {"AAPL", "MSFT", "GOOGL", "AMZN"}
LARGE_CAPS = {"TSLA", "NVDA", "META", "NFLX"}


def simple_hash(text: str) -> int:
    """32-bit string hash (h * 31 + ch), absolute value; stable across runs."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def base_price(symbol: str) -> float:
    if symbol in BASE_PRICES:
        return BASE_PRICES[symbol]
    return float(50 + simple_hash(symbol) % 200)


def company_name(symbol: str) -> str:
    return COMPANY_NAMES.get(symbol, f"{symbol} Corporation")


def market_cap_label(symbol: str, rng: random.Random) -> str:
    if symbol in MEGA_CAPS:
        return f"{rng.random() * 2 + 1:.2f}T"
    if symbol in LARGE_CAPS:
        return f"{rng.random() * 800 + 200:.0f}B"
    return f"{rng.random() * 100 + 20:.0f}B"


def price_text(price: float) -> str:
    """Shortest decimal text for ``price``; whole numbers have no ``.0``."""
    if math.isnan(price):
        return "NaN"
    if math.isinf(price):
        return "Infinity" if price > 0 else "-Infinity"
    if price.is_integer() and abs(price) < 1e21:
        return str(int(price))
    return repr(price)


def hashed_rsi(price: float) -> float:
    # 由价格字符串派生，同一价格总是得到同一 RSI（30-69）
    return float(30 + simple_hash(price_text(float(price))) % 40)


def price_scaled_atr(price: float, rng: random.Random) -> float:
    # 实时报价的 ATR 为价格的 2%-5%
    return round(price * 0.02 + rng.random() * price * 0.03, 2)


def synthetic_indicators(price: float, rng: random.Random) -> dict[str, float]:
    return {
        "rsi": round(rng.random() * 100, 1),
        "macd": round((rng.random() - 0.5) * 3, 3),
        "sma20": round(price * (0.98 + rng.random() * 0.04), 2),
        "sma50": round(price * (0.95 + rng.random() * 0.1), 2),
        "sma200": round(price * (0.90 + rng.random() * 0.2), 2),
        "atr": round(rng.random() * 8 + 1, 2),
        "beta": round(rng.random() * 1.8 + 0.4, 2),
    }


def synthetic_fundamentals(rng: random.Random) -> dict[str, float]:
    return {
        "pe": round(rng.random() * 35 + 5, 1),
        "eps": round(rng.random() * 15 + 1, 2),
        "dividend_yield": round(rng.random() * 6, 2),
        "book_value": round(rng.random() * 50 + 10, 2),
        "roe": round(rng.random() * 25 + 5, 1),
        "roa": round(rng.random() * 15 + 2, 1),
        "debt_to_equity": round(rng.random() * 1.5 + 0.1, 2),
    }


class DemoSnapshotProvider(SnapshotProvider):
    name = "demo"

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def get_snapshot(self, symbol: str) -> MarketSnapshot:
        rng = self.rng
        base = base_price(symbol)
        daily_volatility = base * 0.02
        change = (rng.random() - 0.5) * daily_volatility * 2
        change_percent = change / base * 100

        return MarketSnapshot(
            symbol=symbol,
            company_name=company_name(symbol),
            price=round(base + change, 2),
            change=round(change, 2),
            change_percent=round(change_percent, 2),
            volume=int(rng.random() * 50_000_000) + 1_000_000,
            market_cap=market_cap_label(symbol, rng),
            fifty_two_week_high=round(base * (1.1 + rng.random() * 0.3), 2),
            fifty_two_week_low=round(base * (0.7 + rng.random() * 0.2), 2),
            source=self.name,
            is_synthetic=True,
            **synthetic_fundamentals(rng),
            **synthetic_indicators(base, rng),
        )
