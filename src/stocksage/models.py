from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SignalType(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class SignalStrength(str, Enum):
    WEAK = "Weak"
    MODERATE = "Moderate"
    STRONG = "Strong"


class Trend(str, Enum):
    STRONG_BULLISH = "Strong Bullish"
    BULLISH = "Bullish"
    NEUTRAL = "Neutral"
    BEARISH = "Bearish"
    STRONG_BEARISH = "Strong Bearish"


class Momentum(str, Enum):
    OVERBOUGHT = "Overbought"
    OVERSOLD = "Oversold"
    NEUTRAL = "Neutral"


class Volatility(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class RiskLevel(str, Enum):
    LOW = "Low Risk"
    MEDIUM = "Medium Risk"
    HIGH = "High Risk"


# 按风险等级索引排列（0=低，2=高）
RISK_LEVELS: tuple[RiskLevel, ...] = (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH)


class Action(str, Enum):
    STRONG_BUY = "STRONG BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"


@dataclass(slots=True, frozen=True)
class MarketSnapshot:
    symbol: str
    company_name: str
    price: float
    change: float
    change_percent: float
    volume: int
    sma20: float
    sma50: float
    sma200: float
    rsi: float
    macd: float
    atr: float
    pe: float
    eps: float
    dividend_yield: float
    roe: float
    roa: float
    debt_to_equity: float
    book_value: float
    market_cap: str
    beta: float
    fifty_two_week_high: float | None = None
    fifty_two_week_low: float | None = None
    source: str = "demo"
    is_synthetic: bool = True
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(slots=True, frozen=True)
class Signal:
    type: SignalType
    indicator: str
    reason: str
    strength: SignalStrength


@dataclass(slots=True)
class TechnicalVerdict:
    trend: Trend
    signals: list[Signal]
    bullish_signals: int
    bearish_signals: int
    momentum: Momentum
    volatility: Volatility

    @property
    def net_signal(self) -> int:
        return self.bullish_signals - self.bearish_signals


@dataclass(slots=True)
class MetricScore:
    score: int
    status: str
    reason: str
    max_score: int = 5


@dataclass(slots=True)
class FundamentalVerdict:
    scores: dict[str, MetricScore]
    overall_score: int
    valuation: str
    quality: str


@dataclass(slots=True)
class ValueScoreVerdict:
    score: int
    factors: list[str]
    warnings: list[str] = field(default_factory=list)
    max_score: int = 100


@dataclass(slots=True)
class RiskVerdict:
    level: RiskLevel
    risks: list[str]
    style: str = ""


@dataclass(slots=True)
class Recommendation:
    action: Action
    score: float
    style: str = ""


@dataclass(slots=True)
class StockAnalysis:
    snapshot: MarketSnapshot
    technical: TechnicalVerdict
    fundamental: FundamentalVerdict
    value_score: ValueScoreVerdict
    risk: RiskVerdict
    recommendation: Recommendation
    confidence: int

    def to_dict(self) -> dict:
        data = asdict(self)
        return _plain(data)


def _plain(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value
