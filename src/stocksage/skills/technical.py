from __future__ import annotations

from stocksage.models import (
    MarketSnapshot,
    Momentum,
    Signal,
    SignalStrength,
    SignalType,
    TechnicalVerdict,
    Trend,
    Volatility,
)

RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0
# ATR 阈值是绝对价格单位，未按价格归一化
ATR_HIGH = 5.0
ATR_LOW = 2.0
STRONG_TREND_NET = 2


def classify_trend(net_signal: int) -> Trend:
    if net_signal > STRONG_TREND_NET:
        return Trend.STRONG_BULLISH
    if net_signal > 0:
        return Trend.BULLISH
    if net_signal < -STRONG_TREND_NET:
        return Trend.STRONG_BEARISH
    if net_signal < 0:
        return Trend.BEARISH
    return Trend.NEUTRAL


def classify_momentum(rsi: float) -> Momentum:
    if rsi > RSI_OVERBOUGHT:
        return Momentum.OVERBOUGHT
    if rsi < RSI_OVERSOLD:
        return Momentum.OVERSOLD
    return Momentum.NEUTRAL


def classify_volatility(atr: float) -> Volatility:
    if atr > ATR_HIGH:
        return Volatility.HIGH
    if atr < ATR_LOW:
        return Volatility.LOW
    return Volatility.MEDIUM


def analyze_technical(s: MarketSnapshot) -> TechnicalVerdict:
    signals: list[Signal] = []
    bullish = 0
    bearish = 0

    # 长期趋势：始终产生一个信号
    if s.price > s.sma200:
        signals.append(
            Signal(
                SignalType.BULLISH,
                "Moving Average",
                "Price above 200-day SMA (long-term uptrend)",
                SignalStrength.STRONG,
            )
        )
        bullish += 2
    else:
        signals.append(
            Signal(
                SignalType.BEARISH,
                "Moving Average",
                "Price below 200-day SMA (long-term downtrend)",
                SignalStrength.STRONG,
            )
        )
        bearish += 2

    if s.rsi > RSI_OVERBOUGHT:
        signals.append(
            Signal(
                SignalType.BEARISH,
                "RSI",
                "Overbought conditions (RSI > 70)",
                SignalStrength.MODERATE,
            )
        )
        bearish += 1
    elif s.rsi < RSI_OVERSOLD:
        signals.append(
            Signal(
                SignalType.BULLISH,
                "RSI",
                "Oversold conditions (RSI < 30)",
                SignalStrength.STRONG,
            )
        )
        bullish += 2

    # MACD 与 0 比较，没有真实的信号线
    if s.macd > 0:
        signals.append(
            Signal(SignalType.BULLISH, "MACD", "MACD above signal line", SignalStrength.MODERATE)
        )
        bullish += 1
    else:
        signals.append(
            Signal(SignalType.BEARISH, "MACD", "MACD below signal line", SignalStrength.MODERATE)
        )
        bearish += 1

    return TechnicalVerdict(
        trend=classify_trend(bullish - bearish),
        signals=signals,
        bullish_signals=bullish,
        bearish_signals=bearish,
        momentum=classify_momentum(s.rsi),
        volatility=classify_volatility(s.atr),
    )
