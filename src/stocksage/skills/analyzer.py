from __future__ import annotations

from stocksage.models import MarketSnapshot, StockAnalysis
from stocksage.skills.fundamental import analyze_fundamental
from stocksage.skills.recommendation import aggregate, confidence
from stocksage.skills.risk import calculate_risk
from stocksage.skills.technical import analyze_technical
from stocksage.skills.value import calculate_value_score


def analyze_snapshot(snapshot: MarketSnapshot) -> StockAnalysis:
    technical = analyze_technical(snapshot)
    fundamental = analyze_fundamental(snapshot)
    value_score = calculate_value_score(snapshot)
    risk = calculate_risk(snapshot)

    return StockAnalysis(
        snapshot=snapshot,
        technical=technical,
        fundamental=fundamental,
        value_score=value_score,
        risk=risk,
        recommendation=aggregate(technical, fundamental, value_score, risk),
        confidence=confidence(technical, fundamental, value_score),
    )
