from __future__ import annotations

from stocksage.models import RISK_LEVELS, MarketSnapshot, RiskVerdict

RISK_STYLES = ("green", "yellow", "red")


def calculate_risk(s: MarketSnapshot) -> RiskVerdict:
    risks: list[str] = []
    level = 0

    if s.beta > 1.5:
        risks.append("High volatility (Beta > 1.5)")
        level = max(level, 2)

    if s.pe > 30:
        risks.append("High valuation risk")
        level = max(level, 1)

    return RiskVerdict(level=RISK_LEVELS[level], risks=risks, style=RISK_STYLES[level])
