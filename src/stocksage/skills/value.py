from __future__ import annotations

from stocksage.models import MarketSnapshot, ValueScoreVerdict

VALUE_MAX_SCORE = 100


def calculate_value_score(s: MarketSnapshot) -> ValueScoreVerdict:
    """Value-investor checklist.

    Each check awards points independently. The awards are not normalized, so
    the reachable maximum is the sum of the weights below (50), not
    ``max_score``. ``warnings`` is part of the result but no rule fills it yet.
    """
    score = 0
    factors: list[str] = []
    warnings: list[str] = []

    if 0 < s.pe < 20:
        score += 20
        factors.append("Reasonable P/E ratio (< 20)")

    if s.roe > 15:
        score += 20
        factors.append("Strong return on equity (> 15%)")

    if s.dividend_yield > 0:
        score += 10
        factors.append("Pays dividend (management discipline)")

    return ValueScoreVerdict(score=score, factors=factors, warnings=warnings, max_score=VALUE_MAX_SCORE)
