from __future__ import annotations

from stocksage.models import (
    Action,
    FundamentalVerdict,
    Recommendation,
    RiskVerdict,
    TechnicalVerdict,
    Trend,
    ValueScoreVerdict,
)

BASE_SCORE = 50.0
FUNDAMENTAL_WEIGHT = 0.2
VALUE_WEIGHT = 0.2

TREND_DELTA: dict[Trend, float] = {
    Trend.STRONG_BULLISH: 15.0,
    Trend.BULLISH: 10.0,
    Trend.NEUTRAL: 0.0,
    Trend.BEARISH: -10.0,
    Trend.STRONG_BEARISH: -15.0,
}

# (下限, 动作, 样式)，分数严格大于下限才进入该档
BANDS: tuple[tuple[float, Action, str], ...] = (
    (70.0, Action.STRONG_BUY, "bold green"),
    (55.0, Action.BUY, "green"),
    (45.0, Action.HOLD, "yellow"),
)
SELL_STYLE = "red"

CONFIDENCE_BASE = 60
CONFIDENCE_STEP = 3
CONFIDENCE_MIN = 25
CONFIDENCE_MAX = 95


def composite_score(
    technical: TechnicalVerdict,
    fundamental: FundamentalVerdict,
    value_score: ValueScoreVerdict,
) -> float:
    score = BASE_SCORE + TREND_DELTA[technical.trend]
    score += fundamental.overall_score * FUNDAMENTAL_WEIGHT
    score += value_score.score * VALUE_WEIGHT
    return score


def recommendation_for_score(score: float) -> Recommendation:
    for floor, action, style in BANDS:
        if score > floor:
            return Recommendation(action=action, score=score, style=style)
    return Recommendation(action=Action.SELL, score=score, style=SELL_STYLE)


def aggregate(
    technical: TechnicalVerdict,
    fundamental: FundamentalVerdict,
    value_score: ValueScoreVerdict,
    risk: RiskVerdict,
) -> Recommendation:
    """Combine the partial verdicts into one recommendation.

    ``risk`` is accepted so callers hand over the full set of verdicts, but it
    does not move the composite score: risk is reported next to the
    recommendation, not inside it. Folding it in changes every band and must be
    a deliberate change to this function.
    """
    return recommendation_for_score(composite_score(technical, fundamental, value_score))


def confidence(
    technical: TechnicalVerdict,
    fundamental: FundamentalVerdict,
    value_score: ValueScoreVerdict,
) -> int:
    # 只看技术信号的一致程度
    alignment = abs(technical.bullish_signals - technical.bearish_signals)
    value = CONFIDENCE_BASE + alignment * CONFIDENCE_STEP
    return min(CONFIDENCE_MAX, max(CONFIDENCE_MIN, value))
