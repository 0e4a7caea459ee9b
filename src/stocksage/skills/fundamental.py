from __future__ import annotations

import math

from stocksage.models import FundamentalVerdict, MarketSnapshot, MetricScore

MAX_METRIC_SCORE = 5


def pe_score(pe: float) -> MetricScore:
    # pe <= 0（亏损）落入第二档，只检查上限
    if 0 < pe < 15:
        return MetricScore(5, "Excellent", "Very reasonable P/E ratio", MAX_METRIC_SCORE)
    if pe < 25:
        return MetricScore(3, "Good", "Reasonable P/E ratio", MAX_METRIC_SCORE)
    return MetricScore(1, "Expensive", "High P/E ratio", MAX_METRIC_SCORE)


def roe_score(roe: float) -> MetricScore:
    if roe > 20:
        return MetricScore(5, "Excellent", "Outstanding return on equity", MAX_METRIC_SCORE)
    if roe > 15:
        return MetricScore(4, "Very Good", "Strong return on equity", MAX_METRIC_SCORE)
    return MetricScore(2, "Average", "Adequate return on equity", MAX_METRIC_SCORE)


def overall_score(scores: dict[str, MetricScore]) -> int:
    total = sum(m.score for m in scores.values())
    max_total = sum(m.max_score for m in scores.values())
    if max_total == 0:
        return 0
    # 四舍五入（.5 向上），不用 round() 的银行家舍入
    return int(math.floor(total / max_total * 100 + 0.5))


def analyze_fundamental(s: MarketSnapshot) -> FundamentalVerdict:
    scores = {
        "pe": pe_score(s.pe),
        "roe": roe_score(s.roe),
    }
    overall = overall_score(scores)
    return FundamentalVerdict(
        scores=scores,
        overall_score=overall,
        valuation="Reasonable" if s.pe < 20 else "Expensive",
        quality="High Quality" if overall > 70 else "Average Quality",
    )
