from __future__ import annotations

from datetime import datetime, timezone

import pytest

from stocksage.market_status import get_market_status


@pytest.mark.parametrize(
    "now, status, reason",
    [
        (datetime(2024, 1, 6, 11, 0), "CLOSED", "Weekend"),
        (datetime(2024, 1, 7, 11, 0), "CLOSED", "Weekend"),
        (datetime(2024, 1, 8, 3, 59), "CLOSED", "Outside Trading Hours"),
        (datetime(2024, 1, 8, 4, 0), "PRE_MARKET", "Pre-Market Trading"),
        (datetime(2024, 1, 8, 9, 29), "PRE_MARKET", "Pre-Market Trading"),
        (datetime(2024, 1, 8, 9, 30), "OPEN", "Regular Trading Hours"),
        (datetime(2024, 1, 8, 16, 0), "OPEN", "Regular Trading Hours"),
        (datetime(2024, 1, 8, 16, 1), "AFTER_HOURS", "After-Hours Trading"),
        (datetime(2024, 1, 8, 20, 0), "AFTER_HOURS", "After-Hours Trading"),
        (datetime(2024, 1, 8, 20, 1), "CLOSED", "Outside Trading Hours"),
    ],
)
def test_naive_times_are_new_york(now, status, reason):
    result = get_market_status(now)
    assert (result.status, result.reason) == (status, reason)


def test_aware_time_is_converted():
    # 15:00 UTC on a Monday in January is 10:00 in New York
    result = get_market_status(datetime(2024, 1, 8, 15, 0, tzinfo=timezone.utc))
    assert result.status == "OPEN"
    assert result.is_open


def test_default_is_now():
    assert get_market_status().status in {"OPEN", "CLOSED", "PRE_MARKET", "AFTER_HOURS"}
