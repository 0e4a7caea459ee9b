from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

MARKET_TZ = ZoneInfo("America/New_York")


@dataclass(slots=True, frozen=True)
class MarketStatus:
    status: str
    reason: str

    @property
    def is_open(self) -> bool:
        return self.status == "OPEN"


def get_market_status(now: datetime | None = None) -> MarketStatus:
    """NYSE/NASDAQ session for ``now`` (naive datetimes are New York time).

    Holidays are not modelled.
    """
    if now is None:
        now = datetime.now(MARKET_TZ)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=MARKET_TZ)
    else:
        now = now.astimezone(MARKET_TZ)

    hhmm = now.hour * 100 + now.minute
    if now.weekday() >= 5:
        return MarketStatus("CLOSED", "Weekend")
    if 930 <= hhmm <= 1600:
        return MarketStatus("OPEN", "Regular Trading Hours")
    if 400 <= hhmm < 930:
        return MarketStatus("PRE_MARKET", "Pre-Market Trading")
    if 1600 < hhmm <= 2000:
        return MarketStatus("AFTER_HOURS", "After-Hours Trading")
    return MarketStatus("CLOSED", "Outside Trading Hours")
