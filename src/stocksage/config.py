from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

PROVIDER_KINDS = ("demo", "alphavantage", "yfinance")
# 缓存按毫秒分桶，TTL 不能小于 1ms
MIN_CACHE_TTL_SECONDS = 0.001


class FallbackPolicy(str, Enum):
    SYNTHETIC = "synthetic"
    RAISE = "raise"


@dataclass(slots=True)
class ProviderCredentials:
    alpha_vantage_api_key: str | None = None
    # FMP 和 IEX 尚无对应的数据源，只读取并保留
    fmp_api_key: str | None = None
    iex_token: str | None = None

    @property
    def has_alpha_vantage(self) -> bool:
        # "demo" 是 Alpha Vantage 的公共演示 key，视同未配置
        key = (self.alpha_vantage_api_key or "").strip()
        return bool(key) and key != "demo"


@dataclass(slots=True)
class DataConfig:
    provider: str = "demo"
    credentials: ProviderCredentials = field(default_factory=ProviderCredentials)
    cache_ttl_seconds: float = 60.0
    fallback: FallbackPolicy = FallbackPolicy.SYNTHETIC
    request_timeout_seconds: float = 10.0

    def __post_init__(self) -> None:
        self.provider = self.provider.strip().lower()
        if self.provider not in PROVIDER_KINDS:
            raise ValueError(f"unsupported provider: {self.provider}")
        if not math.isfinite(self.cache_ttl_seconds) or self.cache_ttl_seconds < MIN_CACHE_TTL_SECONDS:
            raise ValueError(f"cache_ttl_seconds must be >= {MIN_CACHE_TTL_SECONDS} (one millisecond bucket)")
        self.fallback = FallbackPolicy(self.fallback)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "DataConfig":
        """Build a config from environment variables.

        Only entry points (CLI, dashboard) call this; services always receive
        an explicit ``DataConfig``.
        """
        env = os.environ if environ is None else environ
        credentials = ProviderCredentials(
            alpha_vantage_api_key=env.get("ALPHA_VANTAGE_API_KEY") or None,
            fmp_api_key=env.get("FMP_API_KEY") or None,
            iex_token=env.get("IEX_TOKEN") or None,
        )
        ttl_raw = env.get("STOCKSAGE_CACHE_TTL", "60")
        try:
            ttl = float(ttl_raw)
        except ValueError as e:
            raise ValueError(f"invalid STOCKSAGE_CACHE_TTL: {ttl_raw}") from e

        fallback_raw = env.get("STOCKSAGE_FALLBACK", FallbackPolicy.SYNTHETIC.value).strip().lower()
        try:
            fallback = FallbackPolicy(fallback_raw)
        except ValueError as e:
            raise ValueError(f"invalid STOCKSAGE_FALLBACK: {fallback_raw}") from e

        return cls(
            provider=env.get("STOCKSAGE_PROVIDER", "demo"),
            credentials=credentials,
            cache_ttl_seconds=ttl,
            fallback=fallback,
        )


@dataclass(slots=True)
class AppConfig:
    data: DataConfig = field(default_factory=DataConfig)
    report_dir: str = "data/reports"
    db_path: str = "data/stocksage.db"
