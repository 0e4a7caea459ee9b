from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from stocksage.market_status import get_market_status
from stocksage.models import StockAnalysis
from stocksage.providers.service import SnapshotService
from stocksage.skills.analyzer import analyze_snapshot

logger = logging.getLogger(__name__)


def _diag_ok(stage: str, started_at: float, detail: str, **meta: object) -> dict:
    return {
        "stage": stage,
        "status": "ok",
        "duration_ms": round((time.perf_counter() - started_at) * 1000, 2),
        "detail": detail,
        "meta": meta,
    }


def _diag_error(stage: str, started_at: float, exc: Exception, **meta: object) -> dict:
    return {
        "stage": stage,
        "status": "error",
        "duration_ms": round((time.perf_counter() - started_at) * 1000, 2),
        "error_type": type(exc).__name__,
        "error": str(exc),
        "meta": meta,
    }


def _diag_warn(stage: str, started_at: float, detail: str, **meta: object) -> dict:
    return {
        "stage": stage,
        "status": "warning",
        "duration_ms": round((time.perf_counter() - started_at) * 1000, 2),
        "detail": detail,
        "meta": meta,
    }


def analyze_symbol(
    symbol: str,
    service: SnapshotService,
    diagnostics: list[dict],
) -> tuple[StockAnalysis | None, bool]:
    """Fetch and analyze one symbol, appending diagnostics.

    Returns ``(analysis, fallback_used)``; ``analysis`` is None when the
    snapshot could not be obtained or analyzed.
    """
    provider_name = type(service.provider).__name__

    t = time.perf_counter()
    try:
        snapshot = service.get_snapshot(symbol)
    except Exception as e:
        logger.error("snapshot fetch failed for %s: %s", symbol, e)
        diagnostics.append(_diag_error("market_data", t, e, symbol=symbol, provider=provider_name))
        return None, False

    fallback_used = snapshot.source != service.provider.name
    if fallback_used:
        diagnostics.append(
            _diag_warn(
                "market_data",
                t,
                "provider failed, using demo data",
                symbol=snapshot.symbol,
                provider=provider_name,
                source=snapshot.source,
            )
        )
    else:
        diagnostics.append(
            _diag_ok(
                "market_data",
                t,
                "snapshot fetched",
                symbol=snapshot.symbol,
                provider=provider_name,
                source=snapshot.source,
                synthetic=snapshot.is_synthetic,
            )
        )

    t = time.perf_counter()
    try:
        analysis = analyze_snapshot(snapshot)
    except Exception as e:
        logger.exception("analysis failed for %s", snapshot.symbol)
        diagnostics.append(_diag_error("analysis", t, e, symbol=snapshot.symbol))
        return None, fallback_used

    diagnostics.append(
        _diag_ok(
            "analysis",
            t,
            "analysis complete",
            symbol=snapshot.symbol,
            action=analysis.recommendation.action.value,
            confidence=analysis.confidence,
        )
    )
    return analysis, fallback_used


def run_analysis(
    symbols: list[str],
    service: SnapshotService,
    output_dir: str = "data/reports",
    save: bool = True,
) -> dict:
    diagnostics: list[dict] = []
    analyses: list[StockAnalysis] = []
    failed: list[str] = []
    degraded = False

    for symbol in symbols:
        analysis, fallback_used = analyze_symbol(symbol, service, diagnostics)
        degraded = degraded or fallback_used
        if analysis is None:
            failed.append(symbol)
        else:
            analyses.append(analysis)

    if symbols and not analyses:
        status = "failed"
    elif failed or degraded:
        status = "degraded"
    else:
        status = "ok"

    market = get_market_status()
    report = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "status": status,
        "failed_symbols": failed,
        "symbol_count": len(symbols),
        "provider": {
            "kind": service.config.provider,
            "class": type(service.provider).__name__,
            "cache_ttl_seconds": service.config.cache_ttl_seconds,
            "fallback": service.config.fallback.value,
        },
        "market_status": {"status": market.status, "reason": market.reason},
        "diagnostics": diagnostics,
        "analyses": [a.to_dict() for a in analyses],
    }
    logger.info("analysis finished: status=%s analyzed=%d failed=%d", status, len(analyses), len(failed))

    if save:
        out_dir = Path(output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_file = out_dir / f"analysis_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S_%f')}.json"
        out_file.write_text(
            json.dumps(report, ensure_ascii=False, indent=2, default=str),
            encoding="utf-8",
        )
        report["file"] = str(out_file)
    return report
