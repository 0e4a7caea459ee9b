from __future__ import annotations

import argparse
import logging
from dataclasses import replace

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from stocksage import storage
from stocksage.config import PROVIDER_KINDS, AppConfig, DataConfig
from stocksage.market_status import get_market_status
from stocksage.pipelines.analyze import run_analysis
from stocksage.providers.service import SnapshotService, SnapshotUnavailableError

console = Console()


def _print_diagnostics(report: dict) -> None:
    diagnostics = report.get("diagnostics", [])
    if not diagnostics:
        return

    table = Table(title="执行诊断")
    table.add_column("环节")
    table.add_column("代码")
    table.add_column("状态")
    table.add_column("耗时(ms)")
    table.add_column("说明")

    for item in diagnostics:
        meta = item.get("meta") or {}
        detail = item.get("detail") or item.get("error") or ""
        table.add_row(
            str(item.get("stage", "-")),
            str(meta.get("symbol", "-")),
            str(item.get("status", "unknown")),
            str(item.get("duration_ms", "-")),
            str(detail),
        )

    console.print(table)


def _print_analysis(item: dict) -> None:
    snap = item["snapshot"]
    rec = item["recommendation"]
    tech = item["technical"]
    fund = item["fundamental"]
    value = item["value_score"]
    risk = item["risk"]

    header = (
        f"[bold]{snap['symbol']}[/bold] {snap['company_name']}  "
        f"${snap['price']:.2f} ({snap['change']:+.2f}, {snap['change_percent']:+.2f}%)  "
        f"市值 {snap['market_cap']}"
    )
    if snap.get("is_synthetic"):
        header += "  [yellow](演示数据)[/yellow]"
    console.print(header)
    console.print(
        f"建议: [{rec['style']}]{rec['action']}[/{rec['style']}]  "
        f"综合分 {rec['score']:.1f}  置信度 {item['confidence']}%  "
        f"风险 [{risk['style']}]{risk['level']}[/{risk['style']}]"
    )

    signals = Table(title=f"技术面 · {tech['trend']} · 动量 {tech['momentum']} · 波动 {tech['volatility']}")
    signals.add_column("指标")
    signals.add_column("方向")
    signals.add_column("强度")
    signals.add_column("说明")
    for s in tech["signals"]:
        color = "green" if s["type"] == "BULLISH" else "red" if s["type"] == "BEARISH" else "white"
        signals.add_row(s["indicator"], f"[{color}]{s['type']}[/{color}]", s["strength"], s["reason"])
    console.print(signals)

    scores = Table(title=f"基本面 · {fund['overall_score']}/100 · {fund['valuation']} · {fund['quality']}")
    scores.add_column("指标")
    scores.add_column("得分")
    scores.add_column("评级")
    scores.add_column("说明")
    for name, m in fund["scores"].items():
        scores.add_row(name.upper(), f"{m['score']}/{m['max_score']}", m["status"], m["reason"])
    console.print(scores)

    console.print(f"价值投资评分: {value['score']}/{value['max_score']}")
    for f in value["factors"]:
        console.print(f"  [green]+[/green] {f}")
    for w in value["warnings"]:
        console.print(f"  [red]-[/red] {w}")
    if risk["risks"]:
        console.print("风险提示: " + "；".join(risk["risks"]))
    console.print()


def cmd_analyze(args: argparse.Namespace) -> None:
    cfg = _app_config(args)
    service = SnapshotService(cfg.data)

    report = run_analysis(
        symbols=args.symbols,
        service=service,
        output_dir=args.output_dir or cfg.report_dir,
        save=not args.no_save,
    )

    market = report["market_status"]
    console.print(f"市场状态: {market['status']} ({market['reason']})")
    _print_diagnostics(report)

    status = report.get("status", "ok")
    if status == "failed":
        console.print(f"[red]分析失败: {', '.join(report.get('failed_symbols', []))}[/red]")
        raise SystemExit(1)
    if status == "degraded":
        console.print("[yellow]部分数据源失败，结果包含演示数据或缺失代码。[/yellow]")

    for item in report["analyses"]:
        _print_analysis(item)

    if report.get("file"):
        console.print(f"报告已保存: {report['file']}")


def cmd_watchlist(args: argparse.Namespace) -> None:
    cfg = _app_config(args)
    storage.set_db_path(cfg.db_path)
    storage.init_storage()

    if args.action == "add":
        for symbol in args.symbols:
            storage.add_to_watchlist(symbol)
        console.print(f"已加入自选: {', '.join(s.upper() for s in args.symbols)}")
        return
    if args.action == "remove":
        for symbol in args.symbols:
            if not storage.remove_from_watchlist(symbol):
                console.print(f"[yellow]自选中没有 {symbol.upper()}[/yellow]")
        return

    rows = storage.list_watchlist()
    if not rows:
        console.print("自选为空。")
        return
    table = Table(title="自选股")
    table.add_column("代码")
    table.add_column("名称")
    table.add_column("加入价")
    table.add_column("加入时间")
    for r in rows:
        price = r["added_price"]
        table.add_row(r["symbol"], r["company_name"], "-" if price is None else f"{price:.2f}", r["added_at"])
    console.print(table)


def cmd_alerts(args: argparse.Namespace) -> None:
    cfg = _app_config(args)
    storage.set_db_path(cfg.db_path)
    storage.init_storage()

    if args.action == "add":
        alert_id = storage.add_alert(args.symbol, args.condition, args.price, note=args.note)
        console.print(f"已创建提醒 #{alert_id}")
        return
    if args.action == "delete":
        if not storage.delete_alert(args.id):
            console.print(f"[yellow]提醒 #{args.id} 不存在[/yellow]")
            raise SystemExit(1)
        return
    if args.action == "check":
        service = SnapshotService(cfg.data)
        symbols = sorted({a["symbol"] for a in storage.list_alerts(active_only=True)})
        fired: list[dict] = []
        for symbol in symbols:
            try:
                snapshot = service.get_snapshot(symbol)
            except SnapshotUnavailableError as e:
                console.print(f"[red]获取 {symbol} 行情失败: {e}[/red]")
                raise SystemExit(1) from e
            fired.extend(storage.check_alerts(snapshot))
        if not fired:
            console.print("没有触发的提醒。")
        for a in fired:
            console.print(
                f"[bold]#{a['id']} {a['symbol']}[/bold] {a['condition']} {a['target_price']:.2f} "
                f"→ 当前 {a['triggered_price']:.2f}"
            )
        return

    rows = storage.list_alerts(active_only=args.active)
    table = Table(title="价格提醒")
    table.add_column("ID")
    table.add_column("代码")
    table.add_column("条件")
    table.add_column("目标价")
    table.add_column("触发时间")
    table.add_column("备注")
    for r in rows:
        table.add_row(
            str(r["id"]),
            r["symbol"],
            r["condition"],
            f"{r['target_price']:.2f}",
            r["triggered_at"] or "-",
            r["note"] or "",
        )
    console.print(table)


def cmd_market(args: argparse.Namespace) -> None:
    status = get_market_status()
    color = "green" if status.is_open else "red"
    console.print(f"[{color}]{status.status}[/{color}]: {status.reason}")


def _app_config(args: argparse.Namespace) -> AppConfig:
    data = DataConfig.from_env()
    if getattr(args, "provider", None):
        data = replace(data, provider=args.provider)
    cfg = AppConfig(data=data)
    if getattr(args, "db", None):
        cfg.db_path = args.db
    return cfg


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stocksage")
    parser.add_argument("--log-level", default="WARNING", help="日志级别（DEBUG/INFO/WARNING/ERROR）")
    sub = parser.add_subparsers(required=True)

    analyze = sub.add_parser("analyze", help="分析一个或多个股票代码")
    analyze.add_argument("symbols", nargs="+", help="股票代码，如 AAPL MSFT")
    analyze.add_argument(
        "--provider",
        type=str,
        default=None,
        choices=list(PROVIDER_KINDS),
        help="行情数据源（默认读取 STOCKSAGE_PROVIDER，否则 demo）",
    )
    analyze.add_argument("--output-dir", type=str, default=None, help="报告输出目录")
    analyze.add_argument("--no-save", action="store_true", help="不保存 JSON 报告")
    analyze.set_defaults(func=cmd_analyze)

    watchlist = sub.add_parser("watchlist", help="管理自选股")
    watchlist.add_argument("action", choices=["add", "remove", "list"])
    watchlist.add_argument("symbols", nargs="*", help="股票代码")
    watchlist.add_argument("--db", type=str, default=None, help="SQLite 文件路径")
    watchlist.set_defaults(func=cmd_watchlist)

    alerts = sub.add_parser("alerts", help="管理价格提醒")
    alerts_sub = alerts.add_subparsers(dest="action", required=True)
    add = alerts_sub.add_parser("add", help="新增提醒")
    add.add_argument("symbol")
    add.add_argument("condition", choices=["above", "below"])
    add.add_argument("price", type=float)
    add.add_argument("--note", default="")
    lst = alerts_sub.add_parser("list", help="列出提醒")
    lst.add_argument("--active", action="store_true", help="只显示未触发的提醒")
    delete = alerts_sub.add_parser("delete", help="删除提醒")
    delete.add_argument("id", type=int)
    check = alerts_sub.add_parser("check", help="用最新行情检查提醒")
    check.add_argument("--provider", type=str, default=None, choices=list(PROVIDER_KINDS))
    for p in (add, lst, delete, check):
        p.add_argument("--db", type=str, default=None, help="SQLite 文件路径")
    alerts.set_defaults(func=cmd_alerts)

    market = sub.add_parser("market", help="显示美股交易时段状态")
    market.set_defaults(func=cmd_market)
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=str(args.log_level).upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    if args.func is cmd_watchlist and args.action in {"add", "remove"} and not args.symbols:
        parser.error("watchlist add/remove 需要至少一个股票代码")
    args.func(args)


if __name__ == "__main__":
    main()
