from __future__ import annotations

from dataclasses import replace

import streamlit as st

from stocksage.config import PROVIDER_KINDS, DataConfig
from stocksage.market_status import MarketStatus, get_market_status
from stocksage.models import Action, StockAnalysis
from stocksage.providers.service import SnapshotService, SnapshotUnavailableError
from stocksage.skills.analyzer import analyze_snapshot
from stocksage.storage import (
    add_alert,
    add_to_watchlist,
    check_alerts,
    delete_alert,
    init_storage,
    list_alerts,
    list_watchlist,
    remove_from_watchlist,
)

PROVIDER_LABELS = {
    "demo": "demo（演示数据）",
    "alphavantage": "alphavantage（需 API key）",
    "yfinance": "yfinance（Yahoo Finance）",
}


@st.cache_resource
def _service(provider: str) -> SnapshotService:
    return SnapshotService(replace(DataConfig.from_env(), provider=provider))


def _market_badge(status: MarketStatus) -> None:
    text = f"{status.status}: {status.reason}"
    if status.is_open:
        st.success(text)
    elif status.status == "CLOSED":
        st.error(text)
    else:
        st.info(text)


def _format_signal_rows(analysis: StockAnalysis) -> list[dict]:
    return [
        {
            "指标": s.indicator,
            "方向": s.type.value,
            "强度": s.strength.value,
            "说明": s.reason,
        }
        for s in analysis.technical.signals
    ]


def _format_metric_rows(analysis: StockAnalysis) -> list[dict]:
    return [
        {
            "指标": name.upper(),
            "得分": f"{m.score}/{m.max_score}",
            "评级": m.status,
            "说明": m.reason,
        }
        for name, m in analysis.fundamental.scores.items()
    ]


def _show_recommendation(analysis: StockAnalysis) -> None:
    rec = analysis.recommendation
    text = f"{rec.action.value} · 置信度 {analysis.confidence}%"
    if rec.action in (Action.STRONG_BUY, Action.BUY):
        st.success(text)
    elif rec.action is Action.HOLD:
        st.warning(text)
    else:
        st.error(text)


def _technical_tab(analysis: StockAnalysis) -> None:
    tech = analysis.technical
    snap = analysis.snapshot
    c1, c2, c3 = st.columns(3)
    c1.metric("趋势", tech.trend.value, f"净信号 {tech.net_signal:+d}")
    c2.metric("动量", tech.momentum.value, f"RSI {snap.rsi:.1f}")
    c3.metric("波动", tech.volatility.value, f"ATR {snap.atr:.2f}")
    st.dataframe(_format_signal_rows(analysis), width="stretch")
    st.caption(
        f"SMA20 {snap.sma20:.2f} · SMA50 {snap.sma50:.2f} · SMA200 {snap.sma200:.2f} · MACD {snap.macd:.3f}"
    )


def _fundamental_tab(analysis: StockAnalysis) -> None:
    fund = analysis.fundamental
    snap = analysis.snapshot
    c1, c2, c3 = st.columns(3)
    c1.metric("基本面得分", f"{fund.overall_score}/100")
    c2.metric("估值", fund.valuation, f"P/E {snap.pe:.1f}")
    c3.metric("质量", fund.quality, f"ROE {snap.roe:.1f}%")
    st.dataframe(_format_metric_rows(analysis), width="stretch")
    st.caption(
        f"EPS {snap.eps:.2f} · 股息率 {snap.dividend_yield:.2f}% · ROA {snap.roa:.1f}% · "
        f"D/E {snap.debt_to_equity:.2f} · 每股净资产 {snap.book_value:.2f}"
    )


def _value_tab(analysis: StockAnalysis) -> None:
    value = analysis.value_score
    st.metric("价值投资评分", f"{value.score}/{value.max_score}")
    st.progress(min(1.0, max(0.0, value.score / value.max_score)))
    c1, c2 = st.columns(2)
    with c1:
        st.subheader("加分项")
        if value.factors:
            for f in value.factors:
                st.write(f"✅ {f}")
        else:
            st.write("暂无加分项")
    with c2:
        st.subheader("警示")
        if value.warnings:
            for w in value.warnings:
                st.write(f"⚠️ {w}")
        else:
            st.write("未发现主要风险因素")


def _risk_tab(analysis: StockAnalysis) -> None:
    risk = analysis.risk
    st.metric("风险等级", risk.level.value, f"Beta {analysis.snapshot.beta:.2f}")
    if risk.risks:
        for r in risk.risks:
            st.write(f"⚠️ {r}")
    else:
        st.write("无显著风险")
    st.caption("风险等级单独展示，不计入综合评分。")


def _analyzer_page(provider: str) -> None:
    st.title("股票分析")
    with st.form("analyze"):
        symbol = st.text_input("股票代码", value=st.session_state.get("symbol", "AAPL"))
        submitted = st.form_submit_button("分析")
    if submitted and symbol.strip():
        st.session_state["symbol"] = symbol.strip().upper()

    current = st.session_state.get("symbol", "AAPL")
    try:
        snapshot = _service(provider).get_snapshot(current)
    except Exception as e:
        st.error(f"获取行情失败：{e}")
        return

    analysis = analyze_snapshot(snapshot)
    if snapshot.is_synthetic and provider != "demo":
        st.warning("数据源不可用，当前显示演示数据。")

    c1, c2, c3, c4 = st.columns(4)
    c1.metric(snapshot.symbol, f"${snapshot.price:.2f}", f"{snapshot.change:+.2f} ({snapshot.change_percent:+.2f}%)")
    c2.metric("公司", snapshot.company_name)
    c3.metric("市值", snapshot.market_cap)
    c4.metric("成交量", f"{snapshot.volume:,}")
    _show_recommendation(analysis)

    if st.button("加入自选"):
        add_to_watchlist(snapshot.symbol, snapshot.company_name, snapshot.price)
        st.success(f"{snapshot.symbol} 已加入自选")

    fired = check_alerts(snapshot)
    for a in fired:
        st.info(f"提醒 #{a['id']}：{a['symbol']} {a['condition']} {a['target_price']:.2f}，当前 {snapshot.price:.2f}")

    tech_tab, fund_tab, value_tab, risk_tab = st.tabs(["技术面", "基本面", "价值投资", "风险"])
    with tech_tab:
        _technical_tab(analysis)
    with fund_tab:
        _fundamental_tab(analysis)
    with value_tab:
        _value_tab(analysis)
    with risk_tab:
        _risk_tab(analysis)


def _watchlist_page(provider: str) -> None:
    st.title("自选股")
    rows = list_watchlist()
    if not rows:
        st.info("自选为空。在分析页点击“加入自选”。")
        return

    service = _service(provider)
    table = []
    for r in rows:
        try:
            snap = service.get_snapshot(r["symbol"])
        except SnapshotUnavailableError as e:
            st.warning(f"{r['symbol']} 行情获取失败：{e}")
            continue
        analysis = analyze_snapshot(snap)
        added = r["added_price"]
        table.append(
            {
                "代码": r["symbol"],
                "名称": r["company_name"],
                "现价": snap.price,
                "加入价": added,
                "涨跌(%)": round((snap.price / added - 1) * 100, 2) if added else None,
                "建议": analysis.recommendation.action.value,
                "置信度": analysis.confidence,
                "风险": analysis.risk.level.value,
            }
        )
    st.dataframe(table, width="stretch")

    target = st.selectbox("移除", options=[r["symbol"] for r in rows])
    if st.button("移除选中"):
        remove_from_watchlist(target)
        st.rerun()


def _alerts_page() -> None:
    st.title("价格提醒")
    with st.form("add_alert"):
        c1, c2, c3 = st.columns(3)
        with c1:
            symbol = st.text_input("代码", placeholder="如 AAPL")
        with c2:
            condition = st.selectbox("条件", options=["above", "below"])
        with c3:
            price = st.number_input("目标价", min_value=0.0, value=100.0, step=1.0)
        note = st.text_input("备注")
        if st.form_submit_button("创建提醒"):
            try:
                alert_id = add_alert(symbol, condition, float(price), note=note.strip())
                st.success(f"已创建提醒 #{alert_id}")
            except ValueError as e:
                st.error(f"创建失败：{e}")

    alerts = list_alerts()
    if not alerts:
        st.info("暂无提醒。")
        return
    st.dataframe(alerts, width="stretch")
    target = st.selectbox("删除提醒", options=[a["id"] for a in alerts])
    if st.button("删除选中提醒"):
        delete_alert(int(target))
        st.rerun()


def _education_page() -> None:
    st.title("投资知识")
    st.subheader("价值投资原则")
    st.markdown(
        "- 安全边际：以低于内在价值的价格买入\n"
        "- 关注长期：P/E、ROE 和分红比短期波动更重要\n"
        "- 能力圈：只投资自己理解的生意"
    )
    st.subheader("指标速查")
    st.markdown(
        "- **SMA200**：价格在其上方视为长期上升趋势\n"
        "- **RSI**：> 70 超买，< 30 超卖\n"
        "- **MACD**：> 0 视为多头动能\n"
        "- **Beta**：> 1.5 波动显著高于大盘"
    )
    st.caption("本工具仅用于学习，不构成投资建议。投资有风险，过往表现不代表未来收益。")


def main() -> None:
    st.set_page_config(page_title="StockSage", layout="wide")
    init_storage()

    with st.sidebar:
        st.header("导航")
        page = st.radio("页面", ["分析", "自选", "提醒", "知识"], index=0)
        default_provider = DataConfig.from_env().provider
        provider = st.selectbox(
            "行情数据源",
            options=list(PROVIDER_KINDS),
            index=list(PROVIDER_KINDS).index(default_provider),
            format_func=lambda k: PROVIDER_LABELS.get(k, k),
        )
        _market_badge(get_market_status())
        st.caption("API key 通过环境变量 ALPHA_VANTAGE_API_KEY 配置。")

    if page == "分析":
        _analyzer_page(provider)
    elif page == "自选":
        _watchlist_page(provider)
    elif page == "提醒":
        _alerts_page()
    else:
        _education_page()


if __name__ == "__main__":
    main()
