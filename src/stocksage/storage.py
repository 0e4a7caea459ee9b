from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from stocksage.models import MarketSnapshot

logger = logging.getLogger(__name__)

DB_PATH = Path("data/stocksage.db")
ALERT_CONDITIONS = ("above", "below")


def set_db_path(path: str | Path) -> None:
    global DB_PATH
    DB_PATH = Path(path)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _conn() -> sqlite3.Connection:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_storage() -> None:
    with _conn() as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS watchlist (
                symbol TEXT PRIMARY KEY,
                company_name TEXT NOT NULL DEFAULT '',
                added_price REAL,
                added_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS alerts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                symbol TEXT NOT NULL,
                condition TEXT NOT NULL,
                target_price REAL NOT NULL,
                note TEXT DEFAULT '',
                created_at TEXT NOT NULL,
                triggered_at TEXT,
                triggered_price REAL
            )
            """
        )


def _clean_symbol(symbol: str) -> str:
    out = (symbol or "").strip().upper()
    if not out:
        raise ValueError("symbol must not be empty")
    return out


def add_to_watchlist(symbol: str, company_name: str = "", added_price: float | None = None) -> None:
    symbol = _clean_symbol(symbol)
    with _conn() as conn:
        conn.execute(
            """
            INSERT INTO watchlist(symbol, company_name, added_price, added_at)
            VALUES(?, ?, ?, ?)
            ON CONFLICT(symbol) DO UPDATE SET
                company_name=excluded.company_name,
                added_price=COALESCE(excluded.added_price, watchlist.added_price)
            """,
            (symbol, company_name, added_price, _now()),
        )


def remove_from_watchlist(symbol: str) -> bool:
    with _conn() as conn:
        cur = conn.execute("DELETE FROM watchlist WHERE symbol = ?", (_clean_symbol(symbol),))
    return cur.rowcount > 0


def list_watchlist() -> list[dict]:
    with _conn() as conn:
        rows = conn.execute(
            "SELECT symbol, company_name, added_price, added_at FROM watchlist ORDER BY symbol"
        ).fetchall()
    return [dict(r) for r in rows]


def add_alert(
    symbol: str,
    condition: Literal["above", "below"],
    target_price: float,
    note: str = "",
) -> int:
    symbol = _clean_symbol(symbol)
    cond = str(condition).strip().lower()
    if cond not in ALERT_CONDITIONS:
        raise ValueError(f"condition must be one of {ALERT_CONDITIONS}, got {condition!r}")
    if target_price <= 0:
        raise ValueError("target_price must be > 0")

    with _conn() as conn:
        cur = conn.execute(
            """
            INSERT INTO alerts(symbol, condition, target_price, note, created_at)
            VALUES(?, ?, ?, ?, ?)
            """,
            (symbol, cond, float(target_price), note, _now()),
        )
    return int(cur.lastrowid)


def list_alerts(active_only: bool = False) -> list[dict]:
    sql = (
        "SELECT id, symbol, condition, target_price, note, created_at, triggered_at, triggered_price "
        "FROM alerts"
    )
    if active_only:
        sql += " WHERE triggered_at IS NULL"
    sql += " ORDER BY id"
    with _conn() as conn:
        rows = conn.execute(sql).fetchall()
    return [dict(r) for r in rows]


def delete_alert(alert_id: int) -> bool:
    with _conn() as conn:
        cur = conn.execute("DELETE FROM alerts WHERE id = ?", (alert_id,))
    return cur.rowcount > 0


def check_alerts(snapshot: MarketSnapshot) -> list[dict]:
    """Trigger the active alerts for ``snapshot.symbol`` met by its price.

    Triggered alerts are stamped and returned; they do not fire again.
    """
    price = snapshot.price
    fired: list[dict] = []
    now = _now()
    with _conn() as conn:
        rows = conn.execute(
            """
            SELECT id, symbol, condition, target_price, note, created_at
            FROM alerts
            WHERE symbol = ? AND triggered_at IS NULL
            ORDER BY id
            """,
            (snapshot.symbol,),
        ).fetchall()
        for r in rows:
            target = float(r["target_price"])
            hit = price >= target if r["condition"] == "above" else price <= target
            if not hit:
                continue
            conn.execute(
                "UPDATE alerts SET triggered_at = ?, triggered_price = ? WHERE id = ?",
                (now, price, r["id"]),
            )
            item = dict(r)
            item["triggered_at"] = now
            item["triggered_price"] = price
            fired.append(item)

    if fired:
        logger.info("%d alert(s) triggered for %s at %.2f", len(fired), snapshot.symbol, price)
    return fired
