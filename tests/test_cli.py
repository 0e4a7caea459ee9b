"""Smoke tests for the command line entry point."""

from __future__ import annotations

import pytest

from stocksage import cli, storage
from stocksage.providers.base import ProviderError, SnapshotProvider
from stocksage.providers.service import SnapshotService


@pytest.fixture(autouse=True)
def _restore_db_path(monkeypatch):
    monkeypatch.setattr(storage, "DB_PATH", storage.DB_PATH)


def test_analyze_demo(clean_env, tmp_path, capsys):
    cli.main(["analyze", "AAPL", "TSLA", "--provider", "demo", "--output-dir", str(tmp_path)])
    out = capsys.readouterr().out
    assert "AAPL" in out
    assert "TSLA" in out
    assert len(list(tmp_path.glob("analysis_*.json"))) == 1


def test_analyze_no_save(clean_env, tmp_path, capsys):
    cli.main(["analyze", "NVDA", "--no-save", "--output-dir", str(tmp_path)])
    assert list(tmp_path.iterdir()) == []
    assert "NVDA" in capsys.readouterr().out


def test_watchlist_roundtrip(clean_env, tmp_path, capsys):
    db = str(tmp_path / "w.db")
    cli.main(["watchlist", "add", "aapl", "msft", "--db", db])
    cli.main(["watchlist", "remove", "msft", "--db", db])
    cli.main(["watchlist", "list", "--db", db])
    out = capsys.readouterr().out
    assert "AAPL" in out
    assert [r["symbol"] for r in storage.list_watchlist()] == ["AAPL"]


def test_watchlist_add_requires_symbols(clean_env, tmp_path):
    with pytest.raises(SystemExit):
        cli.main(["watchlist", "add", "--db", str(tmp_path / "w.db")])


def test_alerts_add_check_list(clean_env, tmp_path, capsys):
    db = str(tmp_path / "a.db")
    cli.main(["alerts", "add", "AAPL", "above", "1", "--db", db])
    cli.main(["alerts", "check", "--db", db])
    cli.main(["alerts", "list", "--active", "--db", db])
    out = capsys.readouterr().out
    assert "#1 AAPL" in out
    assert storage.list_alerts(active_only=True) == []


def test_alerts_delete_missing_exits(clean_env, tmp_path):
    with pytest.raises(SystemExit) as exc:
        cli.main(["alerts", "delete", "42", "--db", str(tmp_path / "a.db")])
    assert exc.value.code == 1


def test_market(capsys):
    cli.main(["market"])
    out = capsys.readouterr().out
    assert any(s in out for s in ("OPEN", "CLOSED", "PRE_MARKET", "AFTER_HOURS"))


class _DownProvider(SnapshotProvider):
    name = "down"

    def get_snapshot(self, symbol):
        raise ProviderError("service unavailable")


def test_alerts_check_exits_cleanly_under_raise_policy(clean_env, tmp_path, monkeypatch, capsys):
    db = str(tmp_path / "a.db")
    cli.main(["alerts", "add", "AAPL", "above", "1", "--db", db])
    monkeypatch.setenv("STOCKSAGE_FALLBACK", "raise")
    monkeypatch.setattr(cli, "SnapshotService", lambda cfg: SnapshotService(cfg, provider=_DownProvider()))

    with pytest.raises(SystemExit) as exc:
        cli.main(["alerts", "check", "--db", db])

    assert exc.value.code == 1
    assert "AAPL" in capsys.readouterr().out
    assert [a["symbol"] for a in storage.list_alerts(active_only=True)] == ["AAPL"]
