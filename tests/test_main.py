from __future__ import annotations

import json
import random

import pytest

from perp_signal_service import main as cli
from perp_signal_service.models import MarketDataError, MarketSnapshot
from perp_signal_service.service import SignalService


class _MarketClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    def fetch_snapshots(self) -> list[MarketSnapshot]:
        if self.error is not None:
            raise self.error
        return [
            MarketSnapshot(asset="BTC", mark_price=60000.0, change_24h=6.0, funding_rate=0.0, volume=90_000_000, momentum=6.0),
            MarketSnapshot(asset="ETH", mark_price=3000.0, change_24h=-2.0, funding_rate=0.0, volume=40_000_000, momentum=-2.0),
        ]


def _patch_service(monkeypatch, make_settings, market_client: _MarketClient, captured: dict[str, object]) -> None:
    real_service = cli.SignalService

    def _factory(settings):
        captured["settings"] = settings
        service = real_service(settings, market_client=market_client, rng=random.Random(2))
        captured["service"] = service
        return service

    monkeypatch.setattr(cli, "SignalService", _factory)
    monkeypatch.setattr(cli, "load_settings", lambda: make_settings())


def test_main_prints_report_with_cli_overrides(monkeypatch, make_settings, capsys) -> None:
    captured: dict[str, object] = {}
    _patch_service(monkeypatch, make_settings, _MarketClient(), captured)

    exit_code = cli.main(["--top", "1", "--profile", "conservative", "--balance", "2000", "--live"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "LIVE MODE" in out
    assert "Generating top 1 signals" in out
    assert "SIGNAL #1:" in out
    assert "SIGNAL #2:" not in out
    assert "1% risk (conservative)" in out
    settings = captured["settings"]
    assert settings.top_n == 1
    assert settings.account_balance_usd == 2000


def test_main_notify_flag_triggers_delivery(monkeypatch, make_settings) -> None:
    calls: list[int] = []
    monkeypatch.setattr(SignalService, "notify", lambda self, results: calls.append(len(results)) or 0)
    captured: dict[str, object] = {}
    _patch_service(monkeypatch, make_settings, _MarketClient(), captured)

    assert cli.main(["--notify"]) == 0
    assert calls == [2]


def test_main_skips_delivery_without_flag_or_cron(monkeypatch, make_settings) -> None:
    calls: list[int] = []
    monkeypatch.setattr(SignalService, "notify", lambda self, results: calls.append(len(results)) or 0)
    captured: dict[str, object] = {}
    _patch_service(monkeypatch, make_settings, _MarketClient(), captured)

    assert cli.main([]) == 0
    assert calls == []


def test_main_returns_error_code_when_market_data_fails(monkeypatch, make_settings, capsys) -> None:
    captured: dict[str, object] = {}
    _patch_service(monkeypatch, make_settings, _MarketClient(error=MarketDataError("boom")), captured)

    assert cli.main([]) == 1
    assert capsys.readouterr().out == ""


def test_main_json_output(monkeypatch, make_settings, capsys) -> None:
    captured: dict[str, object] = {}
    _patch_service(monkeypatch, make_settings, _MarketClient(), captured)

    assert cli.main(["--json"]) == 0

    rows = json.loads(capsys.readouterr().out)
    scores = [row["signal"]["score"] for row in rows]
    assert len(rows) == 2
    assert scores == sorted(scores, reverse=True)
    first = rows[0]
    assert first["signal"]["bias"] in {"BULLISH", "BEARISH", "NEUTRAL"}
    assert isinstance(first["signal"]["signal_labels"], list)
    assert "rsi" in first["signal"]["indicators"]
    assert len(first["risk_plan"]["take_profit_ladder"]) == 3
    assert first["risk_plan"]["risk_amount"] == 200.0


@pytest.mark.parametrize("argv", [["--top", "-1"], ["--balance", "0"], ["--balance", "nan"], ["--top", "two"]])
def test_main_rejects_invalid_arguments(monkeypatch, make_settings, argv: list[str]) -> None:
    captured: dict[str, object] = {}
    _patch_service(monkeypatch, make_settings, _MarketClient(), captured)

    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)

    assert exc_info.value.code == 2
    assert "service" not in captured


def test_main_returns_error_code_for_unknown_risk_profile(monkeypatch, make_settings, capsys) -> None:
    monkeypatch.setattr(cli, "load_settings", lambda: make_settings(risk_profile_name="reckless"))

    assert cli.main([]) == 2
    assert capsys.readouterr().out == ""


def test_main_returns_error_code_for_invalid_env_balance(monkeypatch, make_settings, capsys) -> None:
    captured: dict[str, object] = {}
    _patch_service(monkeypatch, make_settings, _MarketClient(), captured)
    monkeypatch.setattr(cli, "load_settings", lambda: make_settings(account_balance_usd=0.0))

    assert cli.main([]) == 2
    assert capsys.readouterr().out == ""
