from __future__ import annotations

import requests

from perp_signal_service.config import RISK_PROFILES
from perp_signal_service.message_formatter import confidence_tier, format_report, format_signal_message
from perp_signal_service.models import (
    Bias,
    BollingerBands,
    IndicatorSet,
    MacdResult,
    RiskPlan,
    Signal,
    TakeProfitLevel,
)
from perp_signal_service.telegram_client import TelegramNotifier


class _Resp:
    def __init__(self, status_code: int, payload: dict[str, object]) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> dict[str, object]:
        return self._payload


def _signal(bias: Bias = Bias.BULLISH, score: int = 75, asset: str = "BTC") -> Signal:
    return Signal(
        asset=asset,
        score=score,
        bias=bias,
        signal_labels=("RSI Oversold", "MACD Bullish"),
        price=100.0,
        indicators=IndicatorSet(
            rsi=25.0,
            macd=MacdResult(line=1.0, signal=0.85, histogram=0.15, bullish=True),
            bollinger=BollingerBands(upper=104.0, middle=100.0, lower=96.0, position=0.0),
            atr=2.0,
            atr_percent=2.0,
            ema9=99.0,
            ema21=98.0,
            ema50=97.0,
        ),
        change_24h=7.0,
        funding=-0.08,
        volume=60_000_000,
    )


def _plan() -> RiskPlan:
    return RiskPlan(
        position_size=6666.67,
        leverage_needed=0.67,
        leverage_to_use=0.67,
        stop_loss_price=97.0,
        stop_distance_percent=3.0,
        risk_amount=200.0,
        take_profit_ladder=(
            TakeProfitLevel(price=109.0, reward_ratio=3),
            TakeProfitLevel(price=118.0, reward_ratio=6),
            TakeProfitLevel(price=127.0, reward_ratio=9),
        ),
    )


def test_confidence_tiers() -> None:
    assert confidence_tier(70) == "HIGH"
    assert confidence_tier(69) == "MEDIUM"
    assert confidence_tier(50) == "MEDIUM"
    assert confidence_tier(-10) == "LOW"


def test_format_signal_message_contains_levels() -> None:
    text, parse_mode = format_signal_message(_signal(), _plan())

    assert parse_mode == "HTML"
    assert "🟢" in text
    assert "#BTC" in text
    assert "BULLISH (LONG)" in text
    assert "75/100 (HIGH CONFIDENCE)" in text
    assert "$97.0000 (-3.0%)" in text
    assert "$109.0000 (3:1)" in text
    assert "$127.0000 (9:1)" in text
    assert "0.7x" in text
    assert "+7.00%" in text


def test_format_signal_message_escapes_asset_and_marks_short() -> None:
    text, _ = format_signal_message(_signal(bias=Bias.BEARISH, asset="<x>"), _plan())

    assert "&lt;X&gt;" in text
    assert "🔴" in text
    assert "BEARISH (SHORT)" in text
    assert "(+3.0%)" in text


def test_format_report_lists_signals_and_summary() -> None:
    report = format_report(
        [(_signal(), _plan()), (_signal(asset="ETH", score=40), _plan())],
        profile=RISK_PROFILES["moderate"],
        profile_name="moderate",
        account_balance=10_000,
        top_n=10,
        live=False,
    )

    assert "SCAN MODE" in report
    assert "SIGNAL #1: BTC" in report
    assert "SIGNAL #2: ETH" in report
    assert "40/100 (LOW CONFIDENCE)" in report
    assert "RSI:    25.0 (Oversold)" in report
    assert "2% risk (moderate)" in report
    assert "(max: 5x)" in report
    assert "TP2 (6:1): $118.0000" in report
    assert "  • MACD Bullish" in report
    assert "Signals Generated: 2" in report
    assert "2:1 minimum" in report


def test_format_report_without_signals() -> None:
    report = format_report(
        [],
        profile=RISK_PROFILES["aggressive"],
        profile_name="aggressive",
        account_balance=500,
        top_n=5,
        live=True,
    )

    assert "LIVE MODE" in report
    assert "Found 0 signals" in report
    assert "SIGNAL #" not in report
    assert "1.5:1 minimum" in report


def test_telegram_notifier_disabled_returns_success() -> None:
    notifier = TelegramNotifier(bot_token="", chat_id="")
    ok, status, message_id, latency_ms = notifier.send_signal(_signal(), _plan())

    assert ok is True
    assert status is None
    assert message_id is None
    assert latency_ms == 0


def test_telegram_notifier_posts_html_message(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def _fake_post(url: str, json: dict[str, object], timeout: float) -> _Resp:  # noqa: A002
        captured["url"] = url
        captured["json"] = json
        captured["timeout"] = timeout
        return _Resp(200, {"result": {"message_id": 321}})

    monkeypatch.setattr("perp_signal_service.telegram_client.requests.post", _fake_post)

    notifier = TelegramNotifier(bot_token="token", chat_id="chat", timeout=5)
    ok, status, message_id, _latency_ms = notifier.send_signal(_signal(), _plan())

    assert ok is True
    assert status == 200
    assert message_id == 321
    assert captured["url"] == "https://api.telegram.org/bottoken/sendMessage"
    assert captured["timeout"] == 5
    payload = captured["json"]
    assert payload["chat_id"] == "chat"
    assert payload["parse_mode"] == "HTML"
    assert "CRYPTO SIGNAL #BTC" in str(payload["text"])


def test_telegram_notifier_reports_http_failure(monkeypatch) -> None:
    monkeypatch.setattr(
        "perp_signal_service.telegram_client.requests.post",
        lambda url, json, timeout: _Resp(400, {"ok": False}),  # noqa: A002
    )

    notifier = TelegramNotifier(bot_token="token", chat_id="chat")
    ok, status, message_id, _latency_ms = notifier.send_signal(_signal(), _plan())

    assert ok is False
    assert status == 400
    assert message_id is None


def test_telegram_notifier_reports_network_failure(monkeypatch) -> None:
    def _raise(url: str, json: dict[str, object], timeout: float) -> _Resp:  # noqa: A002
        raise requests.ConnectionError("offline")

    monkeypatch.setattr("perp_signal_service.telegram_client.requests.post", _raise)

    notifier = TelegramNotifier(bot_token="token", chat_id="chat")
    ok, status, _message_id, _latency_ms = notifier.send_signal(_signal(), _plan())

    assert ok is False
    assert status is None
