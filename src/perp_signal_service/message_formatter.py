from __future__ import annotations

from html import escape

from .models import Bias, RiskPlan, RiskProfile, Signal

RULE = "=" * 70
THIN_RULE = "-" * 70
DISCLAIMER_LINES = (
    "NOT financial advice. Do your own research.",
    "95% of crypto traders lose money.",
    "Past performance does not guarantee future results.",
    "Only trade with money you can afford to lose.",
    "Always use stop-losses. Never move them further away.",
    "Consider your risk tolerance before trading.",
)


def confidence_tier(score: int) -> str:
    if score >= 70:
        return "HIGH"
    if score >= 50:
        return "MEDIUM"
    return "LOW"


def _format_number(value: float, decimals: int = 2) -> str:
    return f"{value:,.{decimals}f}"


def _format_ratio(ratio: float) -> str:
    if abs(ratio - int(ratio)) < 1e-9:
        return str(int(ratio))
    return f"{ratio:g}"


def _signed(value: float, decimals: int = 2) -> str:
    return f"{'+' if value > 0 else ''}{value:.{decimals}f}"


def _label_bias(bias: Bias) -> str:
    if bias is Bias.BULLISH:
        return "🟢"
    if bias is Bias.BEARISH:
        return "🔴"
    return "⚪"


def _rsi_state(rsi: float) -> str:
    if rsi < 30:
        return "Oversold"
    if rsi > 70:
        return "Overbought"
    return "Neutral"


def format_signal_message(signal: Signal, plan: RiskPlan) -> tuple[str, str]:
    asset = escape(signal.asset.upper())
    emoji = _label_bias(signal.bias)
    stop_sign = "+" if signal.bias is Bias.BEARISH else "-"

    lines = [
        f"<b>{emoji} CRYPTO SIGNAL #{asset}</b>",
        "",
        f"📈 <b>Direction:</b> {signal.bias.value} ({signal.side})",
        f"💰 <b>Score:</b> {signal.score}/100 ({confidence_tier(signal.score)} CONFIDENCE)",
        f"💵 <b>Price:</b> ${_format_number(signal.price, 4)}",
        f"📊 <b>24h:</b> {_signed(signal.change_24h)}%",
        "",
        f"📍 <b>Entry:</b> ${_format_number(signal.price, 4)}",
        f"🛑 <b>Stop:</b> ${_format_number(plan.stop_loss_price, 4)} ({stop_sign}{plan.stop_distance_percent:.1f}%)",
    ]
    for idx, level in enumerate(plan.take_profit_ladder, start=1):
        lines.append(
            f"🎯 <b>TP{idx}:</b> ${_format_number(level.price, 4)} ({_format_ratio(level.reward_ratio)}:1)"
        )
    lines.extend(
        [
            "",
            f"⚠️ <b>Risk:</b> ${_format_number(plan.risk_amount)} | <b>Leverage:</b> {plan.leverage_to_use:.1f}x",
        ]
    )
    if signal.signal_labels:
        lines.append(f"✅ {escape(', '.join(signal.signal_labels))}")
    lines.extend(["", "<i>Not financial advice. Trade at your own risk.</i>"])
    return "\n".join(lines), "HTML"


def format_signal_block(index: int, signal: Signal, plan: RiskPlan, profile: RiskProfile, profile_name: str) -> str:
    ind = signal.indicators
    stop_sign = "+" if signal.bias is Bias.BEARISH else "-"
    lines = [
        f"SIGNAL #{index}: {signal.asset}",
        THIN_RULE,
        f"Direction:  {signal.bias.value} ({signal.side})",
        f"Score:      {signal.score}/100 ({confidence_tier(signal.score)} CONFIDENCE)",
        f"Current:    ${signal.price:.4f}",
        f"24h Change: {_signed(signal.change_24h)}%",
        f"Funding:    {signal.funding:.4f}%",
        "",
        "INDICATORS:",
        f"  RSI:    {ind.rsi:.1f} ({_rsi_state(ind.rsi)})",
        f"  MACD:   {'Bullish' if ind.macd.bullish else 'Bearish'} ({_signed(ind.macd.histogram, 4)})",
        f"  EMA 9:  ${ind.ema9:.2f}",
        f"  EMA 21: ${ind.ema21:.2f}",
        f"  EMA 50: ${ind.ema50:.2f}",
        f"  ATR:    ${ind.atr:.2f} ({ind.atr_percent:.1f}%)",
        "",
        "RISK MANAGEMENT:",
        f"  Profile:      {_format_ratio(profile.risk_fraction * 100)}% risk ({profile_name})",
        f"  Risk Amount:  ${plan.risk_amount:.2f}",
        f"  Position:     ${plan.position_size:.2f}",
        f"  Leverage:     {plan.leverage_to_use:.1f}x (max: {_format_ratio(profile.max_leverage)}x)",
        "",
        "ENTRY & EXITS:",
        f"  Entry:      ${signal.price:.4f}",
        f"  Stop Loss:  ${plan.stop_loss_price:.4f} ({stop_sign}{plan.stop_distance_percent:.1f}%)",
    ]
    for idx, level in enumerate(plan.take_profit_ladder, start=1):
        lines.append(f"  TP{idx} ({_format_ratio(level.reward_ratio)}:1): ${level.price:.4f}")
    lines.extend(["", "SIGNALS CONFIRMATION:"])
    lines.extend(f"  • {label}" for label in signal.signal_labels)
    return "\n".join(lines)


def format_report(
    results: list[tuple[Signal, RiskPlan]],
    *,
    profile: RiskProfile,
    profile_name: str,
    account_balance: float,
    top_n: int,
    live: bool,
) -> str:
    header = [
        RULE,
        "CRYPTO SIGNAL SERVICE",
        RULE,
        "LIVE MODE - Generating real-time signals" if live else "SCAN MODE - Paper trading signals",
        f"Generating top {top_n} signals...",
        "",
        f"Found {len(results)} signals",
        THIN_RULE,
    ]
    blocks: list[str] = []
    for idx, (signal, plan) in enumerate(results, start=1):
        blocks.extend(["", format_signal_block(idx, signal, plan, profile, profile_name), "", THIN_RULE])
    summary = [
        RULE,
        "SUMMARY",
        RULE,
        f"Signals Generated: {len(results)}",
        f"Account Balance:   ${_format_number(account_balance)}",
        f"Risk Per Trade:    {_format_ratio(profile.risk_fraction * 100)}%",
        f"Risk:Reward:       {_format_ratio(profile.min_reward_ratio)}:1 minimum",
        RULE,
        "DISCLAIMER:",
        *(f"  • {line}" for line in DISCLAIMER_LINES),
        RULE,
    ]
    return "\n".join([*header, *blocks, "", *summary])
