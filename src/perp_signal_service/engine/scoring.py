from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import random
from typing import Callable

from perp_signal_service.calculations import compute_indicators
from perp_signal_service.history import generate_price_history
from perp_signal_service.models import Bias, IndicatorSet, InvalidInputError, MarketSnapshot, Signal, require_finite

HIGH_VOLUME_USD = 50_000_000
MID_VOLUME_USD = 20_000_000
FUNDING_EXTREME = 0.05
MOMENTUM_THRESHOLD_PCT = 5.0


@dataclass(frozen=True)
class RuleInput:
    price: float
    change_24h: float
    funding: float
    volume: float
    indicators: IndicatorSet

    @property
    def emas_below_price(self) -> int:
        return sum(1 for value in self.indicators.emas if self.price > value)


@dataclass(frozen=True)
class ScoringRule:
    name: str
    predicate: Callable[[RuleInput], bool]
    delta: int
    label: str | None = None
    bias: Bias | None = None


@dataclass(frozen=True)
class RuleGroup:
    """Mutually exclusive rules; the first matching rule in the group applies."""

    name: str
    rules: tuple[ScoringRule, ...]


@dataclass(frozen=True)
class ScoringConfig:
    bollinger_rule: bool = False


RSI_RULES = RuleGroup(
    "rsi",
    (
        ScoringRule("rsi_oversold", lambda r: r.indicators.rsi < 30, 25, "RSI Oversold", Bias.BULLISH),
        ScoringRule("rsi_overbought", lambda r: r.indicators.rsi > 70, -15, "RSI Overbought", Bias.BEARISH),
        ScoringRule("rsi_bullish", lambda r: r.indicators.rsi > 55, 15, "RSI Bullish", Bias.BULLISH),
        ScoringRule("rsi_weak", lambda r: r.indicators.rsi < 45, -10, "RSI Weak", Bias.BEARISH),
        ScoringRule("rsi_neutral", lambda r: True, 5),
    ),
)

MACD_RULES = RuleGroup(
    "macd",
    (
        ScoringRule(
            "macd_bullish",
            lambda r: r.indicators.macd.bullish and r.indicators.macd.histogram > 0,
            20,
            "MACD Bullish",
        ),
        ScoringRule("macd_above_signal", lambda r: r.indicators.macd.bullish, 10, "MACD Above Signal"),
    ),
)

EMA_RULES = RuleGroup(
    "ema",
    (
        ScoringRule("strong_uptrend", lambda r: r.emas_below_price == 3, 20, "Strong Uptrend", Bias.BULLISH),
        ScoringRule("moderate_uptrend", lambda r: r.emas_below_price == 2, 10, "Moderate Uptrend", Bias.BULLISH),
        ScoringRule("below_all_emas", lambda r: r.emas_below_price == 0, -20, None, Bias.BEARISH),
    ),
)

BOLLINGER_RULES = RuleGroup(
    "bollinger",
    (
        ScoringRule("bb_lower_band", lambda r: r.indicators.bollinger.position < -1, 15, "BB at Lower Band"),
        ScoringRule("bb_upper_band", lambda r: r.indicators.bollinger.position > 1, -10, "BB at Upper Band"),
    ),
)

MOMENTUM_RULES = RuleGroup(
    "momentum",
    (
        ScoringRule("strong_momentum", lambda r: r.change_24h > MOMENTUM_THRESHOLD_PCT, 10, "Strong Momentum"),
        ScoringRule("weak_momentum", lambda r: r.change_24h < -MOMENTUM_THRESHOLD_PCT, -10, "Weak Momentum"),
    ),
)

FUNDING_RULES = RuleGroup(
    "funding",
    (
        ScoringRule("negative_funding", lambda r: r.funding < -FUNDING_EXTREME, 10, "Negative Funding"),
        ScoringRule("positive_funding", lambda r: r.funding > FUNDING_EXTREME, -10, "Positive Funding"),
    ),
)

VOLUME_RULES = RuleGroup(
    "volume",
    (
        ScoringRule("high_volume", lambda r: r.volume > HIGH_VOLUME_USD, 15),
        ScoringRule("mid_volume", lambda r: r.volume > MID_VOLUME_USD, 10),
        ScoringRule("low_volume", lambda r: True, 5),
    ),
)


def rule_groups(config: ScoringConfig) -> tuple[RuleGroup, ...]:
    groups = [RSI_RULES, MACD_RULES, EMA_RULES]
    if config.bollinger_rule:
        groups.append(BOLLINGER_RULES)
    groups.extend([MOMENTUM_RULES, FUNDING_RULES, VOLUME_RULES])
    return tuple(groups)


def first_match(group: RuleGroup, rule_input: RuleInput) -> ScoringRule | None:
    for rule in group.rules:
        if rule.predicate(rule_input):
            return rule
    return None


def score_asset(
    snapshot: MarketSnapshot,
    indicators: IndicatorSet,
    config: ScoringConfig = ScoringConfig(),
) -> Signal:
    price = snapshot.mark_price
    if not math.isfinite(price) or price <= 0:
        raise InvalidInputError(f"mark_price must be a positive number for {snapshot.asset}, got {price!r}")
    require_finite(
        snapshot.asset,
        change_24h=snapshot.change_24h,
        funding_rate=snapshot.funding_rate,
        volume=snapshot.volume,
        rsi=indicators.rsi,
        macd_line=indicators.macd.line,
        macd_histogram=indicators.macd.histogram,
        bollinger_position=indicators.bollinger.position,
        atr_percent=indicators.atr_percent,
        ema9=indicators.ema9,
        ema21=indicators.ema21,
        ema50=indicators.ema50,
    )

    rule_input = RuleInput(
        price=price,
        change_24h=snapshot.change_24h,
        funding=snapshot.funding_rate,
        volume=snapshot.volume,
        indicators=indicators,
    )
    score = 0
    bias = Bias.NEUTRAL
    labels: list[str] = []
    for group in rule_groups(config):
        rule = first_match(group, rule_input)
        if rule is None:
            continue
        score += rule.delta
        if rule.label is not None:
            labels.append(rule.label)
        if rule.bias is not None:
            bias = rule.bias

    return Signal(
        asset=snapshot.asset,
        score=score,
        bias=bias,
        signal_labels=tuple(labels),
        price=price,
        indicators=indicators,
        change_24h=snapshot.change_24h,
        funding=snapshot.funding_rate,
        volume=snapshot.volume,
    )


def analyze_asset(
    snapshot: MarketSnapshot,
    rng: random.Random | None = None,
    config: ScoringConfig = ScoringConfig(),
) -> Signal:
    prices = generate_price_history(snapshot.mark_price, snapshot.change_24h, rng=rng)
    indicators = compute_indicators(prices, snapshot.mark_price)
    signal = score_asset(snapshot, indicators, config)
    logging.debug(
        "event=asset_scored asset=%s score=%d bias=%s rsi=%.2f atr_pct=%.4f fm_score=%.4f labels=%s",
        signal.asset,
        signal.score,
        signal.bias.value,
        indicators.rsi,
        indicators.atr_percent,
        snapshot.fm_score,
        list(signal.signal_labels),
    )
    return signal
