from __future__ import annotations

import math

from .models import InvalidInputError, RiskPlan, RiskProfile, Signal, TakeProfitLevel, require_finite

ATR_STOP_MULTIPLIER = 1.5
FALLBACK_STOP_PERCENT = 5.0
FIXED_LADDER_RATIOS: tuple[float, ...] = (3.0, 6.0, 9.0)


def stop_distance_percent(atr_percent: float) -> float:
    if atr_percent > 0:
        return atr_percent * ATR_STOP_MULTIPLIER
    return FALLBACK_STOP_PERCENT


def ladder_ratios_for(profile: RiskProfile) -> tuple[float, ...]:
    target = profile.target_reward_ratio
    return (target, target * 2, target * 3)


def size_position(
    signal: Signal,
    account_balance: float,
    profile: RiskProfile,
    ladder_ratios: tuple[float, ...] | None = None,
) -> RiskPlan:
    """Risk a fixed fraction of the balance against an ATR-based stop.

    Leverage is capped at ``profile.max_leverage`` without error; the position
    size itself is not reduced when the cap applies.
    """
    if not math.isfinite(account_balance) or account_balance <= 0:
        raise InvalidInputError(f"account_balance must be positive, got {account_balance!r}")
    if not math.isfinite(signal.price) or signal.price <= 0:
        raise InvalidInputError(f"signal price must be positive for {signal.asset}, got {signal.price!r}")
    require_finite(signal.asset, atr_percent=signal.atr_percent)
    require_finite(
        "risk profile",
        risk_fraction=profile.risk_fraction,
        target_reward_ratio=profile.target_reward_ratio,
        max_leverage=profile.max_leverage,
    )
    if profile.risk_fraction <= 0 or profile.max_leverage <= 0:
        raise InvalidInputError(f"risk_fraction and max_leverage must be positive, got {profile!r}")

    direction = signal.bias.direction
    risk_amount = account_balance * profile.risk_fraction
    stop_pct = stop_distance_percent(signal.atr_percent)
    stop_fraction = stop_pct / 100

    position_size = risk_amount / stop_fraction
    leverage_needed = position_size / account_balance
    ratios = ladder_ratios if ladder_ratios is not None else ladder_ratios_for(profile)

    return RiskPlan(
        position_size=position_size,
        leverage_needed=leverage_needed,
        leverage_to_use=min(leverage_needed, profile.max_leverage),
        stop_loss_price=signal.price * (1 - direction * stop_fraction),
        stop_distance_percent=stop_pct,
        risk_amount=risk_amount,
        take_profit_ladder=tuple(
            TakeProfitLevel(price=signal.price * (1 + direction * stop_fraction * ratio), reward_ratio=ratio)
            for ratio in ratios
        ),
    )
