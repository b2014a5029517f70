from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
import math


class InvalidInputError(ValueError):
    """Raised when numeric input would otherwise propagate NaN or divide by zero."""


def require_finite(asset: str, **values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value):
            raise InvalidInputError(f"{name} must be a finite number for {asset}, got {value!r}")


class MarketDataError(RuntimeError):
    """Raised when the market data universe cannot be fetched or parsed."""


class Bias(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"

    @property
    def side(self) -> str:
        if self is Bias.BULLISH:
            return "LONG"
        if self is Bias.BEARISH:
            return "SHORT"
        return "NEUTRAL"

    @property
    def direction(self) -> int:
        # NEUTRAL is sized in the long direction.
        return -1 if self is Bias.BEARISH else 1


@dataclass(frozen=True)
class MarketSnapshot:
    asset: str
    mark_price: float
    change_24h: float
    funding_rate: float
    volume: float
    momentum: float

    @property
    def fm_score(self) -> float:
        return abs(self.funding_rate) * abs(self.momentum / 100) * 10000


@dataclass(frozen=True)
class MacdResult:
    line: float
    signal: float
    histogram: float
    bullish: bool


@dataclass(frozen=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float
    position: float


@dataclass(frozen=True)
class IndicatorSet:
    rsi: float
    macd: MacdResult
    bollinger: BollingerBands
    atr: float
    atr_percent: float
    ema9: float
    ema21: float
    ema50: float

    @property
    def emas(self) -> tuple[float, float, float]:
        return self.ema9, self.ema21, self.ema50


@dataclass(frozen=True)
class Signal:
    asset: str
    score: int
    bias: Bias
    signal_labels: tuple[str, ...]
    price: float
    indicators: IndicatorSet
    change_24h: float
    funding: float
    volume: float

    @property
    def rsi(self) -> float:
        return self.indicators.rsi

    @property
    def atr(self) -> float:
        return self.indicators.atr

    @property
    def atr_percent(self) -> float:
        return self.indicators.atr_percent

    @property
    def side(self) -> str:
        return self.bias.side

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["bias"] = self.bias.value
        payload["signal_labels"] = list(self.signal_labels)
        return payload


@dataclass(frozen=True)
class RiskProfile:
    risk_fraction: float
    min_reward_ratio: float
    target_reward_ratio: float
    max_leverage: float


@dataclass(frozen=True)
class TakeProfitLevel:
    price: float
    reward_ratio: float


@dataclass(frozen=True)
class RiskPlan:
    position_size: float
    leverage_needed: float
    leverage_to_use: float
    stop_loss_price: float
    stop_distance_percent: float
    risk_amount: float
    take_profit_ladder: tuple[TakeProfitLevel, ...]

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["take_profit_ladder"] = [asdict(level) for level in self.take_profit_ladder]
        return payload
