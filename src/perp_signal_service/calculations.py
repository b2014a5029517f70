from __future__ import annotations

from statistics import mean, pstdev

from .models import BollingerBands, IndicatorSet, MacdResult

RSI_PERIOD = 14
ATR_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_MIN_POINTS = 35
# Signal line is approximated from the MACD line instead of a 9-period EMA of it.
MACD_SIGNAL_FACTOR = 0.85
BOLLINGER_PERIOD = 20
BOLLINGER_STD_MULT = 2.0
SYNTHETIC_HIGH_FACTOR = 1.02
SYNTHETIC_LOW_FACTOR = 0.98


def rsi(prices: list[float], period: int = RSI_PERIOD) -> float:
    if len(prices) < period + 1:
        return 50.0

    gains: list[float] = []
    losses: list[float] = []
    for idx in range(1, len(prices)):
        change = prices[idx] - prices[idx - 1]
        gains.append(change if change > 0 else 0.0)
        losses.append(-change if change < 0 else 0.0)

    avg_gain = sum(gains[-period:]) / period
    avg_loss = sum(losses[-period:]) / period
    for idx in range(period, len(gains)):
        avg_gain = (avg_gain * (period - 1) + gains[idx]) / period
        avg_loss = (avg_loss * (period - 1) + losses[idx]) / period

    if avg_loss == 0:
        return 100.0
    return 100 - (100 / (1 + avg_gain / avg_loss))


def ema(data: list[float], period: int) -> float:
    if len(data) < period:
        return data[-1]

    multiplier = 2 / (period + 1)
    value = sum(data[:period]) / period
    for price in data[period:]:
        value = (price - value) * multiplier + value
    return value


def macd(prices: list[float]) -> MacdResult:
    if len(prices) < MACD_MIN_POINTS:
        return MacdResult(line=0.0, signal=0.0, histogram=0.0, bullish=True)

    line = ema(prices, MACD_FAST) - ema(prices, MACD_SLOW)
    signal = line * MACD_SIGNAL_FACTOR
    return MacdResult(line=line, signal=signal, histogram=line - signal, bullish=line > signal)


def bollinger_bands(
    prices: list[float],
    period: int = BOLLINGER_PERIOD,
    std_mult: float = BOLLINGER_STD_MULT,
) -> BollingerBands:
    if len(prices) < period:
        return BollingerBands(upper=0.0, middle=0.0, lower=0.0, position=0.0)

    window = prices[-period:]
    sma = mean(window)
    sigma = pstdev(window)
    position = 0.0 if sigma == 0 else (prices[-1] - sma) / (sigma * 2)
    return BollingerBands(
        upper=sma + sigma * std_mult,
        middle=sma,
        lower=sma - sigma * std_mult,
        position=position,
    )


def true_ranges(highs: list[float], lows: list[float], closes: list[float]) -> list[float]:
    """True ranges from the second bar on; the first bar has no previous close."""
    trs: list[float] = []
    for idx in range(1, len(highs)):
        prev_close = closes[idx - 1]
        trs.append(
            max(
                highs[idx] - lows[idx],
                abs(highs[idx] - prev_close),
                abs(lows[idx] - prev_close),
            )
        )
    return trs


def atr(highs: list[float], lows: list[float], closes: list[float], period: int = ATR_PERIOD) -> float:
    if len(highs) < period + 1:
        return 0.0

    trs = true_ranges(highs, lows, closes)
    value = sum(trs[:period]) / period
    for tr in trs[period:]:
        value = (value * (period - 1) + tr) / period
    return value


def synthetic_highs_lows(prices: list[float]) -> tuple[list[float], list[float]]:
    highs = [price * SYNTHETIC_HIGH_FACTOR for price in prices]
    lows = [price * SYNTHETIC_LOW_FACTOR for price in prices]
    return highs, lows


def compute_indicators(prices: list[float], price: float) -> IndicatorSet:
    """Build the full indicator set for ``price`` from a (synthetic) close series."""
    highs, lows = synthetic_highs_lows(prices)
    atr_value = atr(highs, lows, prices)
    return IndicatorSet(
        rsi=rsi(prices),
        macd=macd(prices),
        bollinger=bollinger_bands(prices),
        atr=atr_value,
        atr_percent=(atr_value / price) * 100,
        ema9=ema(prices, 9),
        ema21=ema(prices, 21),
        ema50=ema(prices, 50),
    )
