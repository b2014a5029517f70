from __future__ import annotations

import math
import random

from .models import InvalidInputError

HISTORY_STEPS = 60
NOISE_FRACTION = 0.02
STEP_FLOOR = 0.95


def generate_price_history(
    current_price: float,
    change_24h: float,
    rng: random.Random | None = None,
) -> list[float]:
    """Simulate a 120-point path that ends near ``current_price``.

    There is no real history behind it: the start price is back-solved from the
    24h change and every step drifts 1/60 of the remaining distance toward the
    current price plus up to +/-1% uniform noise. Without ``rng`` the module
    level generator is used, so two calls with the same inputs differ.
    """
    if not math.isfinite(current_price) or current_price <= 0:
        raise InvalidInputError(f"current_price must be a positive number, got {current_price!r}")
    if not math.isfinite(change_24h) or change_24h <= -100:
        raise InvalidInputError(f"change_24h must be greater than -100, got {change_24h!r}")

    draw = rng.random if rng is not None else random.random
    price = current_price / (1 + change_24h / 100)
    history: list[float] = []
    for _ in range(HISTORY_STEPS):
        history.append(price)
        drift = (current_price - price) / HISTORY_STEPS
        noise = (draw() - 0.5) * price * NOISE_FRACTION
        price = max(price + drift + noise, price * STEP_FLOOR)
        history.append(price)
    return history
