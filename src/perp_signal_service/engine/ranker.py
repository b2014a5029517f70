from __future__ import annotations

import logging

from perp_signal_service.models import InvalidInputError, Signal


def rank_signals(signals: list[Signal], top_n: int) -> list[Signal]:
    if top_n < 0:
        raise InvalidInputError(f"top_n must be non-negative, got {top_n}")

    ranked = sorted(signals, key=lambda s: s.score, reverse=True)[:top_n]
    logging.info(
        "event=signals_ranked candidates=%d top_n=%d selected=%s",
        len(signals),
        top_n,
        [(s.asset, s.score) for s in ranked],
    )
    return ranked
