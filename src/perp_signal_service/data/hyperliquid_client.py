from __future__ import annotations

import logging
from typing import Any

import requests

from perp_signal_service.models import MarketDataError, MarketSnapshot

# dayNtlVlm is scaled by this factor before the volume thresholds are applied.
DAY_NOTIONAL_VOLUME_SCALE = 1_000_000


def _to_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)


def parse_asset_context(asset: str, ctx: dict[str, Any]) -> MarketSnapshot:
    funding = _to_float(ctx.get("funding"))
    volume = _to_float(ctx.get("dayNtlVlm")) * DAY_NOTIONAL_VOLUME_SCALE
    prev_price = _to_float(ctx.get("prevDayPx"))
    mark_price = _to_float(ctx.get("markPx"))
    momentum = ((mark_price - prev_price) / prev_price) * 100 if prev_price > 0 else 0.0
    return MarketSnapshot(
        asset=asset,
        mark_price=mark_price,
        change_24h=momentum,
        funding_rate=funding,
        volume=volume,
        momentum=momentum,
    )


def parse_meta_and_asset_ctxs(payload: Any) -> list[MarketSnapshot]:
    try:
        universe = payload[0]["universe"]
        asset_ctxs = payload[1]
    except (IndexError, KeyError, TypeError) as exc:
        raise MarketDataError("Unexpected metaAndAssetCtxs payload shape") from exc
    if not universe or not isinstance(asset_ctxs, list):
        raise MarketDataError("metaAndAssetCtxs payload has no universe")

    snapshots: list[MarketSnapshot] = []
    for meta, ctx in zip(universe, asset_ctxs):
        try:
            snapshots.append(parse_asset_context(str(meta["name"]), ctx))
        except (KeyError, TypeError, ValueError) as exc:
            raise MarketDataError(f"Malformed asset context for {meta!r}") from exc
    return snapshots


class HyperliquidClient:
    def __init__(self, base_url: str = "https://api.hyperliquid.xyz/info", timeout: float = 10) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.session = requests.Session()

    def fetch_snapshots(self) -> list[MarketSnapshot]:
        try:
            resp = self.session.post(self.base_url, json={"type": "metaAndAssetCtxs"}, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise MarketDataError(f"Failed to fetch Hyperliquid data: {exc}") from exc

        snapshots = parse_meta_and_asset_ctxs(payload)
        logging.info("event=market_data_fetched source=hyperliquid assets=%d", len(snapshots))
        return snapshots
