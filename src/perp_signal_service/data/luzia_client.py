from __future__ import annotations

import logging
import math

import requests


class LuziaTickerClient:
    """Optional 24h change source; every failure degrades to ``None``."""

    def __init__(self, api_key: str, base_url: str = "https://api.luzia.dev/v1", timeout: float = 10) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.enabled = bool(api_key)
        self.session = requests.Session()

    def fetch_change_24h(self, asset: str) -> float | None:
        if not self.enabled:
            return None

        symbol = f"{asset.upper()}-USDT"
        try:
            resp = self.session.get(
                f"{self.base_url}/ticker/binance/{symbol}",
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logging.warning("event=luzia_ticker_error symbol=%s err=%s", symbol, exc)
            return None

        if not isinstance(payload, dict):
            return None
        raw = payload.get("change24h")
        if not raw:
            return None
        try:
            change = float(raw)
        except (TypeError, ValueError):
            change = None
        # A change at or below -100% has no valid prior price.
        if change is None or not math.isfinite(change) or change <= -100:
            logging.warning("event=luzia_ticker_bad_value symbol=%s change24h=%r", symbol, raw)
            return None
        return change
