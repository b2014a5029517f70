from __future__ import annotations

from typing import Callable

import pytest

from perp_signal_service.config import Settings


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides: object) -> Settings:
        values: dict[str, object] = {
            "telegram_bot_token": "",
            "telegram_chat_id": "",
            "luzia_api_key": "",
            "hyperliquid_api_url": "https://api.hyperliquid.xyz/info",
            "luzia_api_url": "https://api.luzia.dev/v1",
            "cron_mode": False,
            "top_n": 10,
            "account_balance_usd": 10000.0,
            "risk_profile_name": "moderate",
            "fixed_take_profit_ladder": False,
            "telegram_max_signals": 3,
            "http_timeout_seconds": 10.0,
        }
        values.update(overrides)
        return Settings(**values)

    return _make
