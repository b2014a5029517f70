from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

from .models import RiskProfile

RISK_PROFILES: dict[str, RiskProfile] = {
    "conservative": RiskProfile(risk_fraction=0.01, min_reward_ratio=2, target_reward_ratio=3, max_leverage=3),
    "moderate": RiskProfile(risk_fraction=0.02, min_reward_ratio=2, target_reward_ratio=3, max_leverage=5),
    "aggressive": RiskProfile(risk_fraction=0.03, min_reward_ratio=1.5, target_reward_ratio=2, max_leverage=10),
}


def get_risk_profile(name: str) -> RiskProfile:
    try:
        return RISK_PROFILES[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown risk profile {name!r}, expected one of {sorted(RISK_PROFILES)}") from None


@dataclass(frozen=True)
class Settings:
    telegram_bot_token: str
    telegram_chat_id: str
    luzia_api_key: str
    hyperliquid_api_url: str
    luzia_api_url: str
    cron_mode: bool
    top_n: int
    account_balance_usd: float
    risk_profile_name: str
    fixed_take_profit_ladder: bool
    telegram_max_signals: int
    http_timeout_seconds: float

    @property
    def risk_profile(self) -> RiskProfile:
        return get_risk_profile(self.risk_profile_name)


def load_settings() -> Settings:
    load_dotenv()

    return Settings(
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID", ""),
        luzia_api_key=os.getenv("LUZIA_API_KEY", ""),
        hyperliquid_api_url=os.getenv("HYPERLIQUID_API_URL", "https://api.hyperliquid.xyz/info"),
        luzia_api_url=os.getenv("LUZIA_API_URL", "https://api.luzia.dev/v1"),
        cron_mode=os.getenv("CRON_MODE", "false").strip().lower() == "true",
        top_n=int(os.getenv("TOP_N", "10")),
        account_balance_usd=float(os.getenv("ACCOUNT_BALANCE_USD", "10000")),
        risk_profile_name=os.getenv("RISK_PROFILE", "moderate").strip().lower(),
        fixed_take_profit_ladder=os.getenv("FIXED_TAKE_PROFIT_LADDER", "0") == "1",
        telegram_max_signals=int(os.getenv("TELEGRAM_MAX_SIGNALS", "3")),
        http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "10")),
    )
