from __future__ import annotations

from dataclasses import replace
from uuid import uuid4
import logging
import random
import time

from .config import Settings
from .data.hyperliquid_client import HyperliquidClient
from .data.luzia_client import LuziaTickerClient
from .engine.ranker import rank_signals
from .engine.scoring import ScoringConfig, analyze_asset
from .models import InvalidInputError, MarketSnapshot, RiskPlan, Signal
from .risk_engine import FIXED_LADDER_RATIOS, size_position
from .telegram_client import TelegramNotifier

# Hard pre-filter on 24h notional volume, applied before any scoring.
MIN_VOLUME_USD = 5_000_000


def passes_volume_filter(snapshot: MarketSnapshot) -> bool:
    return snapshot.volume >= MIN_VOLUME_USD


class SignalService:
    def __init__(
        self,
        settings: Settings,
        *,
        market_client: HyperliquidClient | None = None,
        ticker_client: LuziaTickerClient | None = None,
        notifier: TelegramNotifier | None = None,
        scoring_config: ScoringConfig = ScoringConfig(),
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self.run_id = uuid4().hex
        self.profile = settings.risk_profile
        self.scoring_config = scoring_config
        self.rng = rng
        self.market_client = market_client or HyperliquidClient(
            base_url=settings.hyperliquid_api_url,
            timeout=settings.http_timeout_seconds,
        )
        self.ticker_client = ticker_client or LuziaTickerClient(
            api_key=settings.luzia_api_key,
            base_url=settings.luzia_api_url,
            timeout=settings.http_timeout_seconds,
        )
        self.notifier = notifier or TelegramNotifier(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
            timeout=settings.http_timeout_seconds,
        )

    def _apply_change_override(self, snapshot: MarketSnapshot) -> MarketSnapshot:
        change_24h = self.ticker_client.fetch_change_24h(snapshot.asset)
        if change_24h is None:
            return snapshot
        return replace(snapshot, change_24h=change_24h)

    def analyze(self, snapshots: list[MarketSnapshot]) -> list[Signal]:
        signals: list[Signal] = []
        skipped_volume = 0
        for snapshot in snapshots:
            if not passes_volume_filter(snapshot):
                skipped_volume += 1
                continue
            snapshot = self._apply_change_override(snapshot)
            try:
                signals.append(analyze_asset(snapshot, rng=self.rng, config=self.scoring_config))
            except InvalidInputError as exc:
                logging.warning("event=asset_skipped run_id=%s asset=%s reason=invalid_input err=%s", self.run_id, snapshot.asset, exc)
        logging.info(
            "event=universe_analyzed run_id=%s assets=%d scored=%d skipped_low_volume=%d",
            self.run_id,
            len(snapshots),
            len(signals),
            skipped_volume,
        )
        return signals

    def size(self, signal: Signal) -> RiskPlan:
        ladder = FIXED_LADDER_RATIOS if self.settings.fixed_take_profit_ladder else None
        return size_position(signal, self.settings.account_balance_usd, self.profile, ladder_ratios=ladder)

    def run_once(self, top_n: int | None = None) -> list[tuple[Signal, RiskPlan]]:
        top_n = self.settings.top_n if top_n is None else top_n
        started = time.perf_counter()
        snapshots = self.market_client.fetch_snapshots()
        ranked = rank_signals(self.analyze(snapshots), top_n)
        results = [(signal, self.size(signal)) for signal in ranked]
        logging.info(
            "event=run_complete run_id=%s signals=%d profile=%s total_ms=%d",
            self.run_id,
            len(results),
            self.settings.risk_profile_name,
            int((time.perf_counter() - started) * 1000),
        )
        return results

    def notify(self, results: list[tuple[Signal, RiskPlan]]) -> int:
        if not self.notifier.enabled:
            logging.info("event=telegram_skip run_id=%s reason=not_configured", self.run_id)
            return 0

        sent = 0
        for signal, plan in results[: self.settings.telegram_max_signals]:
            ok, http_status, message_id, latency_ms = self.notifier.send_signal(signal, plan)
            if ok:
                sent += 1
                logging.info(
                    "event=telegram_send_success run_id=%s asset=%s message_id=%s latency_ms=%d",
                    self.run_id,
                    signal.asset,
                    message_id if message_id is not None else "na",
                    latency_ms,
                )
            else:
                logging.warning(
                    "event=telegram_send_fail run_id=%s asset=%s http_status=%s",
                    self.run_id,
                    signal.asset,
                    http_status if http_status is not None else "na",
                )
        return sent
