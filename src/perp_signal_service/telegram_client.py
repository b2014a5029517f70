from __future__ import annotations

import logging
import time

import requests

from .message_formatter import format_signal_message
from .models import RiskPlan, Signal


class TelegramNotifier:
    def __init__(self, bot_token: str, chat_id: str, timeout: float = 10) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout
        self.enabled = bool(bot_token and chat_id)

    def _endpoint(self, method: str) -> str:
        return f"https://api.telegram.org/bot{self.bot_token}/{method}"

    def _post(self, method: str, body: dict[str, object]) -> requests.Response:
        return requests.post(self._endpoint(method), json=body, timeout=self.timeout)

    def send_signal(self, signal: Signal, plan: RiskPlan) -> tuple[bool, int | None, int | None, int]:
        if not self.enabled:
            return True, None, None, 0

        message, parse_mode = format_signal_message(signal, plan)
        start = time.perf_counter()
        try:
            resp = self._post(
                "sendMessage",
                {"chat_id": self.chat_id, "text": message, "parse_mode": parse_mode},
            )
        except requests.RequestException as exc:
            logging.warning("event=telegram_send_error asset=%s err=%s", signal.asset, exc)
            return False, None, None, int((time.perf_counter() - start) * 1000)

        latency_ms = int((time.perf_counter() - start) * 1000)
        if 200 <= resp.status_code < 300:
            message_id = resp.json().get("result", {}).get("message_id")
            return True, resp.status_code, int(message_id) if message_id is not None else None, latency_ms
        return False, resp.status_code, None, latency_ms
