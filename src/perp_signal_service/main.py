from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging
import math
import sys

from .config import RISK_PROFILES, load_settings
from .message_formatter import format_report
from .models import InvalidInputError, MarketDataError
from .service import SignalService


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {value}")
    return number


def positive_float(value: str) -> float:
    number = float(value)
    if not math.isfinite(number) or number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="perp-signals",
        description="Rank crypto perpetuals by technical score and size trades. Not financial advice.",
    )
    parser.add_argument("--top", type=non_negative_int, default=None, help="Number of signals to print (default: TOP_N or 10)")
    parser.add_argument("--live", action="store_true", help="Label the run as live instead of a paper scan")
    parser.add_argument("--profile", choices=sorted(RISK_PROFILES), default=None, help="Risk profile")
    parser.add_argument("--balance", type=positive_float, default=None, help="Account balance in USD used for sizing")
    parser.add_argument("--notify", action="store_true", help="Send the top signals to Telegram")
    parser.add_argument("--json", action="store_true", help="Print signals and risk plans as JSON instead of the text report")
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    args = build_parser().parse_args(argv)

    overrides: dict[str, object] = {}
    if args.top is not None:
        overrides["top_n"] = args.top
    if args.profile is not None:
        overrides["risk_profile_name"] = args.profile
    if args.balance is not None:
        overrides["account_balance_usd"] = args.balance

    try:
        settings = replace(load_settings(), **overrides)
        service = SignalService(settings)
    except ValueError as exc:
        logging.error("event=config_invalid err=%s", exc)
        return 2
    try:
        results = service.run_once()
    except MarketDataError as exc:
        logging.error("event=run_aborted run_id=%s err=%s", service.run_id, exc)
        return 1
    except InvalidInputError as exc:
        logging.error("event=run_aborted run_id=%s err=%s", service.run_id, exc)
        return 2

    if args.json:
        print(json.dumps([{"signal": signal.to_dict(), "risk_plan": plan.to_dict()} for signal, plan in results], indent=2))
    else:
        print(
            format_report(
                results,
                profile=settings.risk_profile,
                profile_name=settings.risk_profile_name,
                account_balance=settings.account_balance_usd,
                top_n=settings.top_n,
                live=args.live,
            )
        )

    if args.notify or settings.cron_mode:
        service.notify(results)
    return 0


if __name__ == "__main__":
    sys.exit(main())
