"""
Inspect or adjust persisted rating state.

    python -m ratingkit --config config/rating.yaml stats
    python -m ratingkit --config config/rating.yaml evaluate
    python -m ratingkit --state ./state.json session
    python -m ratingkit reset
"""
from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Optional, Sequence

from .config import RatingConfig
from .errors import RatingKitError
from .logging_config import setup_logging
from .manager import RatingManager
from .storage import StateKey


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ratingkit", description="Rating prompt state tool")
    parser.add_argument("--config", help="rating YAML config path")
    parser.add_argument("--state", help="override JSON state file path (json backend)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"],
        help="minimum level for ratingkit log records",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("stats", help="print counters and sentiment flags")
    sub.add_parser("evaluate", help="print the current decision and its reasons")
    sub.add_parser("session", help="record one app session")
    sub.add_parser("success", help="record one success flow")
    sub.add_parser("reset", help="clear all persisted rating state")
    return parser


def load_config(path: Optional[str], state: Optional[str]) -> RatingConfig:
    cfg = RatingConfig.from_yaml(path) if path else RatingConfig.default()
    if state:
        cfg = replace(cfg, storage=replace(cfg.storage, backend="json", path=state))
    return cfg


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level="WARNING", library_level=args.log_level, force=True)

    try:
        cfg = load_config(args.config, args.state)
    except (OSError, RatingKitError) as e:
        print(f"error: {e}")
        return 2

    manager = RatingManager(cfg)
    try:
        if args.command == "stats":
            stats = manager.get_statistics()
            last = stats.last_rating_request_at.isoformat() if stats.last_rating_request_at else "-"
            print(f"app_sessions:          {stats.app_sessions}")
            print(f"success_flows:         {stats.success_flows}")
            print(f"last_rating_request:   {last}")
            for key in (
                StateKey.SENTIMENT_GATE_SHOWN,
                StateKey.SENTIMENT_POSITIVE,
                StateKey.USER_DECLINED_PERMANENTLY,
            ):
                print(f"{key.value + ':':<22} {manager.store.get(key, '-')}")
        elif args.command == "evaluate":
            decision = manager.decide()
            print(f"{decision.action.value} ({', '.join(decision.reasons)})")
        elif args.command == "session":
            print(manager.record_session_event())
        elif args.command == "success":
            print(manager.record_success_event())
        elif args.command == "reset":
            manager.reset()
            print("reset")
    finally:
        manager.close()
    return 0
