"""
Console entrypoint for the live board.

Usage: liveboard <mint> [--endpoint URL] [--config FILE] [--reconnect]

Options:
  mint                  Token mint (subscription key); defaults to config
  --endpoint URL        Websocket endpoint (default: PumpPortal data feed)
  --config FILE         TOML config (sections: feed, reconnect, board, logging)
  --reconnect           Enable reconnect with exponential backoff
  --telemetry FILE      Append JSONL telemetry events to FILE
  --log-level LEVEL     Root log level (default from config, INFO)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid
from pathlib import Path
from typing import Any, Optional

from liveboard.adapters.telemetry.jsonl import JsonlTelemetry
from liveboard.config.config_loader import ConfigLoader
from liveboard.feed.errors import ConfigurationError
from liveboard.feed.manager import LiveBoard
from liveboard.feed.types import BoardSnapshot

logger = logging.getLogger("liveboard.cli")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="liveboard", description="Live token trade board")
    parser.add_argument(
        "mint",
        nargs="?",
        help="Token mint to subscribe to. Defaults to feed.subscription_key in the config.",
    )
    parser.add_argument(
        "--endpoint",
        help="Websocket endpoint. Defaults to feed.endpoint in the config.",
    )
    parser.add_argument(
        "--config",
        help="TOML config file.",
    )
    parser.add_argument(
        "--reconnect",
        action="store_true",
        help="Reconnect with exponential backoff after close/error.",
    )
    parser.add_argument(
        "--telemetry",
        type=Path,
        help="Append JSONL telemetry events to this file.",
    )
    parser.add_argument(
        "--log-level",
        help="Root log level (DEBUG, INFO, WARNING, ...).",
    )
    return parser.parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    feed: dict[str, Any] = {}
    if args.mint:
        feed["subscription_key"] = args.mint
    if args.endpoint:
        feed["endpoint"] = args.endpoint
    if feed:
        overrides["feed"] = feed
    if args.reconnect:
        overrides["reconnect"] = {"enabled": True}
    logging_section: dict[str, Any] = {}
    if args.log_level:
        logging_section["level"] = args.log_level.upper()
    if args.telemetry:
        logging_section["telemetry_path"] = str(args.telemetry)
    if logging_section:
        overrides["logging"] = logging_section
    return overrides


def format_snapshot(snapshot: BoardSnapshot) -> str:
    """One status line per update: state, price, candle, tape size, ladder top."""
    price = "-" if snapshot.last_price is None else f"{snapshot.last_price:.10g}"
    parts = [f"[{snapshot.connection_state.value}]", f"price={price}"]

    candle = snapshot.candle_update
    if candle is not None:
        parts.append(
            f"1m(t={candle['time']} o={candle['open']:.10g} h={candle['high']:.10g} "
            f"l={candle['low']:.10g} c={candle['close']:.10g})"
        )

    parts.append(f"tape={len(snapshot.tape)}")

    depth = snapshot.depth
    if depth.best_bid is not None and depth.best_ask is not None:
        parts.append(f"ladder={depth.best_bid:.10g}/{depth.best_ask:.10g} (synthetic)")

    latest = snapshot.tape[0] if snapshot.tape else None
    if latest is not None:
        parts.append(f"last={latest.side.value} {latest.size:g}")

    return " ".join(parts)


async def run_board(board: LiveBoard, endpoint: Optional[str], mint: Optional[str]) -> None:
    board.subscribe(lambda snapshot: print(format_snapshot(snapshot), flush=True))
    await board.start(endpoint, mint)
    try:
        await board.wait_closed()
    finally:
        await board.stop()
        logger.info(f"Board stopped: {board.get_stats()}")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    loader = ConfigLoader()
    try:
        board_file = loader.load_board_file(args.config, _cli_overrides(args))
        config = loader.to_board_config(board_file)
    except (ConfigurationError, FileNotFoundError) as e:
        print(f"[!] {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=board_file.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    telemetry = None
    if board_file.logging.telemetry_path:
        telemetry = JsonlTelemetry(
            session_id=uuid.uuid4().hex,
            sink_path=Path(board_file.logging.telemetry_path),
        )

    board = LiveBoard(config, telemetry=telemetry)
    try:
        asyncio.run(run_board(board, config.feed.endpoint, config.feed.subscription_key))
    except ConfigurationError as e:
        print(f"[!] {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nShutdown requested.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
