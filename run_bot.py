#!/usr/bin/env python3
"""
Run the two-asset arbitrage bot.

Scans every configured venue in both directions on a fixed cadence and
executes the most profitable direction that clears its threshold.

Usage:
  # Default deployment, settings from .env
  python run_bot.py

  # YAML config plus a single cycle
  python run_bot.py --config configs/bot.example.yaml --once

Environment Variables:
  PRIVATE_KEY: Key of the trading account (required)
  RPC_URL / AUTORPC / HTTP_RPC_LIST: RPC endpoint and auto selection
  CHECK_INTERVAL_MS: Milliseconds between cycles (default: 20000)
  TRADE_AMOUNT_A / TRADE_AMOUNT_B: Trade size per direction (default: 1000)
    (TRADE_AMOUNT_USDC / TRADE_AMOUNT_VUSD are accepted as aliases)
  PROFIT_THRESHOLD_A_TO_B / PROFIT_THRESHOLD_B_TO_A: Minimum profit (default: 3)
  SLIPPAGE_BPS: Slippage tolerance in basis points (default: 150)
  DEADLINE_SEC: V2 swap deadline in seconds (default: 60)
  PARITY_RATE: Units of asset A per unit of asset B (default: 1)
  WETH9: Bridge asset when the router does not report one
  DEBUG: 1 for verbose logging and stack traces
"""

import argparse
import asyncio
import os
import signal
import sys

from dotenv import load_dotenv
from eth_account import Account

from pairarb import logging_config
from pairarb.chain import connect
from pairarb.config import load_config
from pairarb.exceptions import ConfigError
from pairarb.rpc_select import select_rpc
from pairarb.runner import ArbBot
from pairarb.scheduler import CycleScheduler
from pairarb.utils import get_logger

logger = get_logger(__name__)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Two-asset on-chain arbitrage bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", help="Optional YAML config file")
    parser.add_argument(
        "--once", action="store_true", help="Run a single cycle and exit"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Verbose logging (same as DEBUG=1)"
    )
    return parser.parse_args()


def handle_loop_exception(loop, context):
    """Log stray task errors without stopping the process."""
    error = context.get("exception")
    logger.error(f"Unhandled async error: {error or context.get('message')}", exc_info=error)


async def main():
    """Main entry point."""
    load_dotenv()
    args = parse_args()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logging_config.setup()
        logger.error(str(e))
        sys.exit(1)

    if args.debug:
        config.verbose = True
    if config.verbose:
        logging_config.setup_debug()
    else:
        logging_config.setup()

    private_key = os.getenv("PRIVATE_KEY")
    if not private_key:
        logger.error("PRIVATE_KEY environment variable is required")
        sys.exit(1)
    account = Account.from_key(private_key)
    logger.info(f"Loaded account: {account.address}")

    loop = asyncio.get_running_loop()
    loop.set_exception_handler(handle_loop_exception)

    try:
        rpc_url = await select_rpc(
            config.rpc_candidates,
            config.rpc_url,
            timeout_sec=config.rpc_timeout_sec,
            enabled=config.auto_rpc,
        )
        web3 = await loop.run_in_executor(None, connect, rpc_url)
        bot = await ArbBot.from_config(config, web3, account)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

    scheduler = CycleScheduler(
        bot.run_cycle, interval_sec=config.poll_interval_sec, verbose=config.verbose
    )

    if args.once:
        await scheduler.tick()
        return

    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass

    await scheduler.run(stop_event)
    logger.info("👋 Exit")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
