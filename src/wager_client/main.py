"""
Threshold Wager Client - Command Line Entry Point

Usage:
    python -m wager_client.main list
    python -m wager_client.main create "ETH > 5000" 5000
    python -m wager_client.main stake 0 exceed 0.5
    python -m wager_client.main end-epoch 0
    python -m wager_client.main price

Options:
    --no-wait       Return after submission instead of waiting for confirmation
    --log-level     Override log level (DEBUG/INFO/WARNING/ERROR)

Configuration:
    Read from environment variables and an optional .env file.
    See wager_client.config for the full list.

Exit codes:
    0  Command succeeded (write confirmed, or submitted with --no-wait)
    1  Validation, oracle, submission or confirmation failure
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from eth_account import Account
from web3 import AsyncWeb3
from web3.middleware import ExtraDataToPOAMiddleware

from wager_client.config import WagerConfig
from wager_client.exceptions import (
    ConfigurationError,
    LedgerReadError,
    OracleUnavailableError,
    SubmissionError,
    ValidationError,
)
from wager_client.ledger import LedgerConfig, LedgerGateway
from wager_client.lifecycle import Bet
from wager_client.oracle import HermesClient
from wager_client.service import ServiceConfig, WagerService
from wager_client.tracking import (
    LoggingNotifier,
    MultiNotifier,
    NotificationSink,
    TelegramNotifier,
    TransactionFlow,
    TransactionFlowTracker,
)

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

WRITE_COMMANDS = ("create", "stake", "end-epoch")


def load_env_file(path: str = ".env") -> None:
    """Load environment variables from .env file if it exists."""
    env_path = Path(path)
    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, _, value = line.partition("=")
                    value = value.strip().strip('"').strip("'")
                    os.environ.setdefault(key.strip(), value)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Threshold Wager Client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Do not wait for transaction confirmation",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List all bets")
    commands.add_parser("price", help="Show the latest oracle price for the configured feeds")

    create = commands.add_parser("create", help="Propose a new bet")
    create.add_argument("title", help='Claim, e.g. "ETH > 5000"')
    create.add_argument("threshold", help="Threshold value, e.g. 5000")

    stake = commands.add_parser("stake", help="Stake on one side of a bet")
    stake.add_argument("bet_id", type=int)
    stake.add_argument("side", help="exceed or not_exceed")
    stake.add_argument("amount", help="Amount in native units, e.g. 0.5")

    end = commands.add_parser("end-epoch", help="Resolve a bet with fresh oracle evidence")
    end.add_argument("bet_id", type=int)

    return parser.parse_args(argv)


def format_bets(bets: List[Bet]) -> str:
    """Render bets as a plain-text table."""
    if not bets:
        return "No bets yet."

    lines = [f"{'ID':>4}  {'STATUS':<7} {'THRESHOLD':>14} {'EXCEED':>14} {'NOT EXCEED':>14}  TITLE"]
    for bet in bets:
        lines.append(
            f"{bet.id:>4}  {bet.status:<7} {bet.threshold_display:>14} "
            f"{bet.pool_exceed_display:>14} {bet.pool_not_exceed_display:>14}  {bet.title}"
        )
    return "\n".join(lines)


def build_gateway(config: WagerConfig) -> LedgerGateway:
    """Create the web3 connection and signing account, and inject them."""
    web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(config.rpc_url))
    web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

    account = Account.from_key(config.private_key) if config.can_sign else None
    return LedgerGateway(
        web3,
        config.contract_address,
        account=account,
        config=LedgerConfig(explorer_tx_url=config.explorer_tx_url),
    )


def build_notifier(config: WagerConfig) -> NotificationSink:
    """Log always; also send to Telegram when configured."""
    if config.telegram_bot_token and config.telegram_chat_id:
        return MultiNotifier([
            LoggingNotifier(),
            TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id),
        ])
    return LoggingNotifier()


async def run_command(
    args: argparse.Namespace,
    service: WagerService,
    oracle: HermesClient,
    config: WagerConfig,
) -> int:
    """Dispatch one CLI command. Errors propagate to main_async."""
    if args.command == "list":
        print(format_bets(await service.refresh_bets()))
        return 0

    if args.command == "price":
        prices = await oracle.fetch_latest_prices(config.price_feed_ids)
        for feed_id, quote in prices.items():
            print(f"0x{feed_id}: {quote.value} ± {quote.confidence} ({quote.published_at.isoformat()})")
        return 0

    flow: TransactionFlow
    if args.command == "create":
        flow = await service.create_bet(args.title, args.threshold)
    elif args.command == "stake":
        flow = await service.place_stake(args.bet_id, args.side, args.amount)
    else:
        flow = await service.end_epoch(args.bet_id)

    print(f"Submitted {flow.action}: {flow.reference}")
    if args.no_wait:
        return 0

    flow = await service.wait(flow)
    if flow.succeeded:
        print(f"Transaction Successful: {flow.explorer_url}")
        return 0

    print(f"Transaction Failed: {flow.error}", file=sys.stderr)
    return 1


async def main_async(args: argparse.Namespace) -> int:
    """Async main function."""
    try:
        config = WagerConfig.from_env()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if args.command != "price" and not config.contract_address:
        logger.error("WAGER_CONTRACT_ADDRESS environment variable is required")
        return 1

    if args.command in WRITE_COMMANDS and not config.can_sign:
        logger.error("WAGER_PRIVATE_KEY environment variable is required for writes")
        return 1

    gateway = build_gateway(config) if config.contract_address else None
    notifier = build_notifier(config)

    async with HermesClient(
        base_url=config.hermes_url,
        timeout=config.oracle_timeout,
        max_retries=config.oracle_max_retries,
    ) as oracle:
        tracker = TransactionFlowTracker(
            gateway,
            notifier=notifier,
            poll_interval=config.receipt_poll_interval,
        )
        service = WagerService(
            gateway,
            oracle,
            tracker,
            ServiceConfig(
                price_feed_ids=config.price_feed_ids,
                protocol_fee_wei=config.protocol_fee_wei,
            ),
        )

        try:
            return await run_command(args, service, oracle, config)
        except ValidationError as e:
            logger.error(f"Invalid input: {e}")
        except OracleUnavailableError as e:
            logger.error(f"Oracle unavailable, epoch not ended: {e}")
        except SubmissionError as e:
            logger.error(f"Transaction Failed: {e}")
        except LedgerReadError as e:
            logger.error(f"Could not read bets: {e}")
        finally:
            await service.close()
            if isinstance(notifier, MultiNotifier):
                await notifier.close()
        return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    load_env_file()

    args = parse_args(argv)

    if args.log_level:
        logging.getLogger().setLevel(getattr(logging, args.log_level))

    try:
        return asyncio.run(main_async(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
