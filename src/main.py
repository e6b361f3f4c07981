"""Console entry point: check one wallet for the configured POAPs.

Usage:
    python -m src.main 0xYourWalletAddress
"""

import argparse
import asyncio
import sys
from decimal import Decimal

from loguru import logger

from config.settings import settings
from src.poap.exceptions import UnexpectedCheckError, ValidationError
from src.poap.models import CheckerConfig, WalletCheck
from src.poap.orchestrator import check_wallet
from src.utils.logger import setup_logger

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID_ADDRESS = 2

_CENTS = Decimal("0.01")


class ConsoleNotifier:
    """Presentation adapter for the terminal: status lines and warnings via loguru."""

    def __init__(self) -> None:
        self.errors: list[str] = []

    def status(self, message: str) -> None:
        logger.info(f"[STATUS] {message}")

    def error(self, message: str) -> None:
        self.errors.append(message)
        logger.warning(f"[STATUS] {message}")


def format_report(check: WalletCheck) -> str:
    lines = [f"Wallet: {check.address}"]
    if check.entries:
        for entry in check.entries:
            lines.append(
                f"  {entry.display_name} #{entry.event_id} on {entry.chain} "
                f"({entry.points} pts) {entry.collector_url}"
            )
    else:
        lines.append("  No matching POAPs found.")
    if check.unreachable_chains:
        lines.append(f"  Unreachable: {', '.join(check.unreachable_chains)}")
    # 2 decimals max, trailing zeros dropped (1.00 -> 1, 0.660 -> 0.66)
    lines.append(f"Total bonus: {check.score.quantize(_CENTS).normalize():f} pts")
    return "\n".join(lines)


async def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check a wallet for bonus POAPs")
    parser.add_argument("address", help="EVM wallet address (0x + 40 hex chars)")
    parser.add_argument("--json-logs", action="store_true", help="Serialize logs as JSON")
    parser.add_argument(
        "--log-dir", default=None, help="Also write DEBUG logs to daily files in this directory"
    )
    args = parser.parse_args(argv)

    setup_logger(json_logs=args.json_logs, log_dir=args.log_dir)
    config = CheckerConfig.from_settings(settings)
    notifier = ConsoleNotifier()

    try:
        result = await check_wallet(args.address, config, notifier)
    except ValidationError:
        return EXIT_INVALID_ADDRESS
    except UnexpectedCheckError:
        return EXIT_FAILED

    print(format_report(result))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
