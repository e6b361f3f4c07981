import os
import sys

from loguru import logger


def setup_logger(
    *, json_logs: bool = False, level: str = "INFO", log_dir: str | None = "logs"
) -> None:
    """Configure loguru for the checker.

    Console level controlled by LOG_LEVEL env (default: INFO).
    When log_dir is set, a DEBUG file sink keeps every endpoint attempt
    for later inspection. Pass log_dir=None for console-only output.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stderr, serialize=True, level=console_level)
    else:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
        )

    if log_dir:
        logger.add(
            f"{log_dir}/poap_checker_{{time:YYYY-MM-DD}}.log",
            rotation="10 MB",
            retention="7 days",
            compression="gz",
            level="DEBUG",
            serialize=json_logs,
        )
