import os
import sys

from loguru import logger

# Per-request client chatter (retries, reverts); file sink only
CLIENT_TAGS = ("[RPC]", "[MORALIS]", "[PYTH]")


def _console_filter(record: dict) -> bool:
    if record["level"].no > logger.level("DEBUG").no:
        return True
    return not record["message"].startswith(CLIENT_TAGS)


def setup_logger(*, json_logs: bool = False, level: str = "INFO") -> None:
    """Configure loguru for risk and PNL reports.

    Console level comes from LOG_LEVEL (default: ``level``). Messages carry a
    bracketed component tag ([ENGINE], [HOLDERS], [HONEYPOT] ...); DEBUG lines
    from the upstream clients stay out of the console even at DEBUG level.
    The dated file sink always captures DEBUG so a degraded sub-analysis can
    be traced back to the upstream call that failed.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stderr, serialize=True, level=console_level, filter=_console_filter)
    else:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            filter=_console_filter,
            colorize=True,
        )

    logger.add(
        "logs/risk_engine_{time:YYYY-MM-DD}.log",
        rotation="20 MB",
        retention="7 days",
        compression="gz",
        level="DEBUG",
        serialize=json_logs,
    )
