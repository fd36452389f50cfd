"""Entry point for the token risk engine CLI.

    token-risk analyze <token>
    token-risk pnl <wallet> <token> [<token> ...]

Prints the report as JSON on stdout; logs go to stderr and logs/.
"""

import argparse
import asyncio
import sys

from loguru import logger

from config.settings import settings
from src.db.redis import RedisReportCache
from src.parsers.chain_gateway import BscChainGateway
from src.parsers.exceptions import EngineError
from src.parsers.pyth.client import PythClient
from src.parsers.risk_engine import RiskEngine
from src.utils.address import is_valid_token_address
from src.utils.logger import setup_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="token-risk", description=__doc__.splitlines()[0])
    parser.add_argument("--json-logs", action="store_true", help="serialize logs as JSON")
    parser.add_argument("--no-cache", action="store_true", help="bypass the report cache")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="rug-pull / honeypot risk report")
    analyze.add_argument("token")

    pnl = sub.add_parser("pnl", help="FIFO PNL of a wallet over the lookback window")
    pnl.add_argument("wallet")
    pnl.add_argument("tokens", nargs="+")
    return parser


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(json_logs=args.json_logs, level="INFO")

    addresses = [args.token] if args.command == "analyze" else [args.wallet, *args.tokens]
    bad = [a for a in addresses if not is_valid_token_address(a)]
    if bad:
        logger.error(f"Invalid address: {', '.join(bad)}")
        return 2

    chain = BscChainGateway.from_settings()
    oracle = PythClient(
        settings.pyth_feed_ids,
        base_url=settings.pyth_hermes_url,
        max_rps=settings.pyth_max_rps,
    )
    cache = RedisReportCache.from_url(settings.redis_url) if settings.enable_report_cache else None
    engine = RiskEngine(chain, oracle, cache=cache)

    try:
        if args.command == "analyze":
            report = await engine.analyze_token(args.token, use_cache=not args.no_cache)
        else:
            report = await engine.wallet_pnl(args.wallet, args.tokens, use_cache=not args.no_cache)
        print(report.model_dump_json(indent=2))
        return 0
    except EngineError as e:
        logger.error(str(e))
        return 1
    finally:
        await chain.close()
        await oracle.close()
        if cache is not None:
            await cache.close()


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
