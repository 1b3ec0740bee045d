"""
esgate — Command Line Entry Point
=================================

Usage:
    python -m esgate                       serve on BACKEND_HOST:BACKEND_PORT
    python -m esgate serve
    python -m esgate seed --start 1 --stop 100
                                           index person1..person99 and exit

Exit codes:
    0  clean shutdown / seeding finished
    1  seeding failed (engine unreachable, index creation or an insert rejected)

Startup failures of `serve` (health check, index creation) are raised from
the application lifespan; uvicorn reports them and exits non-zero.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn

from esgate.config import settings
from esgate.exceptions import EngineError
from esgate.main import setup_logging
from esgate.services.engine_client import EngineClient

logger = logging.getLogger("esgate")


def serve() -> None:
    uvicorn.run(
        "esgate.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


async def seed(start: int, stop: int) -> int:
    """Create the index if needed and insert generated employees in [start, stop)."""
    async with EngineClient(settings.connection_config()) as client:
        await client.check_health()
        await client.create_index()
        return await client.seed(start, stop)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="esgate",
        description="HTTP gateway for an Elasticsearch-compatible engine",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("serve", help="Run the HTTP gateway (default)")

    seed_parser = subparsers.add_parser("seed", help="Insert generated employee records")
    seed_parser.add_argument("--start", type=int, default=1, help="First id (inclusive)")
    seed_parser.add_argument("--stop", type=int, required=True, help="Last id (exclusive)")

    args = parser.parse_args(argv)

    if args.command == "seed":
        setup_logging()
        try:
            inserted = asyncio.run(seed(args.start, args.stop))
        except EngineError as e:
            logger.error("Seeding failed: %s", e.message)
            return 1
        logger.info("Seeded %d document(s) into index %s", inserted, settings.engine_index)
        return 0

    serve()
    return 0


if __name__ == "__main__":
    sys.exit(main())
