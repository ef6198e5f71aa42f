"""
Run the analytics batch processor outside the web process.

Seals stale batches, schedules analysis jobs and runs them against the
insight model. Use this when the API runs with
BACKGROUND_WORKERS_ENABLED=false (e.g. several web workers).

Usage:
    python scripts/run_batch_processor.py            # loop every BATCH_INTERVAL_SECONDS
    python scripts/run_batch_processor.py --once     # single pass, then exit
    python scripts/run_batch_processor.py --interval 60

Environment Variables:
    OPENROUTER_API_KEY     - OpenRouter API key
    DATABASE_URL           - Database connection string
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add backend directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dotenv import load_dotenv

load_dotenv()

from app.core.config import settings
from app.core.database import close_db, init_db
from app.core.logging_config import setup_logging
from app.services.batch_processor import BatchProcessor

logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Run the analytics batch processor")
    parser.add_argument("--once", action="store_true", help="Run a single pass and exit")
    parser.add_argument(
        "--interval",
        type=int,
        default=settings.batch_interval_seconds,
        help=f"Seconds between passes (default: {settings.batch_interval_seconds})",
    )
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    setup_logging(level=settings.log_level, json_format=settings.log_json)

    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY is not set; analysis jobs will fail and be retried")

    await init_db()
    processor = BatchProcessor()

    try:
        if args.once:
            summary = await processor.run_once()
            logger.info("Batch pass complete", extra=summary)
        else:
            await processor.run_forever(interval_seconds=args.interval)
    finally:
        await close_db()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nStopped.")
