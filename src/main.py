#!/usr/bin/env python3
"""Main entry point for Cadence."""

import asyncio
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent))

from config import settings
from scheduler import TaskScheduler

logger = logging.getLogger(__name__)


def configure_logging(level: str = None, log_file: str = None):
    """Configure root logging from settings."""
    level = level or settings.log_level
    log_file = log_file if log_file is not None else settings.log_file

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def heartbeat():
    logger.info("heartbeat")


async def run(heartbeat_cron: str = None):
    """Run a scheduler until cancelled."""
    async with TaskScheduler() as scheduler:
        if heartbeat_cron:
            scheduler.schedule_cron("heartbeat", heartbeat, heartbeat_cron)
        await asyncio.Event().wait()


def main(argv=None):
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Cadence in-process scheduler")
    parser.add_argument(
        "--heartbeat-cron",
        default=None,
        help="Cron expression for a heartbeat task that logs each run"
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help=f"Log level (default: {settings.log_level})"
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        asyncio.run(run(args.heartbeat_cron))
    except KeyboardInterrupt:
        logger.info("Shutting down Cadence...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
