"""CLI entrypoint to run the live SENTINEL ticker."""
import argparse
import asyncio
import logging

from sentinel.config import MOCK_DATA_SEED, READINGS_API_URL, TICK_INTERVAL_SECONDS, setup_logging
from sentinel.ingestion import ApiReadingSource, MockReadingSource, StaticReadingSource
from sentinel.instruments import Instrument
from sentinel.scoring import DetectionTracker, ScoringRules
from .snapshot_buffer import SnapshotBuffer
from .ticker import Ticker

logger = logging.getLogger(__name__)


def build_source(args):
    if args.source == "api":
        if not args.api_url:
            raise SystemExit("--api-url (or READINGS_API_URL) is required for --source api")
        return ApiReadingSource(args.api_url)
    if args.source == "static":
        return StaticReadingSource({inst: args.value for inst in Instrument})
    return MockReadingSource(seed=args.seed)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the live SENTINEL risk ticker")
    parser.add_argument(
        "--source",
        choices=["mock", "static", "api"],
        default="api" if READINGS_API_URL else "mock",
        help="Reading source",
    )
    parser.add_argument(
        "--api-url",
        default=READINGS_API_URL,
        help="Base URL of the telemetry API (for --source api)",
    )
    parser.add_argument(
        "--value",
        type=float,
        default=50.0,
        help="Reading value for every instrument (for --source static)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=MOCK_DATA_SEED,
        help="Random seed (for --source mock)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=TICK_INTERVAL_SECONDS,
        help="Tick interval seconds",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Stop after this many ticks (default: run until interrupted)",
    )
    args = parser.parse_args()

    setup_logging()

    rules = ScoringRules.from_config()
    source = build_source(args)
    ticker = Ticker(
        source=source,
        buffer=SnapshotBuffer(),
        rules=rules,
        interval=args.interval,
        tracker=DetectionTracker(rules),
    )

    try:
        asyncio.run(ticker.run(max_ticks=args.ticks))
    except KeyboardInterrupt:
        logger.info("Shutting down live ticker...")
    finally:
        source.close()


if __name__ == "__main__":  # pragma: no cover
    main()
