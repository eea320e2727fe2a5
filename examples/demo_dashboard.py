#!/usr/bin/env python3
"""
SENTINEL Demo: Risk Ticks + On-Demand Instrument Predictions

This script demonstrates the SENTINEL pipeline:
1. Mock instrument readings sampled over several ticks
2. Unified CME risk index and alerts per tick
3. Classification, detection and forecast for one instrument
4. Cancelling an in-flight request
"""

import sys
from pathlib import Path
import asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sentinel.errors import PredictionCancelled
from sentinel.events import summarize_alerts
from sentinel.ingestion import MockReadingSource
from sentinel.instruments import Instrument
from sentinel.models import InferenceService, RuleBasedPredictor
from sentinel.scoring import DetectionTracker, ScoringRules
from sentinel.state import SnapshotBuffer, Ticker

import logging

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def demo_dashboard():
    """Run dashboard backend demo."""
    logger.info("=" * 80)
    logger.info("SENTINEL Dashboard Demo")
    logger.info("=" * 80)

    rules = ScoringRules.from_config()
    buffer = SnapshotBuffer()
    tracker = DetectionTracker(rules)
    ticker = Ticker(
        source=MockReadingSource(seed=42),
        buffer=buffer,
        rules=rules,
        interval=0.1,
        tracker=tracker,
    )

    # Step 1: Run ticks
    logger.info("\n" + "-" * 80)
    logger.info("STEP 1: Sampling Readings")
    logger.info("-" * 80)

    await ticker.run(max_ticks=10)

    frame = buffer.to_frame()
    logger.info(f"\n{frame[['risk_score', 'risk_level', 'cme_alert']].to_string()}")

    alerts = [snap.alert for snap in buffer.history() if snap.alert]
    summary = summarize_alerts(alerts)
    logger.info(f"✓ {buffer.size()} ticks, {summary['total_alerts']} CME alerts")
    if alerts:
        logger.info(alerts[-1].message)

    # Step 2: Detail view for one instrument
    logger.info("\n" + "-" * 80)
    logger.info("STEP 2: Instrument Predictions (STEP)")
    logger.info("-" * 80)

    service = InferenceService(predictor=RuleBasedPredictor(rules=rules, latency=0.2))
    reading = buffer.latest().reading(Instrument.STEP)

    results = await service.predict_all(Instrument.STEP, reading)
    for kind, prediction in results.items():
        logger.info(f"  {kind.value}: {prediction.to_dict()}")

    logger.info(f"  STEP ACTIVE ticks: {tracker.event_count(Instrument.STEP)}")

    # Step 3: Cancel a request (user closed the detail view)
    logger.info("\n" + "-" * 80)
    logger.info("STEP 3: Cancelling In-Flight Request")
    logger.info("-" * 80)

    task = asyncio.create_task(service.classify(Instrument.MAG, buffer.latest().reading(Instrument.MAG)))
    await asyncio.sleep(0.05)
    service.cancel(Instrument.MAG)
    try:
        await task
    except PredictionCancelled:
        logger.info("✓ MAG classification cancelled; buffer still holds %d ticks", buffer.size())

    logger.info("\n" + "=" * 80)
    logger.info("Demo complete")
    logger.info("=" * 80)


if __name__ == '__main__':
    asyncio.run(demo_dashboard())
