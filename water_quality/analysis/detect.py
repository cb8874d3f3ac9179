"""
CLI for replaying readings through the analysis engine.

Usage:
    python -m water_quality.analysis.detect [options]
"""

import argparse
import logging
import sys
from collections import Counter

import structlog

from water_quality.core.logger import setup_logging

from .alerts import ANOMALY_ALERT_THRESHOLD
from .cli import add_input_arguments, add_store_arguments, build_engine_config, read_input
from .engine import AnalysisEngine
from .models import Reading

logger = structlog.get_logger(__name__)


def parse_arguments():
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Analyze water quality readings with the trained models",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
        # Replay synthetic readings with occasional contamination
        python -m water_quality.analysis.detect

        # Replay a sensor export, warming the window with its first 24 readings
        python -m water_quality.analysis.detect \\
            --input readings.jsonl \\
            --warmup 24

        # Only log readings that raised alerts
        python -m water_quality.analysis.detect --preset chaos --alerts-only
        """,
    )

    add_input_arguments(parser, default_preset="contamination")

    parser.add_argument(
        "--warmup",
        type=int,
        default=0,
        help="Seed the window with the first N readings instead of analyzing them",
    )
    parser.add_argument(
        "--alerts-only",
        action="store_true",
        help="Only log readings that raised alerts",
    )

    add_store_arguments(parser)
    return parser.parse_args()


def replay(engine: AnalysisEngine, readings: list[Reading], alerts_only: bool = False) -> dict:
    """Analyze readings in order and return running stats"""
    stats = {"analyzed": 0, "anomalies": 0, "alerts": 0}
    classes: Counter[str] = Counter()

    for reading in readings:
        result = engine.analyze_reading(reading)
        stats["analyzed"] += 1
        classes[result.classification_label] += 1
        if result.anomaly_score > ANOMALY_ALERT_THRESHOLD:
            stats["anomalies"] += 1
        if result.alerts:
            stats["alerts"] += 1

        if result.alerts or not alerts_only:
            logger.info(
                "Reading analyzed",
                timestamp=reading.timestamp.isoformat() if reading.timestamp else None,
                anomaly_score=result.anomaly_score,
                classification=result.classification_label,
                alerts=result.alerts,
            )

    stats["classifications"] = dict(classes)
    return stats


def main():
    """Main entry point"""
    args = parse_arguments()

    # Setup logging
    log_level = getattr(logging, args.log_level)
    setup_logging(level=log_level)

    logger.info("Starting water quality detection")

    try:
        engine = AnalysisEngine(build_engine_config(args))
        logger.info(
            "Model status",
            **{name: status.to_dict() for name, status in engine.get_model_status().items()},
        )

        readings = read_input(args)
        if args.warmup:
            engine.set_recent_readings(readings[: args.warmup])
            readings = readings[args.warmup :]

        stats = replay(engine, readings, alerts_only=args.alerts_only)
        logger.info("Detection completed successfully", stats=stats)
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.error("Detection failed", error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
