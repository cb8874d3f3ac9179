"""
CLI for training the water quality models.

Usage:
    python -m water_quality.analysis.train [options]
"""

import argparse
import asyncio
import logging
import sys

import structlog

from water_quality.core.logger import setup_logging

from .cli import add_input_arguments, add_store_arguments, build_engine_config, read_input
from .engine import AnalysisEngine
from .models import EngineConfig, Reading

logger = structlog.get_logger(__name__)


def parse_arguments():
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Train the anomaly detector and quality classifier on historical readings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
        # Train on 500 synthetic in-band readings
        python -m water_quality.analysis.train

        # Train from a sensor export, storing models in Redis
        python -m water_quality.analysis.train \\
            --input readings.csv \\
            --store redis \\
            --redis-host redis

        # Forget the stored models
        python -m water_quality.analysis.train --reset
        """,
    )

    add_input_arguments(parser, default_preset="steady")

    # Method-specific parameters
    parser.add_argument(
        "--anomaly-epochs",
        type=int,
        default=50,
        help="Training epochs for the anomaly detector (default: 50)",
    )
    parser.add_argument(
        "--classification-epochs",
        type=int,
        default=60,
        help="Training epochs for the classifier (default: 60)",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Remove stored models and exit without training",
    )

    add_store_arguments(parser)
    return parser.parse_args()


def build_config(args) -> EngineConfig:
    """Build configuration from arguments"""
    return build_engine_config(
        args,
        anomaly_config={"epochs": args.anomaly_epochs},
        classification_config={"epochs": args.classification_epochs},
    )


def log_progress(model_name: str, epoch: int, logs: dict[str, float]) -> None:
    logger.info(
        "Epoch complete",
        model=model_name,
        epoch=epoch + 1,
        **{key: round(value, 5) for key, value in logs.items()},
    )


async def train(engine: AnalysisEngine, readings: list[Reading]) -> dict:
    """Train both models and summarize the result"""
    history = await engine.train_models(readings, on_progress=log_progress)
    return {
        "n_readings": len(readings),
        "final": {name: logs[-1] if logs else {} for name, logs in history.items()},
        "status": {name: status.to_dict() for name, status in engine.get_model_status().items()},
    }


def main():
    """Main entry point"""
    args = parse_arguments()

    # Setup logging
    log_level = getattr(logging, args.log_level)
    setup_logging(level=log_level)

    logger.info("Starting water quality model training")

    try:
        config = build_config(args)
        engine = AnalysisEngine(config)

        if args.reset:
            engine.reset_models()
            logger.info("Stored models removed")
            return 0

        readings = read_input(args)
        stats = asyncio.run(train(engine, readings))
        logger.info("Training completed successfully", stats=stats)
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.error("Training failed", error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
