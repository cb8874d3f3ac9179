"""
Command-line options shared by the train and detect CLIs.
"""

import argparse
import os
from dataclasses import replace

from water_quality.generator import (
    CHAOS_CONFIG,
    CONTAMINATION_CONFIG,
    NORMAL_CONFIG,
    STEADY_CONFIG,
    ReadingGenerator,
)
from water_quality.generator.models import GeneratorConfig

from .backends import list_stores
from .ingest import load_readings
from .models import EngineConfig, Reading

GENERATOR_PRESETS: dict[str, GeneratorConfig] = {
    "steady": STEADY_CONFIG,
    "normal": NORMAL_CONFIG,
    "contamination": CONTAMINATION_CONFIG,
    "chaos": CHAOS_CONFIG,
}


def add_input_arguments(parser: argparse.ArgumentParser, default_preset: str) -> None:
    parser.add_argument(
        "--input",
        help="Readings file (.csv or .jsonl). Synthetic readings are used when omitted",
    )
    parser.add_argument(
        "--synthetic",
        type=int,
        default=500,
        help="Number of synthetic readings to generate (default: 500)",
    )
    parser.add_argument(
        "--preset",
        choices=list(GENERATOR_PRESETS),
        default=default_preset,
        help=f"Synthetic generator preset (default: {default_preset})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Seed for synthetic readings (default: 42)",
    )


def add_store_arguments(parser: argparse.ArgumentParser) -> None:
    # Artifact store
    parser.add_argument(
        "--store",
        choices=list_stores(),
        default=os.getenv("WQ_STORE", "file"),
        help="Where trained models are kept (default: file or WQ_STORE env var)",
    )
    parser.add_argument(
        "--artifact-dir",
        default=os.getenv("WQ_ARTIFACT_DIR", "artifacts"),
        help="Directory for the file store (default: artifacts or WQ_ARTIFACT_DIR env var)",
    )

    # Redis configuration
    parser.add_argument(
        "--redis-host",
        default=os.getenv("REDIS_HOST", "localhost"),
        help="Redis host (default: localhost or REDIS_HOST env var)",
    )
    parser.add_argument(
        "--redis-port",
        type=int,
        default=int(os.getenv("REDIS_PORT", "6379")),
        help="Redis port (default: 6379)",
    )

    # PostgreSQL settings
    parser.add_argument(
        "--postgres-host",
        default=os.getenv("POSTGRES_HOST", "localhost"),
        help="PostgreSQL host (default: localhost or POSTGRES_HOST env var)",
    )
    parser.add_argument(
        "--postgres-port",
        type=int,
        default=int(os.getenv("POSTGRES_PORT", "5432")),
        help="PostgreSQL port (default: 5432)",
    )
    parser.add_argument(
        "--postgres-db",
        default=os.getenv("POSTGRES_DB", "water_quality"),
        help="PostgreSQL database (default: water_quality)",
    )
    parser.add_argument(
        "--postgres-user",
        default=os.getenv("POSTGRES_USER", "water_quality"),
        help="PostgreSQL user (default: water_quality)",
    )
    parser.add_argument(
        "--postgres-password",
        default=os.getenv("POSTGRES_PASSWORD", "water_quality"),
        help="PostgreSQL password",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )


def build_engine_config(args, anomaly_config=None, classification_config=None) -> EngineConfig:
    """Build engine configuration from arguments"""
    return EngineConfig(
        anomaly_config=anomaly_config or {},
        classification_config=classification_config or {},
        store_backend=args.store,
        artifact_dir=args.artifact_dir,
        redis_host=args.redis_host,
        redis_port=args.redis_port,
        postgres_host=args.postgres_host,
        postgres_port=args.postgres_port,
        postgres_database=args.postgres_db,
        postgres_user=args.postgres_user,
        postgres_password=args.postgres_password,
    )


def read_input(args) -> list[Reading]:
    """Readings from --input, or synthetic readings from the chosen preset"""
    if args.input:
        return load_readings(args.input)

    preset = GENERATOR_PRESETS[args.preset]
    return ReadingGenerator(replace(preset, seed=args.seed)).generate(args.synthetic)
