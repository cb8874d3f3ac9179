"""
Reading ingestion.

Coerces raw records (sensor feed entries, CSV rows, JSON lines) into
Reading objects and rejects malformed ones at the boundary, so the engine
only ever sees complete numeric readings.

Feed entries may use the channel names of the sensor feed:
field1=pH, field2=TDS, field3=temperature, field4=conductivity (EC),
field5=turbidity, and `created_at` for the timestamp.
"""

import math
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd
import structlog

from .errors import InvalidReadingError
from .models import FEATURES, Reading

logger = structlog.get_logger(__name__)

# Accepted input keys for each feature, in lookup order
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "ph": ("ph", "pH", "field1"),
    "tds": ("tds", "TDS", "field2"),
    "temperature": ("temperature", "temp", "field3"),
    "conductivity": ("conductivity", "ec", "EC", "field4"),
    "turbidity": ("turbidity", "field5"),
}
TIMESTAMP_KEYS = ("timestamp", "created_at")


def _lookup(record: dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _to_float(name: str, value: Any) -> float:
    if value is None or isinstance(value, bool):
        raise InvalidReadingError(f"Missing or invalid value for {name}: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidReadingError(f"Non-numeric value for {name}: {value!r}") from e
    if not math.isfinite(number):
        raise InvalidReadingError(f"Non-finite value for {name}: {value!r}")
    return number


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a datetime, ISO-8601 string or epoch seconds into an aware datetime"""
    if value is None or value == "":
        return None
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            stamp = pd.to_datetime(value, unit="s", utc=True)
        else:
            stamp = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise InvalidReadingError(f"Invalid timestamp: {value!r}") from e

    if pd.isna(stamp):
        return None
    if stamp.tzinfo is None:
        stamp = stamp.tz_localize(UTC)
    return stamp.to_pydatetime()


def reading_from_dict(record: dict[str, Any]) -> Reading:
    """Build a Reading from a raw record

    Raises:
        InvalidReadingError: If a feature is missing, non-numeric or non-finite,
            or the timestamp cannot be parsed
    """
    values = {
        name: _to_float(name, _lookup(record, FIELD_ALIASES[name])) for name in FEATURES
    }
    timestamp = parse_timestamp(_lookup(record, TIMESTAMP_KEYS))
    return Reading(timestamp=timestamp, **values)


def readings_from_records(records: Iterable[dict[str, Any]]) -> list[Reading]:
    """Convert records, skipping (and logging) the malformed ones"""
    readings = []
    skipped = 0
    for record in records:
        try:
            readings.append(reading_from_dict(record))
        except InvalidReadingError as e:
            skipped += 1
            logger.debug("Skipping invalid record", error=str(e))

    if skipped:
        logger.warning("Skipped invalid records", skipped=skipped, kept=len(readings))
    return readings


def load_readings(path: str | Path) -> list[Reading]:
    """Load readings from a CSV file or a JSON lines file

    Rows are kept in file order; rows with a missing or non-numeric feature
    are dropped.

    Raises:
        ValueError: If the file extension is not supported
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path)
    elif suffix in (".jsonl", ".json", ".ndjson"):
        df = pd.read_json(path, lines=True, convert_dates=False)
    else:
        raise ValueError(f"Unsupported readings file type '{suffix}' (use .csv or .jsonl)")

    # NaN cells become None so the alias lookup can fall through
    records = df.astype(object).where(df.notna(), None).to_dict(orient="records")
    readings = readings_from_records(records)
    logger.info("Loaded readings", path=str(path), rows=len(df), readings=len(readings))
    return readings


def readings_to_frame(readings: Iterable[Reading]) -> pd.DataFrame:
    """Readings as a DataFrame with one column per feature plus timestamp"""
    columns = ["timestamp", *FEATURES]
    rows = [reading.to_dict() for reading in readings]
    return pd.DataFrame(rows, columns=columns)
