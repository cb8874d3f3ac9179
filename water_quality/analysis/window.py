"""
Bounded rolling window of recent readings.

Append at the end, evict from the front once capacity is exceeded. Sequence
models read their own tail slice (24 readings for the anomaly detector, 12 for
the classifier) from the same window.
"""

from collections import deque
from collections.abc import Iterable, Iterator

import structlog

from .models import Reading

logger = structlog.get_logger(__name__)


class RollingWindow:
    """FIFO buffer holding the most recent `capacity` readings"""

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError(f"Window capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._buffer: deque[Reading] = deque(maxlen=capacity)

    def append(self, reading: Reading) -> None:
        evicted = len(self._buffer) == self.capacity
        self._buffer.append(reading)
        if evicted:
            logger.debug("Evicted oldest reading", capacity=self.capacity)

    def replace(self, readings: Iterable[Reading]) -> None:
        """Replace the contents with the last `capacity` of `readings`"""
        self._buffer = deque(readings, maxlen=self.capacity)
        logger.debug("Window replaced", size=len(self._buffer))

    def tail(self, length: int) -> list[Reading]:
        """The last `length` readings (fewer if the window is shorter)"""
        if length <= 0:
            return []
        start = max(0, len(self._buffer) - length)
        return [self._buffer[i] for i in range(start, len(self._buffer))]

    def latest(self) -> Reading | None:
        return self._buffer[-1] if self._buffer else None

    def clear(self) -> None:
        self._buffer.clear()

    def to_list(self) -> list[Reading]:
        return list(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self) -> Iterator[Reading]:
        return iter(list(self._buffer))
