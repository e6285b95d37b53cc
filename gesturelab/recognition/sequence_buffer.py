"""
Sequence Buffers
================

Fixed-capacity windows of per-frame feature vectors.

Two policies share a base class:

- ``RecordBuffer`` appends until full, then hands back the full window and
  starts over (one window per labelled sample).
- ``PredictBuffer`` slides: once full, every push evicts the oldest vector
  and hands back a snapshot of the current window for inference.
"""

import logging
from collections import deque
from typing import List, Optional, Sequence

from gesturelab.core.types import DEFAULT_FRAME_LIMIT, FEATURE_LENGTH

logger = logging.getLogger(__name__)

Window = List[List[float]]


class _BaseBuffer:
    """Shared storage and validation."""

    def __init__(self, capacity: int = DEFAULT_FRAME_LIMIT,
                 feature_length: int = FEATURE_LENGTH):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._feature_length = feature_length
        self._frames = deque()

    def _append(self, vec: Sequence[float]):
        if len(vec) != self._feature_length:
            raise ValueError(
                f"Feature vector has {len(vec)} values, expected {self._feature_length}"
            )
        self._frames.append(list(vec))

    def snapshot(self) -> Window:
        """Copy of the current window, oldest first."""
        return [list(row) for row in self._frames]

    def clear(self):
        self._frames.clear()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def feature_length(self) -> int:
        return self._feature_length

    @property
    def is_full(self) -> bool:
        return len(self._frames) == self._capacity

    @property
    def fill_ratio(self) -> float:
        return len(self._frames) / self._capacity

    def __len__(self):
        return len(self._frames)


class RecordBuffer(_BaseBuffer):
    """Append-until-full window for dataset capture."""

    def push(self, vec: Sequence[float]) -> Optional[Window]:
        """Add a frame; return the full window (and clear) when it fills.

        Between calls the length is always in [0, capacity).
        """
        self._append(vec)
        if len(self._frames) < self._capacity:
            return None
        window = self.snapshot()
        self._frames.clear()
        logger.debug("Record window full (%d frames)", len(window))
        return window


class PredictBuffer(_BaseBuffer):
    """Sliding window for live inference."""

    def push(self, vec: Sequence[float]) -> Optional[Window]:
        """Add a frame, evict the oldest beyond capacity.

        Returns a snapshot whenever the window is full; the window itself
        keeps sliding.
        """
        self._append(vec)
        while len(self._frames) > self._capacity:
            self._frames.popleft()
        if len(self._frames) == self._capacity:
            return self.snapshot()
        return None
