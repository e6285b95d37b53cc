"""
In-memory gesture dataset with one-shot JSON export.

Samples live for the lifetime of the process; export writes a JSON array
of ``{"label": ..., "sequence": [[...], ...]}`` objects.
"""

import os
import json
import logging
from collections import Counter
from typing import Iterator, Tuple

from gesturelab.core.errors import EmptyDatasetError
from gesturelab.core.types import LabeledSample
from gesturelab.utils.logger import log_timing

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_FILENAME = "gesture_dataset.json"


class Dataset:
    """Ordered, append-only collection of LabeledSample."""

    def __init__(self):
        self._samples = []

    def append(self, sample: LabeledSample):
        self._samples.append(sample)

    @property
    def samples(self) -> Tuple[LabeledSample, ...]:
        return tuple(self._samples)

    def __len__(self):
        return len(self._samples)

    def __iter__(self) -> Iterator[LabeledSample]:
        return iter(tuple(self._samples))

    def label_counts(self) -> dict:
        """Samples per label, in first-seen order."""
        return dict(Counter(sample.label for sample in self._samples))

    def to_json(self) -> str:
        return json.dumps([sample.to_dict() for sample in self._samples])

    @log_timing
    def export(self, output_dir: str = ".", filename: str = DEFAULT_EXPORT_FILENAME) -> str:
        """Write the dataset to ``output_dir/filename``.

        Returns:
            Path of the written file

        Raises:
            EmptyDatasetError: if there is nothing to export
        """
        if not self._samples:
            raise EmptyDatasetError("Dataset is empty!")

        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir or ".", filename)
        with open(path, "w") as f:
            json.dump([sample.to_dict() for sample in self._samples], f)
        logger.info("Dataset exported: %d samples to %s", len(self._samples), path)
        return path

    def get_status(self) -> dict:
        return {
            "total_samples": len(self._samples),
            "per_label": self.label_counts(),
        }

    def print_status(self):
        """Log formatted collection status."""
        status = self.get_status()
        logger.info("=" * 50)
        logger.info("DATASET STATUS")
        logger.info("=" * 50)
        logger.info("Total samples: %d", status["total_samples"])
        logger.info("-" * 30)
        for label, count in sorted(status["per_label"].items()):
            bar = "#" * min(count, 30)
            logger.info("  %-15r %4d %s", label, count, bar)
        logger.info("=" * 50)
