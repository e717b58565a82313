"""
Synthetic sample generation.

Produces one sample per day over a trailing window ending at an anchor
instant. Quantity types get a uniformly random value tagged with the
type's unit at an instant; category types get a uniformly random
category code spanning the type's fixed duration.
"""
from datetime import datetime, timedelta
import sys
from typing import Optional, Tuple

import numpy as np

from health_import.catalog import Catalog, CategoryKind, ImportableType, QuantityKind
from health_import.samples import SampleBatch, SyntheticSample

DEFAULT_WINDOW_DAYS = 90
DEFAULT_VALUE_RANGE = (1.0, 100.0)


class SampleGenerator:
    """Generates synthetic sample batches for importable types"""

    def __init__(
        self,
        catalog: Catalog,
        rng: Optional[np.random.Generator] = None,
        window_days: int = DEFAULT_WINDOW_DAYS,
        value_range: Tuple[float, float] = DEFAULT_VALUE_RANGE,
    ):
        """
        Args:
            catalog: Allow-list and unit table
            rng: numpy Generator, or an int seed. Unseeded if None.
            window_days: Default number of trailing days per batch
            value_range: (low, high) bounds for quantity values
        """
        low, high = value_range
        if low > high:
            raise ValueError(f"Invalid value range: {value_range}")
        self.catalog = catalog
        self.rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
        self.window_days = window_days
        self.value_range = (float(low), float(high))

    def generate(self, type_id: str, window_days: Optional[int] = None,
                 anchor: Optional[datetime] = None) -> SampleBatch:
        """
        Generate a batch of samples for the trailing window ending at anchor.

        Args:
            type_id: Importable type identifier
            window_days: Number of days, defaults to the generator setting
            anchor: Reference "now"; defaults to the current local time

        Returns:
            SampleBatch ordered most recent first

        Raises:
            UnsupportedTypeError: if type_id cannot be generated
        """
        importable = self.catalog.resolve(type_id)

        if window_days is None:
            window_days = self.window_days
        if window_days < 1:
            raise ValueError(f"window_days must be positive, got {window_days}")
        if anchor is None:
            anchor = datetime.now().astimezone()

        batch = SampleBatch(importable=importable, window_days=window_days, anchor=anchor)
        for offset in range(window_days):
            sample = self._sample_for_day(importable, anchor, offset)
            if sample is not None:
                batch.samples.append(sample)

        skipped = window_days - len(batch)
        if skipped:
            print(f"[{datetime.now().strftime('%H:%M:%S')}] [Generator] Skipped {skipped} day(s) outside the datetime range", file=sys.__stderr__)
        return batch

    def _sample_for_day(self, importable: ImportableType, anchor: datetime,
                        offset: int) -> Optional[SyntheticSample]:
        try:
            date = anchor - timedelta(days=offset)
        except OverflowError:
            return None

        kind = importable.kind
        if isinstance(kind, CategoryKind):
            try:
                end = date + kind.duration
            except OverflowError:
                return None
            value = kind.values[int(self.rng.integers(len(kind.values)))]
            return SyntheticSample(importable.identifier, value, date, end)

        if isinstance(kind, QuantityKind):
            low, high = self.value_range
            value = float(self.rng.uniform(low, high))
            return SyntheticSample(importable.identifier, value, date, date, unit=kind.unit)

        raise TypeError(f"Unknown kind for {importable.identifier}: {kind!r}")
