"""
Synthetic sample and batch types handed from the generator to a sink.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

import pandas as pd

from health_import.catalog import ImportableType, UnitSpec

EXPORT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"


def format_export_date(value: datetime) -> str:
    """Format a datetime the way Apple Health export.xml does"""
    return value.strftime(EXPORT_DATE_FORMAT).strip()


@dataclass(frozen=True)
class SyntheticSample:
    type_id: str
    value: Union[float, str]
    start: datetime
    end: datetime
    unit: Optional[UnitSpec] = None

    @property
    def is_instant(self) -> bool:
        return self.start == self.end


@dataclass
class SampleBatch:
    """
    Samples generated for one import run, most recent first.

    The batch may hold fewer than window_days samples when a day could not
    be computed, so callers should use len() rather than window_days.
    """
    importable: ImportableType
    window_days: int
    anchor: datetime
    samples: List[SyntheticSample] = field(default_factory=list)

    @property
    def type_id(self) -> str:
        return self.importable.identifier

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self):
        return iter(self.samples)

    def __getitem__(self, index):
        return self.samples[index]

    def to_dataframe(self) -> pd.DataFrame:
        """Samples as a DataFrame with export-style column names"""
        df = pd.DataFrame(
            [
                {
                    "type": s.type_id,
                    "value": s.value,
                    "unit": s.unit.symbol if s.unit else None,
                    "startDate": s.start,
                    "endDate": s.end,
                }
                for s in self.samples
            ],
            columns=["type", "value", "unit", "startDate", "endDate"],
        )
        if not self.importable.is_category:
            df["value"] = pd.to_numeric(df["value"], errors="coerce")
        return df
