"""
Import session: drives one run from file selection to sink submission.

    Idle -> FileSelected -> Surveyed -> TypeSelected -> Generated
         -> SubmittedToSink -> Succeeded | Failed
"""
from collections import Counter
from datetime import datetime
from enum import Enum
import os
import sys
from typing import Dict, List, Optional

from health_import.catalog import Catalog
from health_import.errors import (
    HealthImportError,
    SessionStateError,
    UnsupportedTypeError,
)
from health_import.generator import SampleGenerator
from health_import.samples import SampleBatch
from health_import.sink import Ack, SampleSink
from health_import.survey import RecordTypeSurveyor
from health_import.zip_handler import load_export_bytes


class ImportState(Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    SURVEYED = "surveyed"
    TYPE_SELECTED = "type_selected"
    GENERATED = "generated"
    SUBMITTED_TO_SINK = "submitted_to_sink"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def _log(message: str):
    print(f"[{datetime.now().strftime('%H:%M:%S')}] [Session] {message}", file=sys.__stderr__)


class ImportSession:
    """State for one survey-generate-submit run"""

    def __init__(self, catalog: Catalog, generator: Optional[SampleGenerator] = None):
        self.catalog = catalog
        self.surveyor = RecordTypeSurveyor(catalog)
        self.generator = generator or SampleGenerator(catalog)
        self.reset()

    def reset(self):
        self.state = ImportState.IDLE
        self.file_name: Optional[str] = None
        self.xml_bytes: Optional[bytes] = None
        self.record_counts: Counter = Counter()
        self.available_types: List[str] = []
        self.selected_type: str = ""
        self.batch: Optional[SampleBatch] = None
        self.ack: Optional[Ack] = None
        self.last_error: Optional[HealthImportError] = None

    def _require(self, *states: ImportState):
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            raise SessionStateError(f"Cannot do this while {self.state.value} (expected {expected})")

    def _fail(self, error: HealthImportError):
        self.state = ImportState.FAILED
        self.last_error = error
        _log(f"Failed: {error}")

    def select_file(self, source, name: Optional[str] = None):
        """
        Select an export by path or raw contents. Can be called again at any
        point to start over with another file.
        """
        self.reset()
        if name is None and not isinstance(source, (bytes, bytearray)):
            name = os.path.basename(os.fspath(source))
        self.file_name = name or "upload"
        try:
            self.xml_bytes = load_export_bytes(source, name=name)
        except HealthImportError as e:
            self._fail(e)
            raise
        self.state = ImportState.FILE_SELECTED
        _log(f"Selected file: {self.file_name}")

    def analyze(self) -> List[str]:
        """Survey the selected file and preselect the first available type"""
        if self.xml_bytes is None:
            raise SessionStateError("No file selected to analyze")
        try:
            counts = self.surveyor.scan(self.xml_bytes)
            types = self.surveyor.importable(counts)
        except HealthImportError as e:
            self.record_counts = Counter()
            self.available_types = []
            self.selected_type = ""
            self._fail(e)
            raise
        self.record_counts = counts
        self.available_types = types
        self.selected_type = types[0] if types else ""
        self.batch = None
        self.state = ImportState.SURVEYED
        return types

    def labels(self) -> Dict[str, str]:
        """Human-readable labels for the available types"""
        return {t: self.catalog.label(t) for t in self.available_types}

    def select_type(self, type_id: str):
        if not self.available_types:
            raise SessionStateError("No surveyed data types to select from")
        if type_id not in self.available_types:
            raise UnsupportedTypeError(type_id, "is not available in the selected export")
        self.selected_type = type_id
        self.batch = None
        self.state = ImportState.TYPE_SELECTED

    def generate(self, window_days: Optional[int] = None, anchor: Optional[datetime] = None) -> SampleBatch:
        if not self.selected_type:
            raise SessionStateError("No data type selected")
        # Also covers re-running after Succeeded/Failed with the same selection
        self.select_type(self.selected_type)
        try:
            self.batch = self.generator.generate(self.selected_type, window_days=window_days, anchor=anchor)
        except UnsupportedTypeError as e:
            _log(f"Unsupported data type: {self.selected_type}")
            self.last_error = e
            raise
        self.state = ImportState.GENERATED
        return self.batch

    def submit(self, sink: SampleSink) -> Ack:
        """Hand the generated batch to a sink; the batch is released once acknowledged"""
        self._require(ImportState.GENERATED)
        self.state = ImportState.SUBMITTED_TO_SINK
        try:
            self.ack = sink.submit(self.batch)
        except HealthImportError as e:
            self._fail(e)
            raise
        self.batch = None
        self.state = ImportState.SUCCEEDED
        _log(f"Data for {self.selected_type} imported: {self.ack.sample_count} data points")
        return self.ack
