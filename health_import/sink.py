"""
Sinks that persist generated sample batches.

Every sink exposes submit(batch) -> Ack and raises SinkError on failure.
"""
import os
import pickle
import shutil
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd
from lxml import etree as ET

from health_import.errors import SinkError
from health_import.samples import SampleBatch, format_export_date


@dataclass(frozen=True)
class Ack:
    sample_count: int
    destination: str


class SampleSink:
    """Interface for batch persistence"""

    def submit(self, batch: SampleBatch) -> Ack:
        raise NotImplementedError


class InMemorySink(SampleSink):
    """Keeps submitted batches in memory"""

    def __init__(self):
        self.batches: List[SampleBatch] = []

    def submit(self, batch: SampleBatch) -> Ack:
        self.batches.append(batch)
        return Ack(sample_count=len(batch), destination="memory")


class LocalHealthStore(SampleSink):
    """Stores samples as one pickled DataFrame per record type"""

    def __init__(self, store_dir: str):
        """
        Initialize the store.

        Args:
            store_dir: Directory where samples will be stored
        """
        # Convert to absolute path to avoid any path issues
        self.store_dir = Path(store_dir).resolve()
        self.samples_dir = self.store_dir / "samples"
        self.samples_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, type_id: str) -> Path:
        return self.samples_dir / f"{type_id}.pkl"

    def submit(self, batch: SampleBatch) -> Ack:
        """Append the batch to the stored DataFrame for its type"""
        filepath = self._path_for(batch.type_id)
        df = batch.to_dataframe()
        try:
            existing = self.load(batch.type_id)
            if existing is not None:
                df = pd.concat([existing, df], ignore_index=True)

            self.samples_dir.mkdir(parents=True, exist_ok=True)
            with open(filepath, 'wb') as f:
                pickle.dump(df, f)
        except (OSError, pickle.PickleError) as e:
            raise SinkError(f"Failed to import data: {e}") from e

        print(f"[{datetime.now().strftime('%H:%M:%S')}] [Store] Data successfully imported. Number of data points: {len(batch)} ({len(df)} stored for {batch.type_id})", file=sys.__stderr__)
        return Ack(sample_count=len(batch), destination=str(filepath))

    def load(self, type_id: str) -> Optional[pd.DataFrame]:
        """
        Load stored samples for a type.

        Raises:
            SinkError: if the stored file is unreadable or corrupt
        """
        filepath = self._path_for(type_id)
        if not filepath.exists():
            return None
        try:
            with open(filepath, 'rb') as f:
                return pickle.load(f)
        except (OSError, EOFError, pickle.UnpicklingError, ValueError, AttributeError) as e:
            raise SinkError(f"Stored samples for {type_id} are unreadable: {e}") from e

    def stored_types(self) -> set:
        """Get set of record types with stored samples"""
        if not self.samples_dir.exists():
            return set()
        return {file.stem for file in self.samples_dir.glob("*.pkl")}

    def clear(self):
        """Remove all stored samples"""
        if self.samples_dir.exists():
            shutil.rmtree(self.samples_dir)
        self.samples_dir.mkdir(parents=True, exist_ok=True)


class XmlExportSink(SampleSink):
    """Writes a batch as an Apple Health style export.xml"""

    def __init__(self, path: str, source_name: str = "Health Sample Importer", locale: str = "en_US"):
        self.path = Path(path)
        self.source_name = source_name
        self.locale = locale

    def build_document(self, batch: SampleBatch) -> ET._Element:
        root = ET.Element("HealthData", locale=self.locale)
        ET.SubElement(root, "ExportDate", value=format_export_date(datetime.now().astimezone()))
        created = format_export_date(batch.anchor)
        for sample in batch:
            attributes = {
                "type": sample.type_id,
                "sourceName": self.source_name,
            }
            if sample.unit is not None:
                attributes["unit"] = sample.unit.symbol
            attributes.update(
                creationDate=created,
                startDate=format_export_date(sample.start),
                endDate=format_export_date(sample.end),
                value=str(sample.value),
            )
            ET.SubElement(root, "Record", attributes)
        return root

    def submit(self, batch: SampleBatch) -> Ack:
        root = self.build_document(batch)
        try:
            os.makedirs(self.path.parent, exist_ok=True)
            with open(self.path, 'wb') as f:
                ET.ElementTree(root).write(f, encoding="UTF-8", xml_declaration=True, pretty_print=True)
        except OSError as e:
            raise SinkError(f"Failed to write {self.path}: {e}") from e

        print(f"[{datetime.now().strftime('%H:%M:%S')}] [Store] Wrote {len(batch)} records to {self.path}", file=sys.__stderr__)
        return Ack(sample_count=len(batch), destination=str(self.path))
