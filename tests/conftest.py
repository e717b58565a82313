"""Shared fixtures for health_import tests."""

import zipfile
from datetime import datetime, timezone

import pytest

from health_import.catalog import Catalog
from health_import.generator import SampleGenerator

EXPORT_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE HealthData [
<!ELEMENT HealthData (ExportDate,Me,(Record|Workout)*)>
<!ATTLIST HealthData locale CDATA #REQUIRED>
<!ELEMENT Record (MetadataEntry*)>
<!ATTLIST Record type CDATA #REQUIRED>
]>
<HealthData locale="en_US">
 <ExportDate value="2024-03-31 08:00:00 +0000"/>
 <Me HKCharacteristicTypeIdentifierBiologicalSex="HKBiologicalSexNotSet"/>
 <Record type="HKQuantityTypeIdentifierStepCount" sourceName="iPhone" unit="count" startDate="2024-03-30 09:00:00 +0000" endDate="2024-03-30 09:10:00 +0000" value="812"/>
 <Record type="HKQuantityTypeIdentifierStepCount" sourceName="iPhone" unit="count" startDate="2024-03-30 10:00:00 +0000" endDate="2024-03-30 10:05:00 +0000" value="240"/>
 <Record type="HKCategoryTypeIdentifierSleepAnalysis" sourceName="Watch" startDate="2024-03-29 23:00:00 +0000" endDate="2024-03-30 06:30:00 +0000" value="HKCategoryValueSleepAnalysisAsleepCore"/>
 <Record type="HKQuantityTypeIdentifierHeartRate" sourceName="Watch" unit="count/min" startDate="2024-03-30 09:00:00 +0000" endDate="2024-03-30 09:00:00 +0000" value="61">
  <MetadataEntry key="HKMetadataKeyHeartRateMotionContext" value="0"/>
 </Record>
 <Workout workoutActivityType="HKWorkoutActivityTypeRunning" duration="30"/>
</HealthData>
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep config environment overrides out of tests."""
    for name in ("EXPORT_PATH", "STORE_DIR", "WINDOW_DAYS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def export_xml():
    return EXPORT_XML


@pytest.fixture
def export_path(tmp_path):
    path = tmp_path / "export.xml"
    path.write_bytes(EXPORT_XML)
    return path


@pytest.fixture
def export_zip(tmp_path):
    path = tmp_path / "export.zip"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("apple_health_export/export.xml", EXPORT_XML)
        zf.writestr("apple_health_export/export_cda.xml", b"<ClinicalDocument/>")
    return path


@pytest.fixture
def catalog():
    return Catalog.default()


@pytest.fixture
def step_only_catalog():
    return Catalog.from_dict({
        "HKQuantityTypeIdentifierStepCount": {
            "label": "Step Count", "kind": "quantity", "unit": "count"},
    })


@pytest.fixture
def anchor():
    return datetime(2024, 3, 31, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def generator(catalog):
    return SampleGenerator(catalog, rng=42)
