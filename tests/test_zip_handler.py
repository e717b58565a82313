"""Tests for reading exports from disk and uploads."""

import zipfile

import pytest

from health_import.errors import InputError
from health_import.zip_handler import extract_export_xml, load_export_bytes


def test_load_xml_path(export_path, export_xml):
    assert load_export_bytes(export_path) == export_xml
    assert load_export_bytes(str(export_path)) == export_xml


def test_load_zip_with_nested_export(export_zip, export_xml):
    assert load_export_bytes(export_zip) == export_xml


def test_root_export_is_preferred(tmp_path, export_xml):
    path = tmp_path / "export.zip"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("old/export.xml", b"<HealthData/>")
        zf.writestr("export.xml", export_xml)

    assert load_export_bytes(path) == export_xml


def test_uploaded_zip_bytes(export_zip, export_xml):
    assert load_export_bytes(export_zip.read_bytes(), name="export.zip") == export_xml


def test_uploaded_xml_bytes_pass_through(export_xml):
    assert load_export_bytes(export_xml) == export_xml


def test_missing_file(tmp_path):
    with pytest.raises(InputError, match="not found"):
        load_export_bytes(tmp_path / "nope.xml")


def test_empty_file(tmp_path):
    path = tmp_path / "export.xml"
    path.write_bytes(b"")
    with pytest.raises(InputError, match="empty"):
        load_export_bytes(path)


def test_empty_upload():
    with pytest.raises(InputError):
        load_export_bytes(b"", name="export.xml")


def test_zip_without_export_xml(tmp_path):
    path = tmp_path / "export.zip"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("apple_health_export/export_cda.xml", b"<ClinicalDocument/>")

    with pytest.raises(InputError, match="Could not find export.xml"):
        load_export_bytes(path)


def test_corrupt_zip_data():
    with pytest.raises(InputError, match="Corrupt zip"):
        extract_export_xml(b"PK\x03\x04 definitely not a zip", "broken.zip")
