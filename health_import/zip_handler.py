"""
Read Apple Health exports, either export.xml or the zipped export.
"""
import io
import os
import zipfile
from typing import Optional, Union

from health_import.errors import InputError

EXPORT_XML_NAME = "export.xml"


def _find_export_member(zip_ref: zipfile.ZipFile) -> Optional[str]:
    """Find export.xml inside the archive (root first, then any subdirectory)"""
    names = zip_ref.namelist()
    if EXPORT_XML_NAME in names:
        return EXPORT_XML_NAME
    for name in names:
        if name.endswith("/" + EXPORT_XML_NAME):
            return name
    return None


def extract_export_xml(zip_data: bytes, source_name: str = "archive") -> bytes:
    """
    Return the bytes of export.xml from an Apple Health export zip.

    Args:
        zip_data: Raw zip file contents
        source_name: Name used in error messages

    Raises:
        InputError: if the archive is corrupt or has no export.xml
    """
    try:
        with zipfile.ZipFile(io.BytesIO(zip_data), 'r') as zip_ref:
            member = _find_export_member(zip_ref)
            if member is None:
                raise InputError(f"Could not find {EXPORT_XML_NAME} in zip file: {source_name}")
            return zip_ref.read(member)
    except zipfile.BadZipFile as e:
        raise InputError(f"Corrupt zip file {source_name}: {e}") from e


def load_export_bytes(source: Union[str, os.PathLike, bytes], name: Optional[str] = None) -> bytes:
    """
    Load export XML bytes from a path or an in-memory upload.

    Zip archives are detected by content, not by extension, so an uploaded
    export.zip works as well as a path to one.

    Args:
        source: Path to export.xml / export.zip, or the raw file contents
        name: Display name for in-memory sources

    Returns:
        Contents of export.xml

    Raises:
        InputError: if the source is missing, unreadable or empty
    """
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
        source_name = name or "upload"
    else:
        source_name = os.fspath(source)
        if not source_name or not os.path.exists(source_name):
            raise InputError(f"Export file not found: {source_name}")
        try:
            with open(source_name, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise InputError(f"Error reading file {source_name}: {e}") from e

    if not data:
        raise InputError(f"Export file is empty: {source_name}")

    if zipfile.is_zipfile(io.BytesIO(data)):
        data = extract_export_xml(data, source_name)
        if not data:
            raise InputError(f"{EXPORT_XML_NAME} is empty in {source_name}")

    return data

