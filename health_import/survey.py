"""
Record type survey for Apple Health exports.
Streams export.xml and reports which record types it contains.
"""
from lxml import etree as ET

from collections import Counter, defaultdict
from datetime import datetime
from io import BytesIO
import sys
import time
from typing import Dict, Iterator, List, Tuple, Any

from health_import.catalog import Catalog
from health_import.errors import InputError, ParseError
from health_import.zip_handler import load_export_bytes

RECORD_TAG = "Record"


def iter_element_starts(source) -> Iterator[Tuple[str, Dict[str, str]]]:
    """
    Lazily yield (tag, attributes) for every element start in an XML document.

    The sequence is finite and cannot be restarted. Elements are cleared as
    soon as they end so memory stays flat on multi-gigabyte exports.

    Args:
        source: File path or binary file-like object
    """
    context = ET.iterparse(
        source,
        events=("start", "end"),
        huge_tree=True,
        resolve_entities=False,
        no_network=True,
    )
    for event, elem in context:
        if event == "start":
            yield elem.tag, dict(elem.attrib)
            continue

        elem.clear()
        # Drop finished siblings (iterparse keeps them attached to the parent)
        parent = elem.getparent()
        if parent is not None:
            while elem.getprevious() is not None:
                parent.remove(elem.getprevious())


def count_record_types(events) -> Counter:
    """Count Record elements by their type attribute"""
    counts = Counter()
    for tag, attributes in events:
        # Namespaced exports report '{uri}Record'
        if ET.QName(tag).localname != RECORD_TAG:
            continue
        record_type = attributes.get("type")
        if record_type is None:
            continue
        counts[record_type] += 1
    return counts


def summarize_record_types(counts: Counter) -> Dict[str, Any]:
    """Group discovered record types by HealthKit family for display"""
    categories = defaultdict(list)
    for record_type in sorted(counts):
        if "HKCategoryTypeIdentifier" in record_type:
            categories["Category"].append(record_type)
        elif "HKQuantityTypeIdentifier" in record_type:
            categories["Quantity"].append(record_type)
        elif "HKWorkoutTypeIdentifier" in record_type:
            categories["Workout"].append(record_type)
        else:
            categories["Other"].append(record_type)

    return {
        "total_record_types": len(counts),
        "total_records": sum(counts.values()),
        "categories": dict(categories),
        "record_counts": dict(counts),
    }


class RecordTypeSurveyor:
    """Lists the importable record types present in an export"""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def scan(self, xml_bytes: bytes) -> Counter:
        """
        Count every Record type in the document, importable or not.

        Raises:
            InputError: if xml_bytes is empty
            ParseError: if the XML is malformed
        """
        if not xml_bytes or not xml_bytes.strip():
            raise InputError("Export is empty")

        start_time = time.time()
        print(f"[{datetime.now().strftime('%H:%M:%S')}] [Survey] Scanning {len(xml_bytes) / (1024*1024):.2f} MB of XML", file=sys.__stderr__)

        try:
            counts = count_record_types(iter_element_starts(BytesIO(xml_bytes)))
        except ET.XMLSyntaxError as e:
            raise ParseError(f"Failed to parse XML file: {e}") from e
        except Exception as e:
            raise ParseError(f"Unexpected error while parsing XML: {e}") from e

        elapsed = time.time() - start_time
        print(f"[{datetime.now().strftime('%H:%M:%S')}] [Survey] Found {sum(counts.values()):,} records of {len(counts)} types in {elapsed:.2f}s", file=sys.__stderr__)
        return counts

    def survey(self, xml_bytes: bytes) -> List[str]:
        """
        Sorted record types that are both present and importable.

        Returns:
            Lexicographically sorted, duplicate-free list of identifiers

        Raises:
            InputError: if xml_bytes is empty
            ParseError: if the XML is malformed; no partial list is returned
        """
        available = self.importable(self.scan(xml_bytes))
        print(f"[{datetime.now().strftime('%H:%M:%S')}] [Survey] Available writable data types: {available}", file=sys.__stderr__)
        return available

    def importable(self, discovered) -> List[str]:
        """Sorted identifiers from discovered that are in the allow-list"""
        return sorted(t for t in set(discovered) if t in self.catalog)

    def survey_file(self, path) -> List[str]:
        """Survey an export.xml or export.zip on disk"""
        return self.survey(load_export_bytes(path))
