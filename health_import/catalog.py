"""
Catalog of importable Apple Health record types.

The catalog is the allow-list of types the importer is willing to write
back (identifier -> label) together with the unit table describing how a
generated value is interpreted. It is built from configuration and handed
to the surveyor and the generator explicitly.
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Any, Optional, Tuple, Union, List

from health_import.errors import UnsupportedTypeError


@dataclass(frozen=True)
class UnitSpec:
    """Measurement unit, using the unit strings found in export.xml"""
    symbol: str
    name: str


UNITS = {
    "count": UnitSpec("count", "count"),
    "m": UnitSpec("m", "distance-meters"),
    "kcal": UnitSpec("kcal", "energy-kilocalories"),
    "mg": UnitSpec("mg", "mass-milligrams"),
    "hr": UnitSpec("hr", "duration-hours"),
}


@dataclass(frozen=True)
class QuantityKind:
    """Numeric type: one instant sample per day tagged with a unit"""
    unit: UnitSpec


@dataclass(frozen=True)
class CategoryKind:
    """Categorical type: one sample per day spanning a fixed duration"""
    values: Tuple[str, ...]
    duration: timedelta


Kind = Union[QuantityKind, CategoryKind]


@dataclass(frozen=True)
class ImportableType:
    identifier: str
    label: str
    kind: Optional[Kind] = None

    @property
    def is_category(self) -> bool:
        return isinstance(self.kind, CategoryKind)


SLEEP_PHASES = (
    "HKCategoryValueSleepAnalysisInBed",
    "HKCategoryValueSleepAnalysisAwake",
    "HKCategoryValueSleepAnalysisAsleepCore",
    "HKCategoryValueSleepAnalysisAsleepDeep",
    "HKCategoryValueSleepAnalysisAsleepREM",
)

STAND_HOUR_VALUES = (
    "HKCategoryValueAppleStandHourStood",
    "HKCategoryValueAppleStandHourIdle",
)

# Serialized form, as stored under "catalog.types" in config.json
DEFAULT_TYPES = {
    "HKCategoryTypeIdentifierSleepAnalysis": {
        "label": "Sleep Analysis",
        "kind": "category",
        "values": list(SLEEP_PHASES),
        "duration_hours": 8,
    },
    "HKQuantityTypeIdentifierActiveEnergyBurned": {
        "label": "Active Energy Burned", "kind": "quantity", "unit": "kcal"},
    "HKQuantityTypeIdentifierStepCount": {
        "label": "Step Count", "kind": "quantity", "unit": "count"},
    "HKQuantityTypeIdentifierDistanceWalkingRunning": {
        "label": "Distance Walking/Running", "kind": "quantity", "unit": "m"},
    "HKQuantityTypeIdentifierFlightsClimbed": {
        "label": "Flights Climbed", "kind": "quantity", "unit": "count"},
    "HKQuantityTypeIdentifierDietaryEnergyConsumed": {
        "label": "Dietary Energy Consumed", "kind": "quantity", "unit": "kcal"},
    "HKQuantityTypeIdentifierDietaryCaffeine": {
        "label": "Dietary Caffeine", "kind": "quantity", "unit": "mg"},
    "HKQuantityTypeIdentifierNumberOfAlcoholicBeverages": {
        "label": "Alcoholic Beverages", "kind": "quantity", "unit": "count"},
    "HKQuantityTypeIdentifierTimeInDaylight": {
        "label": "Time in Daylight", "kind": "quantity", "unit": "hr"},
    # Category in HealthKit, so it gets Stood/Idle hours rather than a count
    "HKCategoryTypeIdentifierAppleStandHour": {
        "label": "Apple Stand Hour",
        "kind": "category",
        "values": list(STAND_HOUR_VALUES),
        "duration_hours": 1,
    },
}


def _parse_kind(identifier: str, entry: Dict[str, Any]) -> Optional[Kind]:
    """Build the kind variant for one catalog entry"""
    kind = entry.get("kind")
    if kind is None:
        return None

    if kind == "quantity":
        symbol = entry.get("unit", "count")
        unit = UNITS.get(symbol, UnitSpec(symbol, symbol))
        return QuantityKind(unit=unit)

    if kind == "category":
        values = tuple(entry.get("values") or ())
        if not values:
            raise ValueError(f"Category type {identifier} needs at least one value")
        hours = entry.get("duration_hours", 8)
        if hours <= 0:
            raise ValueError(f"Category type {identifier} needs a positive duration")
        return CategoryKind(values=values, duration=timedelta(hours=hours))

    raise ValueError(f"Unknown kind '{kind}' for {identifier}")


class Catalog:
    """Read-only allow-list of importable types"""

    def __init__(self, types: List[ImportableType]):
        self._types = {t.identifier: t for t in types}

    @classmethod
    def from_dict(cls, types: Dict[str, Dict[str, Any]]) -> "Catalog":
        """
        Build a catalog from its serialized form.

        Args:
            types: Mapping of identifier -> {"label", "kind", and either
                "unit" for quantities or "values"/"duration_hours" for
                categories}. Entries without "kind" are allow-listed but
                cannot be generated.
        """
        return cls([
            ImportableType(
                identifier=identifier,
                label=entry.get("label", identifier),
                kind=_parse_kind(identifier, entry),
            )
            for identifier, entry in types.items()
        ])

    @classmethod
    def default(cls) -> "Catalog":
        return cls.from_dict(DEFAULT_TYPES)

    def __contains__(self, identifier) -> bool:
        return identifier in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self):
        return iter(sorted(self._types.values(), key=lambda t: t.identifier))

    @property
    def identifiers(self) -> frozenset:
        return frozenset(self._types)

    def label(self, identifier: str) -> str:
        """Human-readable label, falling back to the identifier"""
        entry = self._types.get(identifier)
        return entry.label if entry else identifier

    def get(self, identifier: str) -> Optional[ImportableType]:
        return self._types.get(identifier)

    def resolve(self, identifier: str) -> ImportableType:
        """
        Look up a type that can be generated.

        Raises:
            UnsupportedTypeError: if the identifier is not allow-listed or
                has no unit/category entry
        """
        entry = self._types.get(identifier)
        if entry is None:
            raise UnsupportedTypeError(identifier)
        if entry.kind is None:
            raise UnsupportedTypeError(identifier, "has no unit or category definition")
        return entry

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Serialize back to the config.json form"""
        result = {}
        for t in self:
            entry: Dict[str, Any] = {"label": t.label}
            if isinstance(t.kind, QuantityKind):
                entry.update(kind="quantity", unit=t.kind.unit.symbol)
            elif isinstance(t.kind, CategoryKind):
                entry.update(
                    kind="category",
                    values=list(t.kind.values),
                    duration_hours=t.kind.duration.total_seconds() / 3600,
                )
            result[t.identifier] = entry
        return result
