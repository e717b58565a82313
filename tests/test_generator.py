"""Tests for synthetic sample generation."""

from datetime import datetime, timedelta

import numpy as np
import pytest

from health_import.catalog import Catalog, SLEEP_PHASES, STAND_HOUR_VALUES
from health_import.errors import UnsupportedTypeError
from health_import.generator import SampleGenerator


def test_quantity_batch_covers_trailing_window(generator, anchor):
    batch = generator.generate("HKQuantityTypeIdentifierStepCount", 90, anchor)

    assert len(batch) == 90
    assert [s.start for s in batch] == [anchor - timedelta(days=k) for k in range(90)]
    for sample in batch:
        assert 1.0 <= sample.value <= 100.0
        assert sample.start == sample.end
        assert sample.unit.symbol == "count"


def test_batch_is_most_recent_first_without_duplicate_days(generator, anchor):
    batch = generator.generate("HKQuantityTypeIdentifierDistanceWalkingRunning", anchor=anchor)

    starts = [s.start for s in batch]
    assert starts == sorted(starts, reverse=True)
    assert len(set(starts)) == len(starts)
    offsets = {(anchor - s).days for s in starts}
    assert offsets <= set(range(90))
    assert batch[0].unit.symbol == "m"


def test_sleep_category_policy(generator, anchor):
    batch = generator.generate("HKCategoryTypeIdentifierSleepAnalysis", 90, anchor)

    assert len(batch) == 90
    for sample in batch:
        assert sample.value in SLEEP_PHASES
        assert sample.end - sample.start == timedelta(hours=8)
        assert sample.unit is None


def test_stand_hour_is_a_one_hour_category(generator, anchor):
    batch = generator.generate("HKCategoryTypeIdentifierAppleStandHour", 10, anchor)

    assert {s.value for s in batch} <= set(STAND_HOUR_VALUES)
    assert all(s.end - s.start == timedelta(hours=1) for s in batch)


def test_unsupported_type_raises_before_generation(anchor):
    rng = np.random.default_rng(1)
    generator = SampleGenerator(Catalog.default(), rng=rng)
    state = rng.bit_generator.state

    with pytest.raises(UnsupportedTypeError) as exc_info:
        generator.generate("HKQuantityTypeIdentifierUnknownThing", 90, anchor)

    assert exc_info.value.type_id == "HKQuantityTypeIdentifierUnknownThing"
    assert rng.bit_generator.state == state


def test_allow_listed_type_without_kind_is_unsupported(anchor):
    catalog = Catalog.from_dict({"HKQuantityTypeIdentifierBodyMass": {"label": "Body Mass"}})
    generator = SampleGenerator(catalog, rng=0)

    with pytest.raises(UnsupportedTypeError):
        generator.generate("HKQuantityTypeIdentifierBodyMass", anchor=anchor)


def test_seeded_generators_are_reproducible(catalog, anchor):
    first = SampleGenerator(catalog, rng=7).generate("HKQuantityTypeIdentifierStepCount", 30, anchor)
    second = SampleGenerator(catalog, rng=7).generate("HKQuantityTypeIdentifierStepCount", 30, anchor)

    assert [s.value for s in first] == [s.value for s in second]


def test_default_window_and_anchor(catalog):
    generator = SampleGenerator(catalog, rng=3, window_days=14)
    batch = generator.generate("HKQuantityTypeIdentifierFlightsClimbed")

    assert len(batch) == 14
    assert batch.window_days == 14
    assert batch.anchor.tzinfo is not None


@pytest.mark.parametrize("days", [0, -5])
def test_non_positive_window_is_rejected(generator, anchor, days):
    with pytest.raises(ValueError):
        generator.generate("HKQuantityTypeIdentifierStepCount", days, anchor)


def test_custom_value_range(catalog, anchor):
    generator = SampleGenerator(catalog, rng=5, value_range=(5, 5))
    batch = generator.generate("HKQuantityTypeIdentifierDietaryCaffeine", 3, anchor)

    assert [s.value for s in batch] == [5.0, 5.0, 5.0]
    assert batch[0].unit.symbol == "mg"


def test_inverted_value_range_is_rejected(catalog):
    with pytest.raises(ValueError):
        SampleGenerator(catalog, value_range=(100, 1))


def test_days_before_datetime_min_are_skipped(generator):
    """Days that fall outside the datetime range are dropped, not wrapped."""
    anchor = datetime(1, 1, 3, 12, 0)
    batch = generator.generate("HKQuantityTypeIdentifierStepCount", 5, anchor)

    assert len(batch) == 3
    assert batch.window_days == 5
    assert [s.start.day for s in batch] == [3, 2, 1]


def test_category_span_past_datetime_max_is_skipped(generator):
    anchor = datetime(9999, 12, 31, 20, 0)
    batch = generator.generate("HKCategoryTypeIdentifierSleepAnalysis", 3, anchor)

    assert len(batch) == 2
    assert batch[0].start == anchor - timedelta(days=1)


def test_batch_to_dataframe(generator, anchor):
    batch = generator.generate("HKQuantityTypeIdentifierActiveEnergyBurned", 10, anchor)
    df = batch.to_dataframe()

    assert list(df.columns) == ["type", "value", "unit", "startDate", "endDate"]
    assert len(df) == 10
    assert (df["unit"] == "kcal").all()
    assert df["value"].between(1, 100).all()


def test_category_dataframe_keeps_codes(generator, anchor):
    df = generator.generate("HKCategoryTypeIdentifierSleepAnalysis", 5, anchor).to_dataframe()

    assert set(df["value"]) <= set(SLEEP_PHASES)
    assert df["unit"].isna().all()
