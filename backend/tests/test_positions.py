import pytest

from content_engine.domain.positions import (
    CANONICAL_POSITIONS,
    DEFAULT_POSITION,
    LEGACY_POSITIONS,
    normalize_position,
)


def test_middle_maps_to_third_slot_and_stays_there():
    assert normalize_position("middle") == "dynamicSections3"
    assert normalize_position("dynamicSections3") == "dynamicSections3"


@pytest.mark.parametrize("legacy, expected", [
    ("top", "dynamicSections1"),
    ("bottom", "dynamicSections7"),
    ("dynamicSectionsTop", "dynamicSections1"),
    ("dynamicSectionsMiddle", "dynamicSections3"),
    ("dynamicSections", "dynamicSections7"),
    ("  TOP ", "dynamicSections1"),
    ("dynamicsections5", "dynamicSections5"),
])
def test_legacy_values(legacy, expected):
    assert normalize_position(legacy) == expected


@pytest.mark.parametrize("value", [None, "", "   ", "sidebar", 3, ["top"], "dynamicSections8"])
def test_unknown_values_fall_back_to_lowest_slot(value):
    assert normalize_position(value) == DEFAULT_POSITION


def test_normalization_is_idempotent_and_always_canonical():
    inputs = list(LEGACY_POSITIONS) + list(CANONICAL_POSITIONS) + ["junk", None]
    for value in inputs:
        once = normalize_position(value)
        assert once in CANONICAL_POSITIONS
        assert normalize_position(once) == once
