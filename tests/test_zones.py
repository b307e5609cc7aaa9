"""Tests for the static zone dataset."""

import pytest

from zones import (
    FILTER_ALL,
    RECOMMENDATIONS,
    STATUSES,
    ZONES,
    filter_zones,
    find_zone_at,
    get_zone,
    matches_filter,
    status_color,
    validate_filter,
)


def test_dataset_has_eight_zones_with_unique_ids():
    assert len(ZONES) == 8
    assert [zone.id for zone in ZONES] == list(range(1, 9))


def test_status_counts():
    counts = {status: sum(1 for zone in ZONES if zone.status == status) for status in STATUSES}
    assert counts == {"red": 3, "yellow": 3, "green": 2}


def test_zones_are_immutable():
    with pytest.raises(AttributeError):
        ZONES[0].status = "green"


def test_status_colors():
    assert status_color("red") == "#dc2626"
    assert status_color("yellow") == "#eab308"
    assert status_color("green") == "#16a34a"
    with pytest.raises(ValueError):
        status_color("blue")


def test_get_zone():
    zone = get_zone(3)
    assert zone.name == "Chandni Chowk"
    assert zone.status == "red"
    with pytest.raises(KeyError):
        get_zone(99)


def test_validate_filter():
    for status in ("all", "red", "yellow", "green"):
        assert validate_filter(status) == status
    with pytest.raises(ValueError):
        validate_filter("purple")


def test_filter_zones():
    assert filter_zones(FILTER_ALL) == list(ZONES)
    assert [zone.name for zone in filter_zones("green")] == ["Rohini", "Janakpuri"]
    assert len(filter_zones("yellow")) == 3


def test_matches_filter():
    rohini = get_zone(7)
    assert matches_filter(rohini, "all")
    assert matches_filter(rohini, "green")
    assert not matches_filter(rohini, "red")


def test_find_zone_at_exact_and_tolerance():
    assert find_zone_at(28.7410, 77.1154).name == "Rohini"
    assert find_zone_at(28.74105, 77.11535).name == "Rohini"
    assert find_zone_at(28.0, 77.0) is None


def test_every_status_has_recommendations():
    for status in STATUSES:
        assert len(RECOMMENDATIONS[status]) == 4
