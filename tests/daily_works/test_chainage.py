from __future__ import annotations

import pytest

from src.hr_portal.hr_portal.daily_works.chainage import (
    chainage_to_float,
    find_jurisdiction,
    is_valid_location,
    split_location,
)
from src.hr_portal.hr_portal.daily_works.model import Jurisdiction

SECTIONS = [
    Jurisdiction(1, "Section A", "K0+000", "K23+999", incharge=10),
    Jurisdiction(2, "Section B", "K24+000", "K48+000", incharge=20),
]


@pytest.mark.parametrize(
    "chainage, expected",
    [("K05+900", 5.9), ("K24", 24.0), ("SCK0+440", 0.44), ("k12+050.5", 12.0505), ("garbage", 0.0)],
)
def test_chainage_to_float(chainage, expected):
    assert chainage_to_float(chainage) == pytest.approx(expected)


@pytest.mark.parametrize(
    "location, expected",
    [
        ("K24+395-K24+418", ("K24+395", "K24+418")),
        ("K38+060 - K38+110", ("K38+060", "K38+110")),
        ("SCK0+440-SCK0+450", ("SCK0+440", "SCK0+450")),
        ("K13 TOLL", ("K13", None)),
        ("somewhere", (None, None)),
    ],
)
def test_split_location(location, expected):
    assert split_location(location) == expected


@pytest.mark.parametrize(
    "location, ok",
    [("K0+100", True), ("K48+000", True), ("k12", True), ("K49+000", False), ("SCK0+440", False), ("", False)],
)
def test_is_valid_location(location, ok):
    assert is_valid_location(location) is ok


def test_find_jurisdiction_by_start_then_end():
    assert find_jurisdiction("K10+200", SECTIONS).incharge == 10
    assert find_jurisdiction("K30+000-K30+100", SECTIONS).incharge == 20
    assert find_jurisdiction("K23+999.5-K24+100", SECTIONS).incharge == 20
    assert find_jurisdiction("SCK0+440", SECTIONS).incharge == 10


def test_find_jurisdiction_misses():
    assert find_jurisdiction("K60+000", SECTIONS) is None
    assert find_jurisdiction("no chainage", SECTIONS) is None
    assert find_jurisdiction("K10", []) is None
