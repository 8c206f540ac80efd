"""
Tests for table search and zone/layer filtering of raw readings.
"""

from vibra_acoustics.data_processing.filters import filter_readings, search_readings
from vibra_acoustics.data_processing.schemas import RawReading

ROWS = [
    RawReading(angle=0, level="70", distance="150", classification="Hot Spot", layer="Layer 1"),
    RawReading(angle=45, level="65", distance="120", classification="dead spot", layer="Layer 2"),
    RawReading(angle=90, level="61", distance="110", classification="Hotspot area", layer="Layer 2"),
    RawReading(angle=135, level="58", distance="100", classification="Neutral", layer="Layer 3"),
]


class TestSearch:
    def test_case_insensitive_any_field(self):
        assert search_readings(ROWS, "HOT") == [ROWS[0], ROWS[2]]
        assert search_readings(ROWS, "layer 3") == [ROWS[3]]
        assert search_readings(ROWS, "45") == [ROWS[1]]

    def test_keeps_original_objects(self):
        found = search_readings(ROWS, "dead")
        assert found[0] is ROWS[1]
        assert found[0].angle == 45

    def test_empty_query(self):
        assert search_readings(ROWS, "") == ROWS
        assert search_readings(ROWS, None) == ROWS

    def test_no_match(self):
        assert search_readings(ROWS, "zzz") == []
        assert search_readings([], "hot") == []


class TestFilter:
    def test_zone_filters_are_exact(self):
        # "Hotspot area" is not "hotspot" once whitespace is removed.
        assert filter_readings(ROWS, "HOTSPOT") == [ROWS[0]]
        assert filter_readings(ROWS, "DEADSPOT") == [ROWS[1]]

    def test_layer_filter(self):
        assert filter_readings(ROWS, "Layer 2") == [ROWS[1], ROWS[2]]
        assert filter_readings(ROWS, "Layer 4") == []

    def test_all(self):
        assert filter_readings(ROWS, "ALL") == ROWS

    def test_empty(self):
        assert filter_readings([], "HOTSPOT") == []
        assert filter_readings([], "Layer 1") == []
