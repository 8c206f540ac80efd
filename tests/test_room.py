"""
Tests for the room dimension estimate against the studio standard.
"""

import pytest

from vibra_acoustics.data_processing.schemas import NormalizedReading, ZoneKind
from vibra_acoustics.spatial.room import StudioStandard, estimate_room_size


def _reading(distance_m, i=0):
    return NormalizedReading(
        angle_deg=0.0,
        distance_m=distance_m,
        level_db=60.0,
        rt60=1.0,
        zone=ZoneKind.NEUTRAL,
        layer_index=0,
        batch_index=i,
    )


class TestEstimate:
    def test_twice_the_farthest_return(self):
        readings = [_reading(d, i) for i, d in enumerate([1.0, 1.5, 0.8])]
        status = estimate_room_size(readings)
        assert status.estimated_size_m == pytest.approx(3.0)
        assert status.is_standard is True
        assert "3 m" in status.reason

    def test_idempotent(self):
        readings = [_reading(d, i) for i, d in enumerate([1.0, 2.2])]
        assert estimate_room_size(readings) == estimate_room_size(readings)

    def test_outside_standard(self):
        status = estimate_room_size([_reading(3.0)])
        assert status.is_standard is False
        assert status.estimated_size_m == pytest.approx(6.0)
        assert status.reason.startswith("Outside studio standard")
        assert "3-5 m" in status.reason

    def test_too_small(self):
        status = estimate_room_size([_reading(0.5)])
        assert status.is_standard is False
        assert status.estimated_size_m == pytest.approx(1.0)

    def test_custom_standard(self):
        status = estimate_room_size([_reading(3.0)], StudioStandard(min_size_m=5.0, max_size_m=8.0))
        assert status.is_standard is True

    def test_no_readings(self):
        status = estimate_room_size([])
        assert status.is_standard is False
        assert status.estimated_size_m is None
        assert "No usable distance" in status.reason


class TestStudioStandard:
    @pytest.mark.parametrize("lo, hi", [(5.0, 3.0), (0.0, 3.0), (-1.0, 2.0)])
    def test_invalid_range(self, lo, hi):
        with pytest.raises(ValueError):
            StudioStandard(min_size_m=lo, max_size_m=hi)
