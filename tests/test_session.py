"""
Tests for the session event surface: deploy, reset, treatments, selection and
view mode.
"""

import pytest

from vibra_acoustics.data_processing.readings_io import parse_readings_csv
from vibra_acoustics.data_processing.schemas import RawReading, ViewMode, ZoneKind
from vibra_acoustics.session import AcousticSession
from vibra_acoustics.treatment.colors import NEUTRAL_COLOR, ZONE_COLORS

BATCH = [
    RawReading(angle="0", level="72", distance="150", reverberation="1.2", classification="Hot Spot", layer="Layer 1"),
    RawReading(angle="90", level="60", distance="120", reverberation="0.9", classification="Dead Spot", layer="Layer 1"),
    RawReading(angle="x", level="60", distance="120", classification="Hot Spot", layer="Layer 2"),
    RawReading(angle="180", level="55", distance="100", reverberation="0.7", classification="", layer="Layer 2"),
]

HOT_KEY = "Layer 1__0__150__0"
DEAD_KEY = "Layer 1__90__120__1"


@pytest.fixture
def session():
    s = AcousticSession()
    s.deploy(BATCH)
    return s


class TestDeploy:
    def test_points_and_status(self, session):
        assert [p.key for p in session.points] == [HOT_KEY, DEAD_KEY, "Layer 2__180__100__3"]
        assert session.room_status.is_standard is True
        assert session.room_status.estimated_size_m == pytest.approx(3.0)
        assert session.bounds.min_x == pytest.approx(-1.0)

    def test_result_counts(self):
        result = AcousticSession().deploy(BATCH)
        assert result.n_input == 4
        assert result.n_dropped == 1
        assert len(result.points) == 3

    def test_empty_batch(self):
        s = AcousticSession()
        result = s.deploy([])
        assert result.points == []
        assert result.bounds is None
        assert result.room_status.estimated_size_m is None
        assert result.room_status.is_standard is False

    def test_all_dropped(self):
        result = AcousticSession().deploy([RawReading(angle="a", distance="b"), RawReading()])
        assert result.points == []
        assert result.n_dropped == 2
        assert "No usable distance" in result.room_status.reason

    def test_redeploy_clears_effects(self, session):
        session.apply_treatment(HOT_KEY, "bass_trap")
        session.select_point(HOT_KEY)
        session.set_view_mode("before")

        session.deploy(BATCH)
        assert session.effect_states == {}
        assert session.selection is None
        assert session.view_mode is ViewMode.AFTER


class TestTreatments:
    def test_apply_uses_point_zone(self, session):
        state = session.apply_treatment(DEAD_KEY, "diffuser")
        assert state.severity == 50
        assert session.effect_state(DEAD_KEY) == state

    def test_documented_sequence(self, session):
        session.apply_treatment(HOT_KEY, "bass_trap")
        assert session.effect_state(HOT_KEY).severity == 35
        session.apply_treatment(HOT_KEY, "bass_trap")
        state = session.effect_state(HOT_KEY)
        assert state.severity == 20 and state.locked
        session.apply_treatment(HOT_KEY, "rug")
        assert session.effect_state(HOT_KEY) == state

    def test_unknown_point_or_treatment(self, session):
        assert session.apply_treatment("nope", "bass_trap") is None
        assert session.apply_treatment(HOT_KEY, "foam") is None
        assert len(session.effect_states) == 0

    def test_effect_states_read_only(self, session):
        session.apply_treatment(HOT_KEY, "rug")
        with pytest.raises(TypeError):
            session.effect_states[HOT_KEY] = None


class TestReset:
    def test_reset_after_deploy_with_treatments(self, session):
        session.apply_treatment(HOT_KEY, "bass_trap")
        session.apply_treatment(DEAD_KEY, "diffuser")
        session.select_point(HOT_KEY)

        session.reset()
        assert session.points == []
        assert session.bounds is None
        assert session.effect_states == {}
        assert session.room_status is None
        assert session.selection is None
        assert session.batch == []

    def test_reset_is_safe_anytime(self):
        s = AcousticSession()
        s.reset()
        s.reset()
        assert s.points == []


class TestSelectionAndColors:
    def test_select(self, session):
        session.apply_treatment(HOT_KEY, "absorber")
        sel = session.select_point(HOT_KEY)
        assert sel.point.zone is ZoneKind.HOTSPOT
        assert sel.best_treatment.id == "bass_trap"
        assert sel.state.severity == 45
        assert sel.colors.before == ZONE_COLORS[ZoneKind.HOTSPOT]
        assert sel.summary.applied == ["Absorber ×1"]
        assert sel.summary.dominant == "Absorber"
        assert sel.summary.intensity == "MEDIUM"

    def test_select_without_treatment(self, session):
        sel = session.select_point(DEAD_KEY)
        assert sel.state is None
        assert sel.best_treatment.id == "diffuser"
        assert sel.summary.dominant == "Diffuser"
        assert sel.colors.before == sel.colors.after

    def test_select_unknown_clears(self, session):
        session.select_point(HOT_KEY)
        assert session.select_point("missing") is None
        assert session.selection is None

    def test_view_modes(self, session):
        session.apply_treatment(HOT_KEY, "bass_trap")
        session.apply_treatment(HOT_KEY, "bass_trap")

        after = session.point_colors()
        session.set_view_mode(ViewMode.BEFORE)
        before = session.point_colors()

        hot = ZONE_COLORS[ZoneKind.HOTSPOT]
        assert before[HOT_KEY] == hot
        assert after[HOT_KEY] != hot
        # Untreated points look the same in both views.
        assert before[DEAD_KEY] == after[DEAD_KEY] == ZONE_COLORS[ZoneKind.DEADSPOT]

    def test_colors_lookup(self, session):
        assert session.colors("missing") is None
        assert session.colors("Layer 2__180__100__3").after == NEUTRAL_COLOR

    def test_bad_view_mode(self, session):
        with pytest.raises(ValueError):
            session.set_view_mode("sideways")


class TestExport:
    def test_export_round_trip(self, session):
        text = session.export_csv()
        again = AcousticSession()
        again.deploy(parse_readings_csv(text))
        assert len(again.points) == len(session.points)
        assert [p.zone for p in again.points] == [p.zone for p in session.points]
