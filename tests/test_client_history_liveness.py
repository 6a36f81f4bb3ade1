"""Tests for TemperatureHistoryWindow and LivenessClassifier."""

from __future__ import annotations

import pytest

from envtel.client.history import TemperatureHistoryWindow
from envtel.client.liveness import LivenessClassifier, LivenessState, classify


class TestTemperatureHistoryWindow:
    def test_eviction_by_horizon(self) -> None:
        window = TemperatureHistoryWindow(horizon_min=5)
        for s in range(0, 361, 10):
            window.ingest(s * 1000, 60.0, 150.0)
        stamps = [sample.ts_ms for sample in window]
        assert stamps[0] == 60_000
        assert 0 not in stamps
        assert stamps[-1] == 360_000

    def test_out_of_order_refused(self) -> None:
        window = TemperatureHistoryWindow()
        assert window.ingest(2000, 60.0, 150.0)
        assert not window.ingest(1000, 61.0, 151.0)
        assert len(window) == 1

    def test_absent_values_kept_as_none(self) -> None:
        window = TemperatureHistoryWindow()
        window.ingest(0, None, 150.0)
        [sample] = window.view()
        assert sample.ambient_f is None

    def test_shrink_is_view_only_until_next_ingest(self) -> None:
        window = TemperatureHistoryWindow(horizon_min=10)
        for s in range(0, 601, 60):
            window.ingest(s * 1000, 60.0, 150.0)
        assert len(window) == 11

        window.set_horizon(2)
        assert [s.ts_ms for s in window.view()] == [480_000, 540_000, 600_000]
        assert len(window) == 11

        window.set_horizon(10)
        assert len(window.view()) == 11

        window.set_horizon(2)
        window.ingest(660_000, 60.0, 150.0)
        assert len(window) == 3

    @pytest.mark.parametrize("minutes", [0, 1, 3, 60])
    def test_horizon_choices_enforced(self, minutes: int) -> None:
        with pytest.raises(ValueError):
            TemperatureHistoryWindow(horizon_min=minutes)

    def test_view_relative_to_now(self) -> None:
        window = TemperatureHistoryWindow(horizon_min=2)
        window.ingest(0, 60.0, 150.0)
        window.ingest(60_000, 60.0, 150.0)
        assert len(window.view(now_ms=150_000)) == 1

    def test_to_dataframe(self) -> None:
        window = TemperatureHistoryWindow()
        window.ingest(0, 60.0, None)
        window.ingest(1000, 61.0, 150.5)
        df = window.to_dataframe()
        assert list(df.columns) == ["ts_ms", "ambient_f", "envelope_f"]
        assert len(df) == 2
        assert df["envelope_f"].isna().iloc[0]
        assert df["ambient_f"].iloc[1] == 61.0

    def test_empty_dataframe(self) -> None:
        df = TemperatureHistoryWindow().to_dataframe()
        assert df.empty
        assert list(df.columns) == ["ts_ms", "ambient_f", "envelope_f"]

    def test_clear(self) -> None:
        window = TemperatureHistoryWindow()
        window.ingest(0, 60.0, 150.0)
        window.clear()
        assert len(window) == 0
        assert window.view() == []


class TestClassify:
    @pytest.mark.parametrize(
        ("age", "state"),
        [
            (0, LivenessState.LIVE),
            (2999, LivenessState.LIVE),
            (3000, LivenessState.DEGRADED),
            (7999, LivenessState.DEGRADED),
            (8000, LivenessState.OFFLINE),
            (None, LivenessState.OFFLINE),
        ],
    )
    def test_boundaries(self, age: int | None, state: LivenessState) -> None:
        assert classify(age) == state


class TestLivenessClassifier:
    def test_never_contacted_is_offline(self) -> None:
        assert LivenessClassifier().state(10_000) == LivenessState.OFFLINE

    def test_ages_from_last_contact(self) -> None:
        liveness = LivenessClassifier()
        liveness.mark_contact(1_000)
        assert liveness.state(3_999) == LivenessState.LIVE
        assert liveness.state(4_000) == LivenessState.DEGRADED
        assert liveness.state(9_000) == LivenessState.OFFLINE
        liveness.mark_contact(9_000)
        assert liveness.state(9_000) == LivenessState.LIVE

    def test_rtt_buffer_is_fifo(self) -> None:
        liveness = LivenessClassifier(rtt_samples=3)
        for i, rtt in enumerate([10.0, 20.0, 30.0, 40.0]):
            liveness.mark_contact(i, rtt)
        assert liveness.rtt_samples == [20.0, 30.0, 40.0]
        assert liveness.avg_rtt_ms == pytest.approx(30.0)

    def test_no_rtt(self) -> None:
        liveness = LivenessClassifier()
        liveness.mark_contact(0)
        assert liveness.avg_rtt_ms is None
