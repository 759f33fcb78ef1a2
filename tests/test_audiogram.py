import pytest

from audio.ears import EarMode
from audiometry.audiogram import (
    AUDIOGRAM_Y_RANGE,
    SERIES_ORDER,
    X_DOMAIN_HZ,
    build_chart_series,
    compute_audiogram,
    compute_thresholds,
    log_points,
)
from audiometry.reference import FREQUENCIES, REFERENCE_THRESHOLDS_DB


def _flat(value):
    return {f: value for f in FREQUENCIES}


def test_thresholds_subtract_knob():
    sliders = {**_flat(80), 500: 65}
    thr = compute_thresholds(sliders, 30)
    assert thr[FREQUENCIES.index(500)] == 35.0
    assert thr[0] == 50.0


def test_audiogram_equals_reference_when_slider_matches_knob():
    assert compute_audiogram(_flat(100), 100) == pytest.approx(list(REFERENCE_THRESHOLDS_DB))
    assert compute_audiogram(_flat(40), 40) == pytest.approx(list(REFERENCE_THRESHOLDS_DB))


def test_audiogram_full_slider_without_knob():
    expected = [ref - 100 for ref in REFERENCE_THRESHOLDS_DB]
    assert compute_audiogram(_flat(100), 0) == pytest.approx(expected)


def test_log_points():
    points = log_points(100, 10000, 3)
    assert points == pytest.approx([100, 1000, 10000])
    assert log_points(100, 15000, 1) == [100.0]


def test_chart_series_hidden_series_are_empty():
    maps = {EarMode.BOTH: _flat(70), EarMode.LEFT: _flat(60), EarMode.RIGHT: _flat(50)}
    visibility = {EarMode.BOTH: True, EarMode.LEFT: False, EarMode.RIGHT: True}
    series = build_chart_series(maps, 50, visibility)

    assert series.frequencies == FREQUENCIES
    assert series.x_domain == X_DOMAIN_HZ
    assert series.audiogram_y_range == AUDIOGRAM_Y_RANGE
    assert [s.ear for s in series.thresholds] == list(SERIES_ORDER)
    left = [s for s in series.thresholds if s.ear is EarMode.LEFT][0]
    assert left.hidden and left.values == ()
    right = [s for s in series.audiograms if s.ear is EarMode.RIGHT][0]
    assert right.values == pytest.approx(REFERENCE_THRESHOLDS_DB)
    assert [s.ear for s in series.visible('thresholds')] == [EarMode.BOTH, EarMode.RIGHT]
