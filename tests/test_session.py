import pytest

from audio.ears import EarMode
from audio.engine import ToneEngine
from audio.tone_params import compute_params
from audiometry.exporter import ValidationError
from audiometry.reference import FREQUENCIES, REFERENCE_THRESHOLDS_DB
from audiometry.session import (
    CALIBRATION_FREQUENCY,
    DEFAULT_KNOB,
    SLIDER_MAX,
    CalibrationSession,
    IllegalStateTransition,
    Mode,
)

from conftest import FakeOutputDevice


@pytest.fixture
def session(engine, callbacks):
    return CalibrationSession(engine, callbacks)


@pytest.fixture
def testing(session):
    session.ready()
    return session


def test_initial_state(session):
    assert session.mode is Mode.CALIBRATING
    assert session.ear_mode is EarMode.BOTH
    assert session.knob_value == DEFAULT_KNOB
    for ear in EarMode:
        assert set(session.slider_values(ear).values()) == {SLIDER_MAX}
    assert session.visibility == {EarMode.BOTH: True, EarMode.LEFT: False, EarMode.RIGHT: False}


def test_calibration_tone_uses_knob(session, engine, output):
    session.set_knob(30)
    assert session.play_calibration_tone() is True
    expected = compute_params(CALIBRATION_FREQUENCY, 100, 30)
    tone = engine.active_tone
    assert tone.frequency == CALIBRATION_FREQUENCY
    assert tone.ear is EarMode.BOTH
    assert tone.amplitude == pytest.approx(expected.amplitude)


def test_ready_switches_to_testing(session, callbacks, engine):
    session.play_calibration_tone()
    assert session.ready() is True
    assert session.mode is Mode.TESTING
    assert callbacks.modes == [Mode.TESTING]
    assert not engine.is_playing


def test_actions_ignored_in_wrong_mode(session, engine, output):
    assert session.set_slider(1000, 40) is False
    assert session.play_test_tone(1000) is False
    assert session.select_ear_mode(EarMode.LEFT) is False
    assert session.recalibrate() is False
    assert session.slider_values()[1000] == SLIDER_MAX
    assert output.played == []

    session.ready()
    assert session.set_knob(10) is False
    assert session.knob_value == DEFAULT_KNOB
    assert session.play_calibration_tone() is False
    assert session.ready() is False
    assert output.played == []


def test_strict_mode_raises(engine):
    session = CalibrationSession(engine, strict=True)
    with pytest.raises(IllegalStateTransition):
        session.set_slider(1000, 40)
    session.ready()
    with pytest.raises(IllegalStateTransition):
        session.set_knob(10)


def test_set_slider_stores_and_plays(testing, engine, callbacks):
    assert testing.set_slider(1000, 42.6) is True
    assert testing.slider_values()[1000] == 43
    tone = engine.active_tone
    assert tone.frequency == 1000
    assert tone.amplitude == pytest.approx(compute_params(1000, 43, DEFAULT_KNOB).amplitude)
    assert callbacks.data_changes >= 1


def test_set_slider_clamps_and_rejects_unknown_frequency(testing):
    testing.set_slider(250, 150)
    testing.set_slider(500, -3)
    assert testing.slider_values()[250] == 100
    assert testing.slider_values()[500] == 0
    assert testing.set_slider(3000, 50) is False


def test_ear_maps_are_independent(testing, callbacks):
    testing.set_slider(1000, 60)
    testing.select_ear_mode(EarMode.LEFT)
    testing.set_slider(1000, 30)
    testing.set_slider(4000, 20)
    testing.select_ear_mode("right")

    assert testing.slider_values(EarMode.BOTH)[1000] == 60
    assert testing.slider_values(EarMode.BOTH)[4000] == 100
    assert testing.slider_values(EarMode.LEFT) == {**{f: 100 for f in FREQUENCIES}, 1000: 30, 4000: 20}
    assert set(testing.slider_values(EarMode.RIGHT).values()) == {100}
    ear, values = callbacks.repaints[-1]
    assert ear is EarMode.RIGHT
    assert values == testing.slider_values(EarMode.RIGHT)


def test_ear_mode_change_stops_tone_and_routes(testing, engine):
    testing.play_test_tone(1000)
    assert engine.is_playing
    testing.select_ear_mode(EarMode.LEFT)
    assert not engine.is_playing
    testing.play_test_tone(1000)
    assert engine.active_tone.ear is EarMode.LEFT


def test_unknown_ear_mode_ignored(testing):
    assert testing.select_ear_mode("center") is False
    assert testing.ear_mode is EarMode.BOTH


def test_recalibrate_keeps_sliders(testing, engine):
    testing.set_slider(2000, 55)
    assert testing.recalibrate() is True
    assert testing.mode is Mode.CALIBRATING
    assert not engine.is_playing
    assert testing.set_knob(70) is True
    assert testing.slider_values(EarMode.BOTH)[2000] == 55


def test_restart_declined_keeps_data(testing, engine):
    testing.set_slider(2000, 55)
    assert testing.restart(confirm=lambda: False) is False
    assert testing.mode is Mode.TESTING
    assert testing.slider_values()[2000] == 55
    assert not engine.is_playing


def test_restart_confirmed_resets_everything(testing, callbacks):
    testing.select_ear_mode(EarMode.RIGHT)
    testing.set_slider(2000, 55)
    testing.set_visibility(EarMode.RIGHT, True)
    assert testing.restart(confirm=lambda: True) is True
    assert testing.mode is Mode.CALIBRATING
    assert testing.ear_mode is EarMode.BOTH
    assert testing.knob_value == DEFAULT_KNOB
    assert testing.slider_values(EarMode.RIGHT)[2000] == 100
    assert testing.visibility[EarMode.RIGHT] is False
    assert callbacks.modes[-1] is Mode.CALIBRATING


def test_stop_is_safe_any_time(session, engine):
    session.stop()
    session.play_calibration_tone()
    session.stop()
    session.stop()
    assert not engine.is_playing


def test_audio_unavailable_reported_not_raised(scheduler, callbacks):
    output = FakeOutputDevice(mode='fail')
    session = CalibrationSession(ToneEngine(output, scheduler), callbacks)
    assert session.play_calibration_tone() is False
    assert any("dispositivo bloccato" in s for s in callbacks.statuses)
    # il test prosegue: la transizione resta possibile
    assert session.ready() is True


def test_deferred_tone_reported(scheduler, callbacks):
    output = FakeOutputDevice(mode='deferred')
    engine = ToneEngine(output, scheduler)
    session = CalibrationSession(engine, callbacks)
    assert session.play_calibration_tone() is True
    assert not engine.is_playing
    output.complete_resume(True)
    assert engine.active_tone.frequency == CALIBRATION_FREQUENCY


def test_audiogram_uses_reference(testing):
    for freq in FREQUENCIES:
        testing.set_slider(freq, DEFAULT_KNOB)
    assert testing.audiogram(EarMode.BOTH) == pytest.approx(list(REFERENCE_THRESHOLDS_DB))
    assert testing.thresholds(EarMode.BOTH) == [0.0] * len(FREQUENCIES)


def test_chart_series_respects_visibility(testing):
    testing.set_visibility("left", True)
    testing.set_visibility(EarMode.BOTH, False)
    series = testing.chart_series()
    assert [s.ear for s in series.visible('thresholds')] == [EarMode.LEFT]
    assert [s.ear for s in series.visible('audiograms')] == [EarMode.LEFT]


def test_save_requires_subject(testing, tmp_path):
    with pytest.raises(ValidationError):
        testing.save("", "30", tmp_path)
    with pytest.raises(ValidationError):
        testing.save("AB", "trenta", tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_save_writes_csv(testing, tmp_path, callbacks):
    testing.set_slider(1000, 40)
    path = testing.save("AB", "30", tmp_path)
    assert path == tmp_path / "audibility_data_AB.csv"
    text = path.read_text(encoding='utf-8')
    assert text.splitlines()[4] == "1000,-10.0,50.0,50.0,14.2,-45.8,-45.8"
    assert "Age,30" in text
    assert callbacks.statuses[-1].endswith(str(path))


@pytest.fixture
def deferred():
    return FakeOutputDevice(mode='deferred')


def test_knob_gesture_requests_audio(deferred, scheduler):
    session = CalibrationSession(ToneEngine(deferred, scheduler))
    assert session.set_knob(40) is True
    assert deferred.resume_requests == 1
    session.set_knob(45)
    assert deferred.resume_requests == 1


@pytest.mark.parametrize("action", [
    lambda s: s.stop(),
    lambda s: s.restart(confirm=lambda: False),
])
def test_any_time_actions_request_audio(deferred, scheduler, action):
    session = CalibrationSession(ToneEngine(deferred, scheduler))
    action(session)
    assert deferred.resume_requests == 1


@pytest.mark.parametrize("action", [
    lambda s: s.recalibrate(),
    lambda s: s.select_ear_mode(EarMode.LEFT),
])
def test_testing_actions_request_audio(scheduler, action):
    output = FakeOutputDevice(mode='deferred')
    session = CalibrationSession(ToneEngine(output, scheduler))
    session.ready()
    # uscita non attivata: la prossima azione deve richiederla di nuovo
    output.complete_resume(False)
    assert output.resume_requests == 1
    assert action(session) is True
    assert output.resume_requests == 2


def test_wrong_mode_action_does_not_request_audio(deferred, scheduler):
    session = CalibrationSession(ToneEngine(deferred, scheduler))
    session.recalibrate()
    assert deferred.resume_requests == 0
