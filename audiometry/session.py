from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from audio.ears import EarMode, normalise_ear
from audio.engine import InvalidFrequency, ToneEngine
from audio.output import AudioResourceUnavailable
from audio.tone_params import SLIDER_REFERENCE, compute_params
from audiometry.audiogram import ChartSeries, build_chart_series, compute_audiogram, compute_thresholds
from audiometry.exporter import SessionRecord, build_record
from audiometry.reference import FREQUENCIES
from audiometry.storage import save_record

logger = logging.getLogger('audibility.session')

SLIDER_MIN = 0
SLIDER_MAX = 100
DEFAULT_KNOB = 50
CALIBRATION_FREQUENCY = 2000


class Mode(str, Enum):
    CALIBRATING = "calibrating"
    TESTING = "testing"


class IllegalStateTransition(RuntimeError):
    """Azione richiesta nella modalita' sbagliata (sollevata solo in modalita' strict)."""


def _clamp_level(value: Any) -> int:
    return int(max(SLIDER_MIN, min(SLIDER_MAX, round(float(value)))))


def _default_visibility() -> Dict[EarMode, bool]:
    return {EarMode.BOTH: True, EarMode.LEFT: False, EarMode.RIGHT: False}


class CalibrationSession:
    """Stato dell'esame: modalita', orecchio attivo, cursori e manopola.

    E' l'unico proprietario dei valori dei cursori. Le azioni fuori fase
    (es. cursore in calibrazione) sono ignorate e ritornano ``False``; con
    ``strict=True`` sollevano ``IllegalStateTransition``.

    ``ui_callbacks`` e' un oggetto opzionale con i metodi ``on_status``,
    ``on_mode_changed``, ``on_sliders_repaint`` e ``on_data_changed``;
    i metodi mancanti vengono saltati.

    Ogni azione rivolta all'utente chiama ``engine.ensure_ready()`` prima di
    usare il motore: il primo gesto (anche la manopola) attiva l'uscita audio.
    """

    def __init__(self, engine: ToneEngine, ui_callbacks: Any = None, *, strict: bool = False) -> None:
        self.engine = engine
        self.ui = ui_callbacks
        self.strict = strict
        self.frequencies = FREQUENCIES
        self.mode = Mode.CALIBRATING
        self.ear_mode = EarMode.BOTH
        self.knob_value = DEFAULT_KNOB
        self.sliders: Dict[EarMode, Dict[int, int]] = {}
        self.visibility: Dict[EarMode, bool] = _default_visibility()
        self._reset_sliders()
        engine.set_status_callback(self._status)

    # ---------------- Utils ----------------
    def _notify(self, name: str, *args) -> None:
        handler = getattr(self.ui, name, None) if self.ui is not None else None
        if callable(handler):
            handler(*args)

    def _status(self, message: str) -> None:
        logger.info(message)
        self._notify('on_status', message)

    def _reset_sliders(self) -> None:
        self.sliders = {ear: {f: SLIDER_MAX for f in self.frequencies} for ear in EarMode}

    def _require(self, mode: Mode, action: str) -> bool:
        if self.mode == mode:
            return True
        if self.strict:
            raise IllegalStateTransition(f"'{action}' non consentita in modalita' {self.mode.value}")
        logger.debug("Azione '%s' ignorata in modalita' %s", action, self.mode.value)
        return False

    def _play(self, frequency: int, slider_value: int, ear: EarMode) -> bool:
        params = compute_params(frequency, slider_value, self.knob_value)
        self.engine.ensure_ready()
        try:
            started = self.engine.play(params.frequency, params.amplitude, ear)
        except InvalidFrequency as exc:
            self._status(f"Errore riproduzione: {exc}")
            return False
        except AudioResourceUnavailable as exc:
            self._status(f"Audio non disponibile: {exc}")
            return False
        if started:
            self._status(
                f"Riproduzione {frequency} Hz a {params.limited_db:.1f} dB (ampiezza: {params.amplitude:.4f})"
            )
        else:
            self._status(f"Tono {frequency} Hz in attesa dell'attivazione audio")
        return True

    # ---------------- Transizioni ----------------
    def ready(self) -> bool:
        if not self._require(Mode.CALIBRATING, 'ready'):
            return False
        self.engine.ensure_ready()
        self.engine.stop()
        self.mode = Mode.TESTING
        self._notify('on_mode_changed', self.mode)
        self._status("Pronto! Abbassa ogni cursore finche' non senti piu' il tono.")
        return True

    def recalibrate(self) -> bool:
        if not self._require(Mode.TESTING, 'recalibrate'):
            return False
        self.engine.ensure_ready()
        self.engine.stop()
        self.mode = Mode.CALIBRATING
        self._notify('on_mode_changed', self.mode)
        self._status("Modalita' calibrazione. Regola il volume e premi 'Inizia'.")
        return True

    def restart(self, confirm: Optional[Callable[[], bool]] = None) -> bool:
        """Azzera tutti i dati e torna in calibrazione, previa conferma."""
        self.engine.ensure_ready()
        self.engine.stop()
        if confirm is not None and not confirm():
            logger.debug('Riavvio annullato')
            return False
        self._reset_sliders()
        self.knob_value = DEFAULT_KNOB
        self.ear_mode = EarMode.BOTH
        self.visibility = _default_visibility()
        self.mode = Mode.CALIBRATING
        self._notify('on_mode_changed', self.mode)
        self._notify('on_sliders_repaint', self.ear_mode, self.slider_values())
        self._notify('on_data_changed')
        self._status("Sessione riavviata. Calibra il volume e premi 'Inizia'.")
        return True

    # ---------------- Calibrazione ----------------
    def set_knob(self, value) -> bool:
        if not self._require(Mode.CALIBRATING, 'set_knob'):
            return False
        self.engine.ensure_ready()
        self.knob_value = _clamp_level(value)
        self._notify('on_data_changed')
        return True

    def play_calibration_tone(self) -> bool:
        """Tono di calibrazione a 2000 Hz: stesso calcolo di un cursore al massimo."""
        if not self._require(Mode.CALIBRATING, 'play_calibration_tone'):
            return False
        return self._play(CALIBRATION_FREQUENCY, SLIDER_REFERENCE, EarMode.BOTH)

    # ---------------- Test ----------------
    def select_ear_mode(self, ear) -> bool:
        if not self._require(Mode.TESTING, 'select_ear_mode'):
            return False
        mode = normalise_ear(ear)
        if mode is None:
            logger.debug('Orecchio sconosciuto: %r', ear)
            return False
        self.engine.ensure_ready()
        self.engine.stop()
        self.ear_mode = mode
        self._notify('on_sliders_repaint', mode, self.slider_values(mode))
        self._status(f"Modalita' cambiata: {mode.label}")
        return True

    def set_slider(self, frequency: int, value) -> bool:
        if not self._require(Mode.TESTING, 'set_slider'):
            return False
        freq = int(frequency)
        if freq not in self.frequencies:
            logger.debug('Frequenza %s non prevista dal test', frequency)
            return False
        level = _clamp_level(value)
        self.sliders[self.ear_mode][freq] = level
        self._notify('on_data_changed')
        self._play(freq, level, self.ear_mode)
        return True

    def play_test_tone(self, frequency: int) -> bool:
        if not self._require(Mode.TESTING, 'play_test_tone'):
            return False
        freq = int(frequency)
        if freq not in self.frequencies:
            logger.debug('Frequenza %s non prevista dal test', frequency)
            return False
        return self._play(freq, self.sliders[self.ear_mode][freq], self.ear_mode)

    def stop(self) -> None:
        self.engine.ensure_ready()
        self.engine.stop()
        self._status("Riproduzione arrestata.")

    def set_visibility(self, ear, visible: bool) -> bool:
        mode = normalise_ear(ear)
        if mode is None:
            return False
        self.visibility[mode] = bool(visible)
        self._notify('on_data_changed')
        return True

    # ---------------- Dati ----------------
    def slider_values(self, ear: Optional[EarMode] = None) -> Dict[int, int]:
        return dict(self.sliders[ear or self.ear_mode])

    def thresholds(self, ear: EarMode) -> list:
        return compute_thresholds(self.sliders[ear], self.knob_value)

    def audiogram(self, ear: EarMode) -> list:
        return compute_audiogram(self.sliders[ear], self.knob_value)

    def chart_series(self) -> ChartSeries:
        return build_chart_series(self.sliders, self.knob_value, self.visibility)

    def build_record(self, initials: str, age) -> SessionRecord:
        return build_record(initials, age, self.sliders, self.knob_value)

    def save(self, initials: str, age, directory) -> Path:
        """Costruisce il record e lo scrive come CSV; ``ValidationError`` se mancano dati."""
        record = self.build_record(initials, age)
        path = save_record(record, directory)
        self._status(f"Dati salvati in: {path}")
        return path
