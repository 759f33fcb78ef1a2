from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from audio.ears import EarMode, normalise_ear
from audio.output import RUNNING, UNAVAILABLE, AudioResourceUnavailable, OutputDevice
from audio.scheduler import Scheduler, ThreadingScheduler, TimerHandle
from audio.tone_generator import FADE_SECONDS, render_tone
from audio.tone_params import MAX_AMPLITUDE

logger = logging.getLogger('audibility.audio')

TONE_DURATION_SECONDS = 0.5


class InvalidFrequency(ValueError):
    """Frequenza non positiva o non finita."""


@dataclass(frozen=True)
class ActiveTone:
    frequency: float
    amplitude: float
    ear: EarMode
    duration_s: float
    started_at: float


@dataclass(frozen=True)
class _ToneRequest:
    frequency: float
    amplitude: float
    ear: EarMode
    duration_s: float


class ToneEngine:
    """Riproduce un solo tono alla volta sulla risorsa di uscita condivisa.

    Ogni ``play`` ferma il tono precedente prima di avviare il nuovo; il tono
    termina da solo dopo ``duration`` grazie a un timer annullabile. Se la
    risorsa non e' ancora attiva la richiesta viene tenuta da parte (vince
    l'ultima) e avviata quando ``resume`` conferma l'attivazione.
    """

    def __init__(
        self,
        output: OutputDevice,
        scheduler: Optional[Scheduler] = None,
        *,
        sample_rate: Optional[int] = None,
        fade_s: float = FADE_SECONDS,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.output = output
        self.scheduler: Scheduler = scheduler or ThreadingScheduler()
        self._sample_rate = int(sample_rate) if sample_rate else None
        self.fade_s = float(fade_s)
        self._on_status = on_status
        self._lock = threading.RLock()
        self._active: Optional[ActiveTone] = None
        self._timer: Optional[TimerHandle] = None
        self._pending: Optional[_ToneRequest] = None
        self._resume_requested = False

    @property
    def sample_rate(self) -> int:
        return self._sample_rate or self.output.sample_rate

    # ---- stato ----
    @property
    def active_tone(self) -> Optional[ActiveTone]:
        return self._active

    @property
    def is_playing(self) -> bool:
        return self._active is not None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def set_status_callback(self, callback: Optional[Callable[[str], None]]) -> None:
        self._on_status = callback

    def _status(self, message: str) -> None:
        if self._on_status is not None:
            self._on_status(message)

    # ---- risorsa condivisa ----
    def ensure_ready(self) -> bool:
        """Richiede (una sola volta) l'attivazione della risorsa di uscita.

        Ritorna ``True`` se la risorsa e' gia' attiva. Chiamate ripetute mentre
        l'attivazione e' in corso non generano nuove richieste.
        """
        with self._lock:
            if self.output.state == RUNNING:
                return True
            if self._resume_requested:
                return False
            self._resume_requested = True
        self.output.resume(self._on_resumed)
        return self.output.state == RUNNING

    def _on_resumed(self, ok: bool) -> None:
        with self._lock:
            self._resume_requested = False
            request, self._pending = self._pending, None
        if not ok:
            reason = self.output.last_error or "risorsa audio non disponibile"
            self._status(f"Audio non disponibile ({reason}): il test prosegue senza suono.")
            return
        if request is not None:
            logger.debug('Avvio tono differito %.0f Hz', request.frequency)
            try:
                self._start(request)
            except AudioResourceUnavailable as exc:
                self._status(str(exc))

    # ---- riproduzione ----
    def play(self, frequency: float, amplitude: float, ear=EarMode.BOTH,
             duration: float = TONE_DURATION_SECONDS) -> bool:
        self.stop()
        try:
            freq = float(frequency)
        except (TypeError, ValueError) as exc:
            raise InvalidFrequency(f"Frequenza non valida: {frequency!r}") from exc
        if not math.isfinite(freq) or freq <= 0:
            raise InvalidFrequency(f"Frequenza non valida: {frequency!r}")
        ear_mode = normalise_ear(ear) or EarMode.BOTH
        amp = float(amplitude)
        if not math.isfinite(amp):
            amp = 0.0
        amp = max(0.0, min(amp, MAX_AMPLITUDE))
        request = _ToneRequest(freq, amp, ear_mode, max(0.0, float(duration)))

        with self._lock:
            if self.output.state != RUNNING:
                self._pending = request
        if self.output.state == RUNNING:
            self._start(request)
            return True
        if self.ensure_ready():
            # attivazione sincrona: il tono differito e' gia' partito
            return self._active is not None
        if self.output.state == UNAVAILABLE:
            with self._lock:
                self._pending = None
            raise AudioResourceUnavailable(self.output.last_error or "Uscita audio non disponibile.")
        logger.debug('Tono %.0f Hz in attesa della risorsa audio', freq)
        return False

    def _start(self, request: _ToneRequest) -> None:
        buffer = render_tone(request.frequency, request.amplitude, request.ear,
                             request.duration_s, self.sample_rate, self.fade_s)
        with self._lock:
            self._teardown_locked()
            try:
                self.output.play(buffer)
            except AudioResourceUnavailable:
                self._active = None
                raise
            tone = ActiveTone(request.frequency, request.amplitude, request.ear,
                              request.duration_s, time.monotonic())
            self._active = tone
            self._timer = self.scheduler.call_later(request.duration_s, lambda: self._auto_stop(tone))
        logger.debug('Tono %.0f Hz ampiezza %.4f canale %s', tone.frequency, tone.amplitude, tone.ear.value)

    def _auto_stop(self, tone: ActiveTone) -> None:
        with self._lock:
            if self._active is not tone:
                return
            self._timer = None
            self._teardown_locked()

    def stop(self) -> None:
        """Ferma subito il tono attivo e annulla richieste differite. Idempotente."""
        with self._lock:
            self._pending = None
            self._teardown_locked()

    def _teardown_locked(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        if self._active is None:
            return
        self._active = None
        self.output.stop()
