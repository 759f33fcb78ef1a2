from __future__ import annotations

import logging
from typing import Callable, List, Optional

import numpy as np

try:
    import sounddevice as sd
except Exception:  # pragma: no cover - PortAudio assente
    sd = None

logger = logging.getLogger('audibility.audio')

SUSPENDED = "suspended"
RESUMING = "resuming"
RUNNING = "running"
UNAVAILABLE = "unavailable"


class AudioResourceUnavailable(RuntimeError):
    """Il dispositivo di uscita non puo' essere aperto o riattivato."""


class OutputDevice:
    """Risorsa audio condivisa, acquisita in modo lazy al primo utilizzo.

    Parte sospesa: ``resume`` la attiva e notifica l'esito tramite callback.
    Con sounddevice l'attivazione si conclude subito, ma il chiamante non deve
    assumerlo.
    """

    channels = 2

    def __init__(self, device_index: Optional[int] = None, sample_rate: int = 48000) -> None:
        self.device_index = device_index
        self.sample_rate = int(sample_rate)
        self._state = SUSPENDED
        self._waiters: List[Callable[[bool], None]] = []
        self.last_error: Optional[str] = None

    @property
    def state(self) -> str:
        return self._state

    def resume(self, on_done: Callable[[bool], None]) -> None:
        if self._state == RUNNING:
            on_done(True)
            return
        self._waiters.append(on_done)
        if self._state == RESUMING:
            return
        self._state = RESUMING
        try:
            self._open()
        except AudioResourceUnavailable as exc:
            self.last_error = str(exc)
            self._state = UNAVAILABLE
            logger.warning('Uscita audio non disponibile: %s', exc)
            self._flush(False)
        else:
            self.last_error = None
            self._state = RUNNING
            logger.info('Uscita audio attiva (device=%s, %d Hz)', self.device_index, self.sample_rate)
            self._flush(True)

    def _flush(self, ok: bool) -> None:
        waiters, self._waiters = self._waiters, []
        for callback in waiters:
            callback(ok)

    def _open(self) -> None:
        if sd is None:
            raise AudioResourceUnavailable("sounddevice non disponibile: installa la dipendenza per riprodurre audio.")
        try:
            sd.check_output_settings(
                device=self.device_index,
                channels=self.channels,
                dtype='float32',
                samplerate=self.sample_rate,
            )
        except Exception as exc:
            raise AudioResourceUnavailable(f"Dispositivo di uscita non utilizzabile: {exc}") from exc

    def play(self, buffer: np.ndarray) -> None:
        if self._state != RUNNING:
            raise AudioResourceUnavailable("Uscita audio non attiva.")
        try:
            sd.play(buffer, self.sample_rate, device=self.device_index, blocking=False)
        except Exception as exc:
            self._state = UNAVAILABLE
            self.last_error = str(exc)
            raise AudioResourceUnavailable(f"Riproduzione audio fallita: {exc}") from exc

    def stop(self) -> None:
        if sd is None or self._state != RUNNING:
            return
        try:
            sd.stop()
        except Exception as exc:
            logger.warning('Arresto riproduzione non riuscito: %s', exc)

    def set_device(self, device_index: Optional[int], sample_rate: Optional[int] = None) -> None:
        """Cambia dispositivo: la risorsa torna sospesa e verra' riaperta al prossimo uso."""
        self.stop()
        self.device_index = device_index
        if sample_rate is not None:
            self.sample_rate = int(sample_rate)
        self._state = SUSPENDED
