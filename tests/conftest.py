from __future__ import annotations

from typing import Callable, List, Optional

import pytest

from audio.engine import ToneEngine
from audio.output import RESUMING, RUNNING, SUSPENDED, UNAVAILABLE


class FakeOutputDevice:
    """Uscita audio finta: registra i buffer e controlla l'esito di ``resume``.

    ``mode='auto'`` completa subito, ``'deferred'`` attende ``complete_resume``,
    ``'fail'`` segnala la risorsa non disponibile.
    """

    def __init__(self, mode: str = 'auto', sample_rate: int = 8000) -> None:
        self.mode = mode
        self.sample_rate = sample_rate
        self.device_index = None
        self.state = SUSPENDED
        self.last_error: Optional[str] = None
        self.played: List = []
        self.stop_calls = 0
        self.resume_requests = 0
        self._waiters: List[Callable[[bool], None]] = []

    def resume(self, on_done: Callable[[bool], None]) -> None:
        if self.state == RUNNING:
            on_done(True)
            return
        self._waiters.append(on_done)
        if self.state == RESUMING:
            return
        self.resume_requests += 1
        self.state = RESUMING
        if self.mode == 'auto':
            self.complete_resume(True)
        elif self.mode == 'fail':
            self.complete_resume(False)

    def complete_resume(self, ok: bool) -> None:
        self.state = RUNNING if ok else UNAVAILABLE
        self.last_error = None if ok else "dispositivo bloccato"
        waiters, self._waiters = self._waiters, []
        for callback in waiters:
            callback(ok)

    def play(self, buffer) -> None:
        self.played.append(buffer)

    def stop(self) -> None:
        self.stop_calls += 1


class _Handle:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler a tempo virtuale: i timer scattano solo con ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: List[_Handle] = []

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> _Handle:
        handle = _Handle(self.now + delay_s, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[_Handle]:
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = sorted((h for h in self.pending if h.due <= self.now), key=lambda h: h.due)
        for handle in due:
            self.handles.remove(handle)
            handle.callback()


class RecordingCallbacks:
    def __init__(self) -> None:
        self.statuses: List[str] = []
        self.modes: List = []
        self.repaints: List = []
        self.data_changes = 0

    def on_status(self, message: str) -> None:
        self.statuses.append(message)

    def on_mode_changed(self, mode) -> None:
        self.modes.append(mode)

    def on_sliders_repaint(self, ear, values) -> None:
        self.repaints.append((ear, values))

    def on_data_changed(self) -> None:
        self.data_changes += 1


@pytest.fixture
def output() -> FakeOutputDevice:
    return FakeOutputDevice()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def engine(output, scheduler) -> ToneEngine:
    return ToneEngine(output, scheduler)


@pytest.fixture
def callbacks() -> RecordingCallbacks:
    return RecordingCallbacks()
