from __future__ import annotations

import numpy as np

from audio.ears import EarMode

FADE_SECONDS = 0.05

# colonna del buffer stereo per ciascun canale
_CHANNEL_INDEX = {EarMode.LEFT: 0, EarMode.RIGHT: 1}


def sine_wave(freq_hz, duration_s, sample_rate, amplitude=0.2, phase=0.0):
    t = np.arange(int(duration_s * sample_rate)) / sample_rate
    wave = amplitude * np.sin(2 * np.pi * freq_hz * t + phase)
    return wave.astype(np.float32)


def fade_envelope(n_samples: int, sample_rate: int, fade_s: float = FADE_SECONDS) -> np.ndarray:
    """Inviluppo lineare 0 -> 1 (fade-in), sustain a 1, poi 1 -> 0 (fade-out)."""
    envelope = np.ones(n_samples, dtype=np.float32)
    if n_samples == 0:
        return envelope
    fade_n = int(round(fade_s * sample_rate))
    fade_n = max(1, min(fade_n, n_samples // 2))
    envelope[:fade_n] = np.linspace(0.0, 1.0, fade_n, dtype=np.float32)
    envelope[n_samples - fade_n:] = np.linspace(1.0, 0.0, fade_n, dtype=np.float32)
    return envelope


def route_to_channels(mono: np.ndarray, ear: EarMode) -> np.ndarray:
    """Buffer stereo (n, 2): BOTH su entrambi i canali, LEFT/RIGHT solo sul proprio."""
    buffer = np.zeros((len(mono), 2), dtype=np.float32)
    if ear == EarMode.BOTH:
        buffer[:, 0] = mono
        buffer[:, 1] = mono
    else:
        buffer[:, _CHANNEL_INDEX[ear]] = mono
    return buffer


def render_tone(freq_hz: float, amplitude: float, ear: EarMode, duration_s: float,
                sample_rate: int, fade_s: float = FADE_SECONDS) -> np.ndarray:
    mono = sine_wave(freq_hz, duration_s, sample_rate, amplitude=amplitude)
    mono *= fade_envelope(len(mono), sample_rate, fade_s)
    return route_to_channels(mono, ear)
