from __future__ import annotations

from dataclasses import dataclass

SLIDER_REFERENCE = 100
DB_CEILING = -10.0
MAX_AMPLITUDE = 0.75


@dataclass(frozen=True)
class ToneParams:
    frequency: float
    raw_volume_db: float
    corrected_db: float
    limited_db: float
    amplitude: float


def compute_params(frequency: float, slider_value: float, knob_value: float) -> ToneParams:
    """Calcola i parametri sicuri del tono a partire da cursore e manopola.

    - cursore a 100 corrisponde a 0 dB di riferimento;
    - la manopola abbassa tutta la scala;
    - il livello non supera mai ``DB_CEILING``;
    - l'ampiezza lineare e' scalata di 0.75 e limitata a ``MAX_AMPLITUDE``.

    La frequenza non viene validata qui: lo fa il motore di riproduzione.
    """
    raw_volume_db = float(slider_value) - SLIDER_REFERENCE
    corrected_db = raw_volume_db - float(knob_value)
    limited_db = min(corrected_db, DB_CEILING)
    amplitude = (10 ** (limited_db / 20.0)) * MAX_AMPLITUDE
    amplitude = max(0.0, min(amplitude, MAX_AMPLITUDE))
    return ToneParams(
        frequency=float(frequency),
        raw_volume_db=raw_volume_db,
        corrected_db=corrected_db,
        limited_db=limited_db,
        amplitude=amplitude,
    )
