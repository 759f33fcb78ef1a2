"""Curva di audibilita' e audiogramma rispetto alla tabella di riferimento."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Mapping, Sequence, Tuple

from audio.ears import EarMode
from audiometry.reference import FREQUENCIES, REFERENCE_THRESHOLDS_DB

X_DOMAIN_HZ: Tuple[float, float] = (100.0, 15000.0)
THRESHOLD_Y_RANGE: Tuple[float, float] = (-10.0, 80.0)
AUDIOGRAM_Y_RANGE: Tuple[float, float] = (-30.0, 80.0)

SERIES_ORDER = (EarMode.BOTH, EarMode.RIGHT, EarMode.LEFT)
SERIES_COLORS = {
    EarMode.BOTH: '#000000',
    EarMode.RIGHT: '#ff0000',
    EarMode.LEFT: '#00b8d4',
}


def compute_thresholds(slider_map: Mapping[int, float], knob_value: float,
                       frequencies: Sequence[int] = FREQUENCIES) -> List[float]:
    """Soglia per frequenza: valore del cursore meno la manopola."""
    return [float(slider_map[f]) - float(knob_value) for f in frequencies]


def compute_audiogram(slider_map: Mapping[int, float], knob_value: float,
                      frequencies: Sequence[int] = FREQUENCIES,
                      reference: Sequence[float] = REFERENCE_THRESHOLDS_DB) -> List[float]:
    """``reference[i] - (slider[f_i] - knob)`` per ogni indice di frequenza."""
    thresholds = compute_thresholds(slider_map, knob_value, frequencies)
    return [float(reference[i]) - thr for i, thr in enumerate(thresholds)]


def log_points(lo: float, hi: float, count: int) -> List[float]:
    """``count`` punti equispaziati in scala logaritmica tra ``lo`` e ``hi``."""
    if count < 2:
        return [float(lo)]
    log_lo = math.log10(lo)
    step = (math.log10(hi) - log_lo) / (count - 1)
    return [10 ** (log_lo + step * i) for i in range(count)]


@dataclass(frozen=True)
class Series:
    ear: EarMode
    label: str
    values: Tuple[float, ...]
    hidden: bool
    color: str


@dataclass(frozen=True)
class ChartSeries:
    """Dati per il ridisegno dei due grafici (curva di audibilita' e audiogramma)."""

    frequencies: Tuple[int, ...]
    thresholds: Tuple[Series, ...]
    audiograms: Tuple[Series, ...]
    x_domain: Tuple[float, float] = X_DOMAIN_HZ
    threshold_y_range: Tuple[float, float] = THRESHOLD_Y_RANGE
    audiogram_y_range: Tuple[float, float] = AUDIOGRAM_Y_RANGE

    def visible(self, which: str) -> List[Series]:
        return [s for s in getattr(self, which) if not s.hidden]


def build_chart_series(slider_maps: Mapping[EarMode, Mapping[int, float]], knob_value: float,
                       visibility: Mapping[EarMode, bool]) -> ChartSeries:
    thresholds: List[Series] = []
    audiograms: List[Series] = []
    for ear in SERIES_ORDER:
        shown = bool(visibility.get(ear, False))
        thr: Tuple[float, ...] = ()
        aud: Tuple[float, ...] = ()
        if shown:
            thr = tuple(compute_thresholds(slider_maps[ear], knob_value))
            aud = tuple(compute_audiogram(slider_maps[ear], knob_value))
        color = SERIES_COLORS[ear]
        thresholds.append(Series(ear, ear.label, thr, not shown, color))
        audiograms.append(Series(ear, ear.label, aud, not shown, color))
    return ChartSeries(FREQUENCIES, tuple(thresholds), tuple(audiograms))
