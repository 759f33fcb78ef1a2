"""Tabella di riferimento delle soglie (ISO 1961, Robinson & Dadson 1956).

I valori sono allineati per posizione con ``FREQUENCIES``: l'indice i della
tabella corrisponde alla i-esima frequenza del test, non al valore in Hz.
"""
from __future__ import annotations

from typing import Tuple

FREQUENCIES: Tuple[int, ...] = (125, 250, 500, 1000, 2000, 4000, 8000, 12000)

REFERENCE_THRESHOLDS_DB: Tuple[float, ...] = (21.4, 11.2, 6.0, 4.2, 1.0, -3.9, 15.3, 12.0)

# stessa lunghezza e stesso ordine delle frequenze
assert len(REFERENCE_THRESHOLDS_DB) == len(FREQUENCIES)


def lookup(index: int) -> float:
    """Soglia di riferimento (dB) per l'indice di frequenza ``index``."""
    return REFERENCE_THRESHOLDS_DB[index]


def frequency_index(freq_hz: int) -> int:
    try:
        return FREQUENCIES.index(int(freq_hz))
    except ValueError as exc:
        raise ValueError(f"Frequenza {freq_hz} Hz non prevista dal test.") from exc
