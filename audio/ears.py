from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class EarMode(str, Enum):
    """Orecchio/i in esame: seleziona la mappa dei cursori e il canale di uscita."""

    BOTH = "both_ears"
    LEFT = "left_ear"
    RIGHT = "right_ear"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    EarMode.BOTH: "Entrambe le orecchie",
    EarMode.LEFT: "Orecchio sinistro",
    EarMode.RIGHT: "Orecchio destro",
}

_ALIASES = {
    "BOTH": EarMode.BOTH,
    "BOTH_EARS": EarMode.BOTH,
    "B": EarMode.BOTH,
    "STEREO": EarMode.BOTH,
    "L": EarMode.LEFT,
    "LEFT": EarMode.LEFT,
    "LEFT_EAR": EarMode.LEFT,
    "SX": EarMode.LEFT,
    "OS": EarMode.LEFT,
    "EAR_L": EarMode.LEFT,
    "R": EarMode.RIGHT,
    "RIGHT": EarMode.RIGHT,
    "RIGHT_EAR": EarMode.RIGHT,
    "DX": EarMode.RIGHT,
    "OD": EarMode.RIGHT,
    "EAR_R": EarMode.RIGHT,
}


def normalise_ear(label: Any) -> Optional[EarMode]:
    """Converte etichette libere (``'L'``, ``'OD'``, ``'both'``...) in ``EarMode``."""
    if isinstance(label, EarMode):
        return label
    text = str(label).strip().upper()
    return _ALIASES.get(text)
