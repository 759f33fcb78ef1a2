from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from audio.ears import EarMode
from audiometry.audiogram import compute_audiogram, compute_thresholds
from audiometry.reference import FREQUENCIES

CSV_HEADER = (
    "Frequency",
    "Threshold_Both_Ears",
    "Threshold_Left_Ear",
    "Threshold_Right_Ear",
    "Audiogram_Both_Ears",
    "Audiogram_Left_Ear",
    "Audiogram_Right_Ear",
)
_CSV_EARS = (EarMode.BOTH, EarMode.LEFT, EarMode.RIGHT)


class ValidationError(ValueError):
    """Dati anagrafici mancanti o non validi al momento del salvataggio."""


@dataclass(frozen=True)
class SessionRecord:
    initials: str
    age: int
    timestamp: datetime
    frequencies: Tuple[int, ...]
    thresholds: Mapping[EarMode, Tuple[float, ...]]
    audiograms: Mapping[EarMode, Tuple[float, ...]]

    def __post_init__(self) -> None:
        # mappe in sola lettura: il record non cambia dopo la creazione
        object.__setattr__(self, 'frequencies', tuple(self.frequencies))
        for name in ('thresholds', 'audiograms'):
            values = {ear: tuple(v) for ear, v in getattr(self, name).items()}
            object.__setattr__(self, name, MappingProxyType(values))

    @property
    def iso_timestamp(self) -> str:
        stamp = self.timestamp.astimezone(timezone.utc).isoformat(timespec='milliseconds')
        return stamp.replace('+00:00', 'Z')


def _validate(initials, age) -> Tuple[str, int]:
    initials = (initials or '').strip()
    age_text = str(age if age is not None else '').strip()
    if not initials or not age_text:
        raise ValidationError("Inserisci iniziali ed eta' prima di salvare.")
    try:
        age_value = int(age_text)
    except ValueError as exc:
        raise ValidationError(f"Eta' non valida: {age_text!r}") from exc
    if age_value < 0:
        raise ValidationError(f"Eta' non valida: {age_text!r}")
    return initials, age_value


def build_record(initials: str, age, slider_maps: Mapping[EarMode, Mapping[int, float]],
                 knob_value: float, *, now: Optional[datetime] = None) -> SessionRecord:
    initials, age_value = _validate(initials, age)
    thresholds = {
        ear: tuple(compute_thresholds(slider_maps[ear], knob_value)) for ear in EarMode
    }
    audiograms = {
        ear: tuple(compute_audiogram(slider_maps[ear], knob_value)) for ear in EarMode
    }
    return SessionRecord(
        initials=initials,
        age=age_value,
        timestamp=now or datetime.now(timezone.utc),
        frequencies=FREQUENCIES,
        thresholds=thresholds,
        audiograms=audiograms,
    )


def record_to_csv(record: SessionRecord) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(CSV_HEADER)
    for i, freq in enumerate(record.frequencies):
        row = [str(freq)]
        row += [f"{record.thresholds[ear][i]:.1f}" for ear in _CSV_EARS]
        row += [f"{record.audiograms[ear][i]:.1f}" for ear in _CSV_EARS]
        writer.writerow(row)
    writer.writerow([])
    writer.writerow(["Information"])
    writer.writerow(["Initials", record.initials])
    writer.writerow(["Age", record.age])
    writer.writerow(["Date", record.iso_timestamp])
    return buffer.getvalue()


def export_filename(initials: str) -> str:
    return f"audibility_data_{initials}.csv"
