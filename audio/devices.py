from __future__ import annotations

from dataclasses import dataclass
from typing import List

try:
    import sounddevice as sd
except Exception:  # pragma: no cover - opzionale
    sd = None

STEREO_CHANNELS = 2


@dataclass(frozen=True)
class OutputDeviceInfo:
    index: int
    name: str
    host_api: str
    sample_rate: int
    is_default: bool = False

    @property
    def label(self) -> str:
        text = f"{self.name} ({self.host_api})" if self.host_api else self.name
        return f"{text} [predefinito]" if self.is_default else text


def _default_output_index():
    try:
        return sd.default.device[1]
    except Exception:
        return None


def list_output_devices() -> List[OutputDeviceInfo]:
    """Dispositivi che possono riprodurre il tono su due canali (L/R)."""
    if sd is None:
        return []
    try:
        infos = sd.query_devices()
        hostapis = sd.query_hostapis()
    except Exception:
        return []

    default_output = _default_output_index()
    found: List[OutputDeviceInfo] = []
    for idx, info in enumerate(infos):
        if info.get("max_output_channels", 0) < STEREO_CHANNELS:
            continue
        api = info.get("hostapi")
        found.append(OutputDeviceInfo(
            index=idx,
            name=info.get("name") or f"Dispositivo {idx}",
            host_api=hostapis[api]["name"] if api is not None and api < len(hostapis) else "",
            sample_rate=int(info.get("default_samplerate") or 48000),
            is_default=default_output == idx,
        ))
    return found
