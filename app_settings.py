from __future__ import annotations
from typing import Any, Dict
from pathlib import Path
import json
import os

_SETTINGS_FILENAME = 'settings.json'


def _settings_path(app_dir: str | Path) -> Path:
    folder = Path(app_dir)
    folder.mkdir(parents=True, exist_ok=True)
    return folder / _SETTINGS_FILENAME


def _default_settings() -> Dict[str, Any]:
    return {
        'output_device_index': None,
        'sample_rate': 48000,
        'last_export_dir': None,
        'last_initials': '',
    }


def load_settings(app_dir: str | Path) -> Dict[str, Any]:
    path = _settings_path(app_dir)
    if not path.exists():
        return _default_settings()
    try:
        with path.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError):
        return _default_settings()
    if not isinstance(data, dict):
        return _default_settings()
    for key, value in _default_settings().items():
        data.setdefault(key, value)
    return data


def save_settings(app_dir: str | Path, settings: Dict[str, Any]) -> None:
    path = _settings_path(app_dir)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, 'w', encoding='utf-8') as handle:
        json.dump(settings, handle, ensure_ascii=False, indent=2)
    os.replace(tmp_path, path)
