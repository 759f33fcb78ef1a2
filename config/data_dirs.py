from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import platform

APP_NAME = 'CurvaAudibilita'


@dataclass(frozen=True)
class DataDirectories:
    app: Path
    export: Path

    @property
    def log_file(self) -> Path:
        return self.app / 'audibility.log'


def _app_data_root() -> Path:
    system = platform.system().lower()
    if 'windows' in system:
        base = os.environ.get('LOCALAPPDATA') or os.environ.get('APPDATA')
        return Path(base) if base else Path.home()
    if 'darwin' in system:
        return Path.home() / 'Library' / 'Application Support'
    base = os.environ.get('XDG_CONFIG_HOME')
    return Path(base) if base else Path.home() / '.config'


def _documents_root() -> Path:
    candidates = [
        os.environ.get('DOCUMENTS'),
        os.environ.get('USERPROFILE'),
    ]
    for value in candidates:
        if not value:
            continue
        candidate = Path(value)
        if 'documents' not in candidate.name.lower():
            candidate = candidate / 'Documents'
        if candidate.exists():
            return candidate
    fallback = Path.home() / 'Documents'
    return fallback if fallback.exists() else Path.home()


def ensure_data_dirs(root: str | Path | None = None) -> DataDirectories:
    """Crea (se serve) le cartelle dati; ``root`` sostituisce entrambe le radici."""
    if root is not None:
        base = Path(root)
        dirs = DataDirectories(app=base, export=base / 'Export')
    else:
        dirs = DataDirectories(
            app=_app_data_root() / APP_NAME,
            export=_documents_root() / APP_NAME,
        )
    for path in (dirs.app, dirs.export):
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError:
            pass
    return dirs
