from __future__ import annotations

import os
import re
from pathlib import Path

from audiometry.exporter import SessionRecord, export_filename, record_to_csv

_UNSAFE_RE = re.compile(r'[^A-Za-z0-9_-]+')


def safe_initials(initials: str) -> str:
    cleaned = _UNSAFE_RE.sub('_', initials).strip('_')
    return cleaned or 'anonimo'


def save_record(record: SessionRecord, directory: str | Path) -> Path:
    """
    Scrive il record come CSV UTF-8 in ``directory``.
    Il file viene prima scritto in un temporaneo e poi rinominato: in caso di
    errore non resta un CSV parziale.
    """
    folder = Path(directory)
    folder.mkdir(parents=True, exist_ok=True)
    file_path = folder / export_filename(safe_initials(record.initials))
    tmp_path = file_path.with_name(file_path.name + '.tmp')
    try:
        tmp_path.write_text(record_to_csv(record), encoding='utf-8', newline='')
        os.replace(tmp_path, file_path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()
    return file_path
