from __future__ import annotations
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Dict, Any

from dotenv import load_dotenv
from PySide6.QtWidgets import QApplication

from app_settings import load_settings
from config.data_dirs import ensure_data_dirs
from ui.main_window import MainWindow

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def _parse_args(argv: list[str]) -> tuple[argparse.Namespace, list[str]]:
    parser = argparse.ArgumentParser(description="Test di audibilita' a toni puri")
    parser.add_argument("--iniziali", help="Iniziali del soggetto")
    parser.add_argument("--eta", type=int, help="Eta' del soggetto")
    parser.add_argument("--device", type=int, help="Indice del dispositivo di uscita (sounddevice)")
    parser.add_argument("--data-dir", help="Cartella dati (impostazioni, log ed export)")
    parser.add_argument("--debug", action="store_true", help="Log dettagliato")
    return parser.parse_known_args(argv)


def configure_logging(log_file: Path, level: int) -> None:
    root = logging.getLogger('audibility')
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    root.addHandler(stream)
    try:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
    except OSError as exc:
        root.warning('Log su file non disponibile (%s): %s', log_file, exc)
    else:
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def _resolve_level(debug: bool) -> int:
    if debug:
        return logging.DEBUG
    name = os.environ.get('AUDIBILITY_LOG_LEVEL', 'INFO').upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    args = sys.argv if argv is None else argv
    known, passthrough = _parse_args(args[1:])

    dirs = ensure_data_dirs(known.data_dir or os.environ.get('AUDIBILITY_DATA_DIR'))
    configure_logging(dirs.log_file, _resolve_level(known.debug))
    logger = logging.getLogger('audibility')

    settings = load_settings(dirs.app)
    device = known.device if known.device is not None else os.environ.get('AUDIBILITY_OUTPUT_DEVICE')
    if device not in (None, ''):
        try:
            settings['output_device_index'] = int(device)
        except (TypeError, ValueError):
            logger.warning('Indice dispositivo non valido: %r', device)
    prefill: Dict[str, Any] = {'initials': known.iniziali, 'age': known.eta}

    app = QApplication([args[0], *passthrough])
    win = MainWindow(dirs, settings, prefill=prefill)
    win.show()
    logger.info('Avvio interfaccia (dati in %s)', dirs.app)
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
