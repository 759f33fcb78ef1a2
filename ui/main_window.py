from __future__ import annotations
from typing import Optional, Dict, Any
import logging
import os

from PySide6.QtWidgets import (
    QMainWindow,
    QWidget,
    QHBoxLayout,
    QVBoxLayout,
    QMessageBox,
    QFileDialog,
    QInputDialog,
    QLabel,
)

from ui.menus import MenuBuilder
from ui.audiogram_view import AudiogramView
from ui.calibration_panel import CalibrationPanel
from ui.frequency_sliders import FrequencySliders
from ui.sidebar_controls import SidebarControls
from ui.log_panel import LogPanel, QtLogHandler
from ui.qt_scheduler import QtScheduler
from audio.devices import list_output_devices
from audio.ears import EarMode
from audio.engine import ToneEngine
from audio.output import OutputDevice
from audiometry.exporter import ValidationError
from audiometry.reference import FREQUENCIES
from audiometry.session import CalibrationSession, Mode
from audiometry.storage import safe_initials
from config.data_dirs import DataDirectories
from export.png import export_charts_png
from app_settings import save_settings


class MainWindow(QMainWindow):
    """Finestra principale del test di audibilita'."""

    def __init__(
        self,
        data_dirs: DataDirectories,
        settings: Dict[str, Any],
        parent: Optional[QWidget] = None,
        *,
        prefill: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Curva di audibilita'")
        self.resize(1280, 800)
        self._logger = logging.getLogger('audibility.ui')
        self._dirs = data_dirs
        self._settings = settings

        self.output = OutputDevice(settings.get('output_device_index'), settings.get('sample_rate') or 48000)
        self.engine = ToneEngine(self.output, QtScheduler(self))
        self.session = CalibrationSession(self.engine, ui_callbacks=self)

        self._builder = MenuBuilder(self)
        self._builder.build()

        central = QWidget(self)
        root_layout = QVBoxLayout(central)
        root_layout.setContentsMargins(6, 6, 6, 6)
        main_layout = QHBoxLayout()
        root_layout.addLayout(main_layout, 1)

        left = QVBoxLayout()
        self.calibration = CalibrationPanel(self)
        left.addWidget(self.calibration)
        self.sliders = FrequencySliders(FREQUENCIES, self)
        left.addWidget(self.sliders, 1)
        main_layout.addLayout(left, 0)

        self.graph = AudiogramView(self)
        main_layout.addWidget(self.graph, 1)

        self.sidebar = SidebarControls(self)
        main_layout.addWidget(self.sidebar, 0)

        self.log_panel = LogPanel(self)
        root_layout.addWidget(self.log_panel)
        self._log_handler = QtLogHandler(self.log_panel)
        logging.getLogger('audibility').addHandler(self._log_handler)

        self.setCentralWidget(central)

        # Signal wiring
        self.calibration.knobChanged.connect(self.session.set_knob)
        self.calibration.testToneRequested.connect(self.session.play_calibration_tone)
        self.calibration.readyRequested.connect(self.session.ready)
        self.sliders.sliderChanged.connect(self.session.set_slider)
        self.sliders.testRequested.connect(self.session.play_test_tone)
        self.sidebar.earChanged.connect(self.session.select_ear_mode)
        self.sidebar.visibilityChanged.connect(self.session.set_visibility)
        self.sidebar.saveRequested.connect(self.save_data)
        self.sidebar.recalibrateRequested.connect(self.recalibrate)
        self.sidebar.restartRequested.connect(self.restart)
        self.sidebar.stopRequested.connect(self.stop_audio)

        self._status_device_label = QLabel()
        self.statusBar().addPermanentWidget(self._status_device_label)
        self._update_device_label()

        prefill = prefill or {}
        self.sidebar.set_subject(prefill.get('initials') or settings.get('last_initials', ''), prefill.get('age'))
        self._apply_session_state()
        self.set_status("Premi 'Tono di calibrazione' per attivare l'audio e regolare il volume.")

    # ----- Callback della sessione -----

    def on_status(self, message: str) -> None:
        self.statusBar().showMessage(message, 6000)

    def on_mode_changed(self, mode: Mode) -> None:
        testing = mode == Mode.TESTING
        self.calibration.set_controls_enabled(not testing)
        self.sliders.set_controls_enabled(testing)
        self.sidebar.set_test_controls_enabled(testing)

    def on_sliders_repaint(self, ear: EarMode, values: Dict[int, int]) -> None:
        self.sidebar.set_ear(ear)
        self.sliders.set_values(values)

    def on_data_changed(self) -> None:
        self.graph.update_series(self.session.chart_series())

    # ----- Helpers -----

    def set_status(self, message: str, *, timeout: int = 6000) -> None:
        self._logger.info(message)
        self.statusBar().showMessage(message, timeout)

    def _apply_session_state(self) -> None:
        self.calibration.set_knob(self.session.knob_value)
        self.sidebar.set_visibility(self.session.visibility)
        self.on_sliders_repaint(self.session.ear_mode, self.session.slider_values())
        self.on_mode_changed(self.session.mode)
        self.on_data_changed()

    def _update_device_label(self) -> None:
        idx = self.output.device_index
        text = "predefinito" if idx is None else f"#{idx}"
        self._status_device_label.setText(f"Uscita: {text} ({self.output.sample_rate} Hz)")

    def _export_dir(self) -> str:
        return self._settings.get('last_export_dir') or str(self._dirs.export)

    def _save_settings(self) -> None:
        try:
            save_settings(self._dirs.app, self._settings)
        except OSError as exc:
            self._logger.warning('Impossibile salvare le impostazioni: %s', exc)

    # ----- Azioni -----

    def stop_audio(self) -> None:
        self.session.stop()

    def recalibrate(self) -> None:
        self.session.recalibrate()

    def restart(self) -> None:
        if self.session.restart(confirm=self._confirm_restart):
            self.sidebar.set_subject('', None)
            self._apply_session_state()

    def _confirm_restart(self) -> bool:
        reply = QMessageBox.question(
            self,
            "Riavvia",
            "Riavviare il test? I dati non salvati andranno persi.",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        return reply == QMessageBox.Yes

    def save_data(self) -> None:
        initials = self.sidebar.initials()
        age = self.sidebar.age()
        try:
            path = self.session.save(initials, age, self._export_dir())
        except ValidationError as exc:
            QMessageBox.warning(self, "Dati mancanti", str(exc))
            return
        except OSError as exc:
            QMessageBox.warning(self, "Errore salvataggio", f"Impossibile scrivere il file:\n{exc}")
            return
        try:
            export_charts_png(self.session.chart_series(), path.with_suffix('.png'),
                              title=f"Curva di audibilita' - {initials}")
        except OSError as exc:
            self._logger.warning('Impossibile salvare i grafici PNG: %s', exc)
        self._settings['last_initials'] = initials
        self._save_settings()

    def export_charts_png(self) -> None:
        initials = self.sidebar.initials()
        suggested = os.path.join(self._export_dir(), f"audibility_charts_{safe_initials(initials)}.png")
        out_path, _ = QFileDialog.getSaveFileName(self, "Esporta grafici PNG", suggested, "Immagine PNG (*.png)")
        if not out_path:
            return
        try:
            export_charts_png(self.session.chart_series(), out_path,
                              title=f"Curva di audibilita' - {initials}" if initials else None)
        except OSError as exc:
            QMessageBox.warning(self, "Errore esportazione", str(exc))
            return
        self.set_status(f"PNG salvato in: {out_path}")

    def choose_export_dir(self) -> None:
        folder = QFileDialog.getExistingDirectory(self, "Cartella di esportazione", self._export_dir())
        if not folder:
            return
        self._settings['last_export_dir'] = folder
        self._save_settings()
        self.set_status(f"Cartella di esportazione: {folder}")

    def select_output_device(self) -> None:
        devices = list_output_devices()
        if not devices:
            QMessageBox.warning(self, "Nessun dispositivo", "Nessun dispositivo di uscita stereo disponibile.")
            return
        labels = [d.label for d in devices]
        choice, ok = QInputDialog.getItem(self, "Seleziona dispositivo output", "Dispositivo:", labels, 0, False)
        if not ok:
            return
        device = devices[labels.index(choice)]
        self.engine.stop()
        self.output.set_device(device.index, device.sample_rate)
        self._settings['output_device_index'] = device.index
        self._settings['sample_rate'] = device.sample_rate
        self._save_settings()
        self._update_device_label()
        self.set_status(f"Uscita attiva: {device.name}")

    def closeEvent(self, event) -> None:
        self.engine.stop()
        logging.getLogger('audibility').removeHandler(self._log_handler)
        self._save_settings()
        super().closeEvent(event)
