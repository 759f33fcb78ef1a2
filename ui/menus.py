from __future__ import annotations
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QMainWindow


class MenuBuilder:
    """
    Costruisce la barra menu:
    - FILE: Salva dati, Esporta grafici PNG, Cartella di esportazione, Chiudi
    - AUDIO: Seleziona dispositivo output, Ferma suono
    - TEST: Ricalibra, Riavvia
    """

    def __init__(self, win: QMainWindow) -> None:
        self.win = win

    def _connect(self, action: QAction, handler_name: str) -> None:
        handler = getattr(self.win, handler_name, None)
        if callable(handler):
            action.triggered.connect(handler)
        else:
            action.triggered.connect(lambda: None)

    def build(self) -> None:
        mb = self.win.menuBar()
        m_file = mb.addMenu("FILE")
        m_audio = mb.addMenu("AUDIO")
        m_test = mb.addMenu("TEST")

        # FILE
        act_save = QAction("Salva dati (CSV)", self.win)
        act_save.setShortcut("Ctrl+S")
        act_png = QAction("Esporta grafici PNG...", self.win)
        act_dir = QAction("Cartella di esportazione...", self.win)
        act_close = QAction("Chiudi", self.win)
        act_close.setShortcut("Alt+F4")
        m_file.addActions([act_save, act_png, act_dir])
        m_file.addSeparator()
        m_file.addAction(act_close)
        self._connect(act_save, "save_data")
        self._connect(act_png, "export_charts_png")
        self._connect(act_dir, "choose_export_dir")
        act_close.triggered.connect(self.win.close)

        # AUDIO
        act_device = QAction("Seleziona dispositivo output...", self.win)
        act_stop = QAction("Ferma suono", self.win)
        act_stop.setShortcut("Esc")
        m_audio.addActions([act_device, act_stop])
        self._connect(act_device, "select_output_device")
        self._connect(act_stop, "stop_audio")

        # TEST
        act_recal = QAction("Ricalibra", self.win)
        act_restart = QAction("Riavvia...", self.win)
        m_test.addActions([act_recal, act_restart])
        self._connect(act_recal, "recalibrate")
        self._connect(act_restart, "restart")
