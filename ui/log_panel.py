from __future__ import annotations
import logging
from datetime import datetime
from PySide6.QtWidgets import QWidget, QVBoxLayout, QLabel, QPlainTextEdit
from PySide6.QtCore import QObject, Qt, Signal


class _LogBridge(QObject):
    message = Signal(str)


class QtLogHandler(logging.Handler):
    """Inoltra i record di logging al pannello (thread-safe tramite segnale)."""

    def __init__(self, panel: 'LogPanel', level: int = logging.INFO) -> None:
        super().__init__(level)
        self._bridge = _LogBridge()
        self._bridge.message.connect(panel.append)
        self.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._bridge.message.emit(self.format(record))
        except RuntimeError:
            # pannello gia' distrutto alla chiusura
            pass


class LogPanel(QWidget):
    """Area di log compatta (circa tre righe visibili)."""

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 0, 4, 4)
        layout.setSpacing(2)
        layout.addWidget(QLabel("Log"))
        self._view = QPlainTextEdit()
        self._view.setReadOnly(True)
        self._view.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOn)
        self._view.setMaximumBlockCount(500)
        line_height = self._view.fontMetrics().lineSpacing()
        self._view.setFixedHeight(int(line_height * 3.2))
        layout.addWidget(self._view)

    def append(self, message: str) -> None:
        timestamp = datetime.now().strftime('%H:%M:%S')
        self._view.appendPlainText(f"[{timestamp}] {message}")
        self._view.verticalScrollBar().setValue(self._view.verticalScrollBar().maximum())
