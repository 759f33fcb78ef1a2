from __future__ import annotations
from PySide6.QtWidgets import QGroupBox, QVBoxLayout, QHBoxLayout, QDial, QLabel, QPushButton
from PySide6.QtCore import Qt, Signal


class CalibrationPanel(QGroupBox):
    """Manopola di calibrazione, tono di prova a 2000 Hz e pulsante di avvio test."""

    knobChanged = Signal(int)
    testToneRequested = Signal()
    readyRequested = Signal()

    def __init__(self, parent=None) -> None:
        super().__init__("Calibrazione", parent)
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel(
            "Regola il volume del computer finche' il tono di prova e' appena udibile "
            "e confortevole, poi premi 'Inizia il test'."
        ))

        row = QHBoxLayout()
        self.dial = QDial()
        self.dial.setRange(0, 100)
        self.dial.setNotchesVisible(True)
        self.dial.setFixedSize(96, 96)
        self.dial.valueChanged.connect(self._on_dial)
        row.addWidget(self.dial)
        self.lbl_value = QLabel()
        self.lbl_value.setAlignment(Qt.AlignCenter)
        self.lbl_value.setStyleSheet("font-size: 18px;")
        row.addWidget(self.lbl_value)
        layout.addLayout(row)

        self.btn_test = QPushButton("Tono di calibrazione")
        self.btn_test.clicked.connect(self.testToneRequested.emit)
        layout.addWidget(self.btn_test)
        self.btn_ready = QPushButton("Inizia il test")
        self.btn_ready.clicked.connect(self.readyRequested.emit)
        layout.addWidget(self.btn_ready)

    def _on_dial(self, value: int) -> None:
        self.lbl_value.setText(str(value))
        self.knobChanged.emit(int(value))

    def set_knob(self, value: int) -> None:
        self.dial.blockSignals(True)
        self.dial.setValue(int(value))
        self.dial.blockSignals(False)
        self.lbl_value.setText(str(int(value)))

    def set_controls_enabled(self, enabled: bool) -> None:
        for widget in (self.dial, self.btn_test, self.btn_ready):
            widget.setEnabled(enabled)
