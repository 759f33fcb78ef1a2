from __future__ import annotations
from typing import Dict, Sequence, Tuple
from PySide6.QtWidgets import QGroupBox, QHBoxLayout, QVBoxLayout, QSlider, QLabel, QPushButton
from PySide6.QtCore import Qt, Signal


class FrequencySliders(QGroupBox):
    """Un cursore verticale 0-100 e un pulsante Test per ciascuna frequenza."""

    sliderChanged = Signal(int, int)
    testRequested = Signal(int)

    def __init__(self, frequencies: Sequence[int], parent=None) -> None:
        super().__init__("Frequenze", parent)
        layout = QHBoxLayout(self)
        self._controls: Dict[int, Tuple[QSlider, QLabel, QPushButton]] = {}
        for freq in frequencies:
            column = QVBoxLayout()
            title = QLabel(f"{freq} Hz")
            title.setAlignment(Qt.AlignCenter)
            column.addWidget(title)
            value_label = QLabel("100")
            value_label.setAlignment(Qt.AlignCenter)
            column.addWidget(value_label)
            slider = QSlider(Qt.Vertical)
            slider.setRange(0, 100)
            slider.setValue(100)
            slider.setMinimumHeight(180)
            slider.valueChanged.connect(lambda value, f=freq: self._on_slider(f, value))
            column.addWidget(slider, 1, Qt.AlignHCenter)
            button = QPushButton("Test")
            button.clicked.connect(lambda _checked=False, f=freq: self.testRequested.emit(f))
            column.addWidget(button)
            layout.addLayout(column)
            self._controls[freq] = (slider, value_label, button)

    def _on_slider(self, freq: int, value: int) -> None:
        self._controls[freq][1].setText(str(value))
        self.sliderChanged.emit(freq, int(value))

    def set_values(self, values: Dict[int, int]) -> None:
        for freq, value in values.items():
            controls = self._controls.get(int(freq))
            if controls is None:
                continue
            slider, label, _button = controls
            slider.blockSignals(True)
            slider.setValue(int(value))
            slider.blockSignals(False)
            label.setText(str(int(value)))

    def set_controls_enabled(self, enabled: bool) -> None:
        for slider, _label, button in self._controls.values():
            slider.setEnabled(enabled)
            button.setEnabled(enabled)
