from __future__ import annotations
from PySide6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QGroupBox,
    QRadioButton,
    QButtonGroup,
    QCheckBox,
    QLabel,
    QLineEdit,
    QSpinBox,
    QPushButton,
    QFormLayout,
)
from PySide6.QtCore import Signal

from audio.ears import EarMode

EAR_OPTIONS = [
    (EarMode.BOTH, "Entrambe"),
    (EarMode.LEFT, "Sinistro"),
    (EarMode.RIGHT, "Destro"),
]


class SidebarControls(QWidget):
    """Controlli del test: orecchio, curve visibili, dati soggetto e azioni."""

    earChanged = Signal(str)
    visibilityChanged = Signal(str, bool)
    saveRequested = Signal()
    recalibrateRequested = Signal()
    restartRequested = Signal()
    stopRequested = Signal()

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setSpacing(8)

        box_ear = QGroupBox("Orecchio in esame")
        ear_layout = QVBoxLayout(box_ear)
        self._ear_group = QButtonGroup(self)
        self._ear_buttons = {}
        for idx, (ear, label) in enumerate(EAR_OPTIONS):
            radio = QRadioButton(label)
            self._ear_group.addButton(radio, idx)
            self._ear_buttons[ear] = radio
            ear_layout.addWidget(radio)
        self._ear_buttons[EarMode.BOTH].setChecked(True)
        self._ear_group.idToggled.connect(self._emit_ear)
        layout.addWidget(box_ear)

        box_show = QGroupBox("Curve visibili")
        show_layout = QVBoxLayout(box_show)
        self._show_checks = {}
        for ear, label in EAR_OPTIONS:
            check = QCheckBox(label)
            check.toggled.connect(lambda checked, e=ear: self.visibilityChanged.emit(e.value, checked))
            self._show_checks[ear] = check
            show_layout.addWidget(check)
        layout.addWidget(box_show)

        box_subject = QGroupBox("Soggetto")
        form = QFormLayout(box_subject)
        self.ed_initials = QLineEdit()
        self.ed_initials.setMaxLength(8)
        self.ed_initials.setPlaceholderText("Es. AB")
        self.sp_age = QSpinBox()
        self.sp_age.setRange(0, 120)
        self.sp_age.setSpecialValueText(" ")
        form.addRow("Iniziali", self.ed_initials)
        form.addRow("Eta'", self.sp_age)
        layout.addWidget(box_subject)

        self.btn_save = QPushButton("Salva dati")
        self.btn_save.clicked.connect(self.saveRequested.emit)
        layout.addWidget(self.btn_save)

        row = QHBoxLayout()
        self.btn_recalibrate = QPushButton("Ricalibra")
        self.btn_recalibrate.clicked.connect(self.recalibrateRequested.emit)
        row.addWidget(self.btn_recalibrate)
        self.btn_restart = QPushButton("Riavvia")
        self.btn_restart.clicked.connect(self.restartRequested.emit)
        row.addWidget(self.btn_restart)
        layout.addLayout(row)

        self.btn_stop = QPushButton("STOP suono")
        self.btn_stop.clicked.connect(self.stopRequested.emit)
        layout.addWidget(self.btn_stop)

        layout.addWidget(QLabel("Abbassa ogni cursore finche' il tono non e' piu' udibile."))
        layout.addStretch()

    # --- Emitters ---

    def _emit_ear(self, button_id: int, checked: bool) -> None:
        if checked:
            self.earChanged.emit(EAR_OPTIONS[button_id][0].value)

    # --- Accessors ---

    def set_ear(self, ear: EarMode) -> None:
        button = self._ear_buttons.get(ear)
        if button is None:
            return
        self._ear_group.blockSignals(True)
        button.setChecked(True)
        self._ear_group.blockSignals(False)

    def set_visibility(self, visibility) -> None:
        for ear, check in self._show_checks.items():
            check.blockSignals(True)
            check.setChecked(bool(visibility.get(ear, False)))
            check.blockSignals(False)

    def initials(self) -> str:
        return self.ed_initials.text().strip()

    def age(self) -> str:
        # 0 e' mostrato vuoto (specialValueText): equivale a eta' non inserita
        value = self.sp_age.value()
        return str(value) if value > 0 else ''

    def set_subject(self, initials: str = '', age: int | None = None) -> None:
        self.ed_initials.setText(initials or '')
        self.sp_age.setValue(int(age) if age else 0)

    def set_test_controls_enabled(self, enabled: bool) -> None:
        widgets = [
            *self._ear_buttons.values(),
            *self._show_checks.values(),
            self.ed_initials,
            self.sp_age,
            self.btn_save,
            self.btn_recalibrate,
            self.btn_restart,
        ]
        for widget in widgets:
            widget.setEnabled(enabled)
