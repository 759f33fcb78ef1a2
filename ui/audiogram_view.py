from __future__ import annotations
from typing import Dict, Optional
import math

from PySide6.QtWidgets import QWidget, QHBoxLayout
from PySide6.QtGui import QColor
from PySide6.QtCore import Qt
import pyqtgraph as pg

from audio.ears import EarMode
from audiometry.audiogram import ChartSeries, X_DOMAIN_HZ, log_points
from audiometry.reference import FREQUENCIES

AXIS_TEXT_COLOR = '#333333'
AXIS_LINE_COLOR = '#b0bec5'
BACKGROUND_COLOR = QColor('#ffffff')
GRID_ALPHA = 0.3
SYMBOLS = {EarMode.BOTH: 'o', EarMode.RIGHT: 'o', EarMode.LEFT: 'x'}


def _make_plot(title: str, y_label: str) -> pg.PlotWidget:
    plot = pg.PlotWidget(title=title)
    plot.setBackground(BACKGROUND_COLOR)
    plot.setLogMode(x=True, y=False)
    plot.showGrid(x=True, y=True, alpha=GRID_ALPHA)
    plot.setLabel('bottom', 'Frequenza (Hz)', color=AXIS_TEXT_COLOR)
    plot.setLabel('left', y_label, color=AXIS_TEXT_COLOR)
    bottom = plot.getAxis('bottom')
    bottom.setTicks([[(math.log10(f), str(f)) for f in FREQUENCIES]])
    for name in ('bottom', 'left'):
        axis = plot.getAxis(name)
        axis.setPen(pg.mkPen(AXIS_LINE_COLOR))
        axis.setTextPen(pg.mkPen(AXIS_TEXT_COLOR))
    plot.setXRange(math.log10(X_DOMAIN_HZ[0]), math.log10(X_DOMAIN_HZ[1]), padding=0)
    plot.addLegend(offset=(10, 10))
    return plot


class AudiogramView(QWidget):
    """Curva di audibilita' e audiogramma affiancati, aggiornati da ``ChartSeries``."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QHBoxLayout(self)
        self.threshold_plot = _make_plot("Curva di audibilita'", "Livello (dB)")
        self.audiogram_plot = _make_plot("Audiogramma", "Livello uditivo (dB re ISO 1961)")
        self.audiogram_plot.invertY(True)
        layout.addWidget(self.threshold_plot)
        layout.addWidget(self.audiogram_plot)

        ref_x = log_points(X_DOMAIN_HZ[0], X_DOMAIN_HZ[1], 100)
        ref_pen = pg.mkPen(color=(0, 0, 0, 128), width=1, style=Qt.DashLine)
        self.audiogram_plot.plot(ref_x, [0.0] * len(ref_x), pen=ref_pen, name='Riferimento')

        self._threshold_items: Dict[EarMode, pg.PlotDataItem] = {}
        self._audiogram_items: Dict[EarMode, pg.PlotDataItem] = {}
        for ear in (EarMode.BOTH, EarMode.RIGHT, EarMode.LEFT):
            self._threshold_items[ear] = self._add_item(self.threshold_plot, ear)
            self._audiogram_items[ear] = self._add_item(self.audiogram_plot, ear)

    @staticmethod
    def _add_item(plot: pg.PlotWidget, ear: EarMode) -> pg.PlotDataItem:
        return plot.plot([], [], name=ear.label, symbol=SYMBOLS[ear], symbolSize=8)

    def update_series(self, series: ChartSeries) -> None:
        freqs = list(series.frequencies)
        self.threshold_plot.setYRange(*series.threshold_y_range, padding=0)
        self.audiogram_plot.setYRange(*series.audiogram_y_range, padding=0)
        for items, series_list in ((self._threshold_items, series.thresholds),
                                   (self._audiogram_items, series.audiograms)):
            for s in series_list:
                item = items[s.ear]
                pen = pg.mkPen(s.color, width=2)
                item.setPen(pen)
                item.setSymbolPen(pen)
                item.setSymbolBrush(pg.mkBrush(s.color))
                if s.hidden:
                    item.setData([], [])
                    item.setVisible(False)
                else:
                    item.setData(freqs, list(s.values))
                    item.setVisible(True)
