from __future__ import annotations
from pathlib import Path

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker

from audiometry.audiogram import ChartSeries, log_points

_MARKERS = {'both_ears': 'o', 'right_ear': 'o', 'left_ear': 'x'}


def _setup_axes(ax, series: ChartSeries, title: str, ylabel: str, y_range, invert: bool) -> None:
    ax.set_title(title, pad=10)
    ax.set_xscale('log', base=10)
    ax.set_xlim(*series.x_domain)
    ax.set_xticks(list(series.frequencies))
    ax.get_xaxis().set_major_formatter(mticker.ScalarFormatter())
    ax.xaxis.set_minor_formatter(mticker.NullFormatter())
    lo, hi = y_range
    if invert:
        ax.set_ylim(hi, lo)
    else:
        ax.set_ylim(lo, hi)
    ax.yaxis.set_major_locator(mticker.MultipleLocator(10))
    ax.set_xlabel("Frequenza (Hz)")
    ax.set_ylabel(ylabel)
    ax.grid(True, which='major', linestyle='--', alpha=0.5)


def _plot_series(ax, freqs, series_list) -> None:
    for s in series_list:
        if s.hidden or not s.values:
            continue
        ax.plot(freqs, s.values, marker=_MARKERS.get(s.ear.value, 'o'),
                color=s.color, linewidth=1.5, label=s.label)


def render_charts(series: ChartSeries, title: str | None = None):
    """Disegna curva di audibilita' e audiogramma affiancati; ritorna ``(fig, axes)``."""
    fig, (ax_thr, ax_aud) = plt.subplots(1, 2, figsize=(12, 5))
    if title:
        fig.suptitle(title)
    freqs = list(series.frequencies)

    _setup_axes(ax_thr, series, "Curva di audibilita'", "Livello (dB)", series.threshold_y_range, invert=False)
    _plot_series(ax_thr, freqs, series.thresholds)

    _setup_axes(ax_aud, series, "Audiogramma", "Livello uditivo (dB re ISO 1961)",
                series.audiogram_y_range, invert=True)
    ref_x = log_points(series.x_domain[0], series.x_domain[1], 100)
    ax_aud.plot(ref_x, [0.0] * len(ref_x), linestyle='--', color='#777777', linewidth=1, label='Riferimento')
    _plot_series(ax_aud, freqs, series.audiograms)

    for ax in (ax_thr, ax_aud):
        if ax.get_legend_handles_labels()[0]:
            ax.legend(loc='lower right')
    fig.tight_layout()
    return fig, (ax_thr, ax_aud)


def export_charts_png(series: ChartSeries, out_path: str | Path, title: str | None = None, dpi: int = 150) -> Path:
    """Salva i due grafici come PNG su file."""
    path = Path(out_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig, _ = render_charts(series, title)
    try:
        fig.savefig(path, dpi=dpi)
    finally:
        plt.close(fig)
    return path
