import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from ..simulation.cases import Ear, Transducer
from ..utils.defaults import MAX_TEST_LEVEL, MIN_TEST_LEVEL, TEST_FREQUENCIES

# Audiometric symbols, keyed by (ear, transducer, masked)
SYMBOLS = {
    (Ear.RIGHT, Transducer.AIR, False): 'o',
    (Ear.LEFT, Transducer.AIR, False): 'x',
    (Ear.RIGHT, Transducer.AIR, True): '^',
    (Ear.LEFT, Transducer.AIR, True): 's',
    (Ear.RIGHT, Transducer.BONE, False): '$<$',
    (Ear.LEFT, Transducer.BONE, False): '$>$',
    (Ear.RIGHT, Transducer.BONE, True): '$[$',
    (Ear.LEFT, Transducer.BONE, True): '$]$',
}

# Horizontal nudge so right and left bone symbols sit either side of the frequency
BONE_OFFSET = 0.12


def _ear_colors():
    palette = sns.color_palette("deep")
    return {Ear.RIGHT: palette[3], Ear.LEFT: palette[0]}


def _x_position(point):
    x = TEST_FREQUENCIES.index(point.frequency)
    if point.transducer is Transducer.BONE:
        x += -BONE_OFFSET if point.ear is Ear.RIGHT else BONE_OFFSET
    return x


def _group(points):
    groups = {}
    for point in points:
        groups.setdefault((point.ear, point.transducer, point.masked), []).append(point)
    for key in groups:
        groups[key].sort(key=lambda p: TEST_FREQUENCIES.index(p.frequency))
    return groups


def _draw_series(ax, points, colors, alpha=1.0, label_prefix=''):
    for (ear, transducer, masked), series in _group(points).items():
        color = colors[ear]
        marker = SYMBOLS[(ear, transducer, masked)]
        xs = [_x_position(p) for p in series]
        ys = [p.db for p in series]
        label = f"{label_prefix}{ear.value}-{transducer.value}-{'M' if masked else 'U'}"

        if transducer is Transducer.AIR:
            # Lines stop at scale-out points
            line_ys = [np.nan if p.so else p.db for p in series]
            ax.plot(xs, line_ys, linestyle='-', color=color, lw=1.5, alpha=alpha)

        ax.plot(xs, ys, linestyle='none', marker=marker, markersize=11, color=color,
                markerfacecolor='none' if marker in ('o', '^', 's') else color,
                markeredgewidth=2, alpha=alpha, label=label)

        for x, point in zip(xs, series):
            if point.so:
                ax.annotate('', xy=(x + 0.15, point.db + 8), xytext=(x, point.db),
                            arrowprops=dict(arrowstyle='->', color=color, lw=1.5, alpha=alpha))


def plot_audiogram(points, answer=None, title=None, ax=None, show_legend=True):
    """
    Draw placed thresholds on an audiogram.

    Args:
        points (iterable of PlotPoint): Placed points
        answer (iterable of PlotPoint, optional): Ground truth, drawn faded underneath
        title (str): Axes title. If None, no title is set.
        ax (matplotlib.axes.Axes): Axes to draw on; a new figure is created when omitted
        show_legend (bool): Whether to add a legend of the plotted series

    Returns:
        matplotlib.figure.Figure: The figure holding the audiogram
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(7, 6))
    else:
        fig = ax.figure

    colors = _ear_colors()
    if answer:
        _draw_series(ax, list(answer), colors, alpha=0.3, label_prefix='Answer ')
    _draw_series(ax, list(points), colors)

    ax.set_xticks(range(len(TEST_FREQUENCIES)))
    ax.set_xticklabels([str(f) for f in TEST_FREQUENCIES])
    ax.set_xlim(-0.5, len(TEST_FREQUENCIES) - 0.5)
    ax.set_xlabel('Frequency (Hz)')
    ax.set_ylabel('Hearing Level (dB HL)')
    ax.set_ylim(MAX_TEST_LEVEL + 5, MIN_TEST_LEVEL - 5)
    ax.set_yticks(np.arange(MIN_TEST_LEVEL, MAX_TEST_LEVEL + 10, 10))
    ax.grid(True, linestyle=':', alpha=0.6)
    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)
    if title:
        ax.set_title(title)
    if show_legend and ax.get_legend_handles_labels()[0]:
        ax.legend(loc='lower left', fontsize=8, ncol=2)

    fig.tight_layout()
    return fig


def print_measurement_log(log):
    """Print the measurement log as a table."""
    frame = log.to_frame() if hasattr(log, 'to_frame') else log
    if frame.empty:
        print("No measurements recorded.")
        return
    print(frame.to_string(index=False))
