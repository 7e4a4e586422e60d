"""
Static focal-plane plots.

Each reaction is drawn as a row of vertical sticks, one per reachable level,
at its orbit radius (or focal-plane position). Red lines mark the spectrometer
acceptance. All functions return matplotlib Figure objects.

Example:
    >>> from spsplot.plotting import plot_focal_plane
    >>> fig = plot_focal_plane({rxn.identifier: points}, config)
    >>> fig.savefig('focal_plane.png', dpi=150)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Mapping, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np

from .focal_plane import SpectrometerConfig
from .plot_data import PlotPoint, PointStatus

if TYPE_CHECKING:
    from matplotlib.axes import Axes
    from matplotlib.figure import Figure


# Set default font for better Unicode support
plt.rcParams["font.family"] = "DejaVu Sans"

STICK_HEIGHT = 0.5


def plot_focal_plane(
    series: Mapping[str, Sequence[PlotPoint]],
    config: SpectrometerConfig,
    x: Literal["rho", "position"] = "rho",
    show_labels: bool = True,
    figsize: tuple[float, float] = (12, 6),
    title: str | None = None,
    ax: Optional["Axes"] = None,
) -> "Figure":
    """
    Plot one or more reactions on the focal plane.

    Args:
        series: Reaction identifier -> points from :func:`spsplot.plot_data.generate`.
        config: Spectrometer settings (acceptance lines and field in the title).
        x: Horizontal axis, orbit radius "rho" or focal-plane "position".
        show_labels: Annotate each stick with its point label.
        figsize: Figure size in inches.
        title: Plot title. Auto-generated if None.
        ax: Optional existing axes to plot on.

    Returns:
        matplotlib Figure object.

    Forbidden points are not drawn. Ambiguous points are drawn dashed.
    """
    if x not in ("rho", "position"):
        raise ValueError(f"Unknown x: {x}")

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    colors = plt.rcParams["axes.prop_cycle"].by_key()["color"]

    if x == "rho":
        low, high = config.rho_min, config.rho_max
        xlabel = "ρ (cm)"
    else:
        low = config.position_for_rho(config.rho_min)
        high = config.position_for_rho(config.rho_max)
        xlabel = "Focal-plane position (cm)"

    ax.axvline(low, color="red", linewidth=1.5)
    ax.axvline(high, color="red", linewidth=1.5)

    for index, (name, points) in enumerate(series.items()):
        color = colors[index % len(colors)]
        base = index + 0.25
        drawn = [p for p in points if p.status is not PointStatus.FORBIDDEN]
        values = np.array([getattr(p, x) for p in drawn], dtype=float)

        solid = np.array([p.status is PointStatus.OK for p in drawn], dtype=bool)
        if solid.any():
            ax.vlines(values[solid], base, base + STICK_HEIGHT, color=color, label=name)
        if (~solid).any():
            ax.vlines(
                values[~solid], base, base + STICK_HEIGHT, color=color,
                linestyles="dashed", label=None if solid.any() else name,
            )

        if show_labels:
            for point, value in zip(drawn, values):
                ax.annotate(
                    point.label,
                    (value, base + STICK_HEIGHT),
                    rotation=90,
                    fontsize=7,
                    ha="center",
                    va="bottom",
                    color=color,
                )

    ax.set_xlim(low - 5.0, high + 5.0)
    ax.set_ylim(-1.0, len(series) + 1.0)
    ax.set_yticks([])
    ax.set_xlabel(xlabel)
    ax.set_title(title or f"Focal plane, B = {config.field:.3f} kG")
    if series:
        ax.legend(loc="upper right")

    plt.tight_layout()
    return fig
