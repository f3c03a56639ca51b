"""
plot.py : Quick-look figures (matplotlib).
"""

from __future__ import annotations
from typing import Optional, Tuple
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Ellipse

from .beam import Beam
from .context import ConvolutionResult


def set_plot_style():
    """論文用プロット設定を有効化する"""
    plt.rcParams['pdf.fonttype'] = 42  # To embed fonts when saving as pdf
    plt.rcParams['mathtext.fontset'] = 'stix'
    plt.rcParams['font.size'] = 14
    plt.rcParams['legend.fontsize'] = 12
    plt.rcParams['xtick.direction'] = 'in'
    plt.rcParams['ytick.direction'] = 'in'
    plt.rcParams['xtick.major.size'] = 5.0
    plt.rcParams['xtick.minor.size'] = 3.0
    plt.rcParams['ytick.major.size'] = 5.0
    plt.rcParams['ytick.minor.size'] = 3.0
    plt.rcParams['axes.linewidth'] = 2.
    plt.rcParams['legend.framealpha'] = 0
    plt.rcParams['xtick.top'] = True
    plt.rcParams['ytick.right'] = True


def beam_ellipse(beam: Beam, pixel_scale: float, xy: Tuple[float, float], **kwargs) -> Ellipse:
    """
    Beam outline (FWHM) in pixel coordinates for an origin='lower' image.
    PA is north through east, east to the left, hence angle = BPA + 90.
    """
    style = dict(edgecolor='red', facecolor='none', lw=1.5)
    style.update(kwargs)
    return Ellipse(xy=xy, width=beam.major/pixel_scale, height=beam.minor/pixel_scale,
                   angle=beam.pa + 90.0, **style)


def plot_comparison(original: np.ndarray, result: ConvolutionResult, plane: int = 0,
                    cmap: str = 'viridis', fig: Optional[plt.Figure] = None) -> plt.Figure:
    """Input and smoothed plane side by side, with the beams drawn in the lower-left corner."""
    img_in = original if original.ndim == 2 else original[plane]
    img_out = result.data if result.data.ndim == 2 else result.data[plane]

    if fig is None:
        fig = plt.figure(figsize=(10, 5))
    axes = fig.subplots(1, 2, sharex=True, sharey=True)

    ny, nx = img_in.shape
    xy_beam = (0.15*nx, 0.15*ny)
    vmin = np.nanmin(img_out)
    vmax = np.nanmax(img_out)
    for ax, img, beam, title in [
        (axes[0], img_in, result.start_beam, "input"),
        (axes[1], img_out, result.target_beam, "smoothed"),
    ]:
        ax.imshow(img, origin='lower', cmap=cmap, vmin=vmin, vmax=vmax)
        if not beam.is_point:
            ax.add_patch(beam_ellipse(beam, result.pixel_scale, xy_beam))
        ax.set_title(f"{title}: {beam.describe()}", fontsize=10)
        ax.set_xlabel("x (pix)")
    axes[0].set_ylabel("y (pix)")
    return fig
