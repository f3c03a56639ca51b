"""
scaling.py : Beam-area corrections applied after convolution.
"""

from __future__ import annotations
import numpy as np

from .beam import Beam


def pixels_per_beam(beam: Beam, pixel_scale: float) -> float:
    """
    Number of pixels in one beam solid angle.

        (sqrt(major*minor) / pixel_scale / 2)^2 / ln2 * pi

    A zero-area beam gives 1.0 (nothing was averaged).
    """
    if beam.major * beam.minor <= 0:
        return 1.0
    fwhm = np.sqrt(beam.major * beam.minor)
    return float((fwhm / pixel_scale / 2.0)**2 / np.log(2.0) * np.pi)


def uncertainty_scale(ppbeam_start: float, ppbeam_final: float) -> float:
    """Noise reduction from averaging over a larger beam: sqrt(start/final)."""
    return float(np.sqrt(ppbeam_start / ppbeam_final))


def per_beam_scale(ppbeam_start: float, ppbeam_final: float) -> float:
    """Jy/beam-like units: a larger beam holds final/start times the flux."""
    return float(ppbeam_final / ppbeam_start)


def unsquare_uncertainty(data: np.ndarray, scale: float) -> np.ndarray:
    """
    Undo square_if_uncertainty after convolution (in place).
    Negative values are FFT round-off around zero and are clipped.
    """
    np.clip(data, 0.0, None, out=data)
    np.sqrt(data, out=data)
    data *= scale
    return data
