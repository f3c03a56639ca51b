"""
preprocess.py : Pixel scale / beam lookup and non-finite handling before convolution.
"""

from __future__ import annotations
import logging
from typing import Optional, Tuple, Union, Sequence
import warnings
import numpy as np
from astropy.wcs import WCS, FITSFixedWarning
from astropy.wcs.utils import proj_plane_pixel_scales

from .beam import Beam, DEG2ARCSEC
from .errors import ConfigurationError
from .fitsio import as_header

logger = logging.getLogger(__name__)

BeamLike = Union[Beam, Sequence[float]]

WCS_SCALE_KEYS = ("CDELT2", "CD1_2", "CD2_1", "CD2_2")


def as_beam(beam: BeamLike) -> Beam:
    """Accept a Beam or a (major, minor, pa) sequence [arcsec, arcsec, deg]."""
    if isinstance(beam, Beam):
        return beam
    values = [float(v) for v in beam]
    if len(values) != 3:
        raise ValueError(f"Beam must be (major, minor, pa), got {len(values)} values.")
    return Beam(*values)


# -------------------------- Pixel scale / start beam -------------------------- #
def resolve_pixel_scale(header=None, pixel_scale: Optional[float] = None) -> float:
    """
    Pixel scale [arcsec/pix].

    An explicit pixel_scale wins; otherwise the y-axis pixel size [deg] is read
    from the header WCS (CDELT2, or the CD matrix when present).
    """
    if pixel_scale is not None:
        pixel_scale = float(pixel_scale)
        if not (np.isfinite(pixel_scale) and pixel_scale > 0):
            raise ConfigurationError(f"pixel_scale must be > 0, got {pixel_scale}.")
        return pixel_scale

    if header is None:
        raise ConfigurationError("No header: pixel_scale and start_beam must both be given.")

    header = as_header(header)
    if not any(key in header for key in WCS_SCALE_KEYS):
        raise ConfigurationError("Header has no CDELT2/CD matrix and no pixel_scale was given.")

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", FITSFixedWarning)
            wcs = WCS(header, naxis=2)
        # length of the y pixel axis on the sky; a rotated CD matrix spreads it over CD1_2 and CD2_2
        scale = float(proj_plane_pixel_scales(wcs)[1]) * DEG2ARCSEC
    except ValueError as e:
        raise ConfigurationError(f"Cannot read the pixel scale from the header WCS ({e}).") from e
    if not (np.isfinite(scale) and scale > 0):
        raise ConfigurationError(f"Header pixel scale must be > 0, got {scale}.")
    return scale


def resolve_start_beam(header=None, start_beam: Optional[BeamLike] = None) -> Beam:
    """Starting beam: explicit value, else BMAJ/BMIN/BPA from the header."""
    if start_beam is not None:
        return as_beam(start_beam)

    if header is None:
        raise ConfigurationError("No header: pixel_scale and start_beam must both be given.")

    try:
        return Beam.from_header(header)
    except KeyError as e:
        raise ConfigurationError(f"Header has no beam and no start_beam was given ({e}).") from e


# -------------------------- Data -------------------------- #
def mask_nonfinite(data: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Replace NaN/inf with 0 (they would spread through an FFT).

    Returns
    -------
    clean : ndarray
        float64 copy of data with non-finite samples set to zero.
    mask : bool ndarray
        True where data was non-finite.
    """
    clean = np.array(data, dtype=np.float64, copy=True)
    mask = ~np.isfinite(clean)
    if mask.any():
        logger.debug("masking %d non-finite samples", int(mask.sum()))
        clean[mask] = 0.0
    return clean, mask


def restore_nonfinite(data: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Set the masked positions back to NaN (in place)."""
    if mask.shape != data.shape:
        raise ValueError("mask and data must have same shape.")
    data[mask] = np.nan
    return data


def square_if_uncertainty(data: np.ndarray, treat_as_uncertainty: bool) -> np.ndarray:
    """
    Square a noise map so that convolution sums variances.
    The square root is taken again in scaling.unsquare_uncertainty.
    """
    if treat_as_uncertainty:
        return data**2
    return data
