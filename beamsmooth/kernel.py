"""
kernel.py : Discretize a (deconvolved) beam into a convolution kernel.
"""

from __future__ import annotations
import logging
from typing import Sequence, Tuple
import numpy as np

from .beam import Beam

logger = logging.getLogger(__name__)

FWHM2SIGMA = 1.0 / (2.0 * np.sqrt(2.0 * np.log(2.0)))
SUPPORT_FWHM = 6.0      # kernel span in units of the major-axis FWHM
MIN_SIGMA_PIX = 1e-3    # floor for zero-width axes [pix]
PIXEL_SIGMA = 1.0 / np.sqrt(12.0)   # rms width of a uniform pixel [pix]


# -------------------------- Utilities -------------------------- #
def _rot(x: np.ndarray, y: np.ndarray, c: float, s: float) -> tuple[np.ndarray, np.ndarray]:
    """2D rotation of coordinates by cos/sin values (passive)."""
    xr =  c * x + s * y
    yr = -s * x + c * y
    return xr, yr


def _normalize_kernel(kernel: np.ndarray) -> np.ndarray:
    """Normalize a 2D kernel so that it sums to 1."""
    total = np.sum(kernel)
    if total > 0:
        return kernel / total
    else:
        raise ValueError("Kernel sum is zero or negative, cannot normalize.")


def _largest_odd(n: int) -> int:
    n = int(n)
    if n % 2 == 0:
        n -= 1
    return max(n, 1)


# -------------------------- Kernel -------------------------- #
def kernel_size(kernel_beam: Beam, pixel_scale: float, image_shape: Sequence[int]) -> Tuple[int, bool]:
    """
    Side length of the square kernel grid.

    The span is 6 * FWHM_major [pix] + 1, rounded up to an odd integer. If that
    exceeds either spatial dimension of the image, it is clamped to the largest
    odd integer <= min(ny, nx) - 2.

    Parameters
    ----------
    kernel_beam : Beam
        Kernel beam [arcsec].
    pixel_scale : float
        [arcsec/pix]
    image_shape : tuple
        Image shape; the last two entries are (ny, nx).

    Returns
    -------
    size : int
        Odd kernel side length.
    clamped : bool
        True if the kernel had to be truncated to fit the image.
    """
    if pixel_scale <= 0:
        raise ValueError("pixel_scale must be > 0.")
    ny, nx = int(image_shape[-2]), int(image_shape[-1])

    major_pix = kernel_beam.major / pixel_scale
    size = int(np.ceil(SUPPORT_FWHM * major_pix + 1.0 - 1e-9))
    if size % 2 == 0:
        size += 1

    if size > nx or size > ny:
        clamped_size = _largest_odd(min(nx, ny) - 2)
        logger.debug("kernel size %d clamped to %d for image %dx%d", size, clamped_size, ny, nx)
        return clamped_size, True
    return size, False


def rasterize_kernel(kernel_beam: Beam, npix: int, pixel_scale: float) -> np.ndarray:
    """
    Square (npix, npix) elliptical Gaussian kernel normalized to unit sum.

    The beam PA is measured from north (+y, up) through east (-x, left), so the
    major axis points at 90 + PA deg counter-clockwise from the +x axis.

    Parameters
    ----------
    kernel_beam : Beam
        Kernel beam [arcsec].
    npix : int
        Odd side length.
    pixel_scale : float
        [arcsec/pix]

    Returns
    -------
    kernel : (npix, npix) ndarray
    """
    if npix < 1 or npix % 2 == 0:
        raise ValueError("npix should be odd to center the beam at a pixel.")
    if npix == 1:
        return np.ones((1, 1))

    # FWHM -> sigma [pixel]
    sx_pix = max(kernel_beam.major / pixel_scale * FWHM2SIGMA, MIN_SIGMA_PIX)
    sy_pix = kernel_beam.minor / pixel_scale * FWHM2SIGMA

    # a sub-pixel minor axis is widened to the pixel footprint (but not past the
    # major axis), otherwise a line kernel at an oblique PA misses every pixel
    # centre but the middle one
    floor = min(PIXEL_SIGMA, sx_pix)
    if sy_pix < floor:
        logger.debug("kernel minor sigma %.3g pix widened to %.3g pix", sy_pix, floor)
        sy_pix = floor

    # astronomical PA (north through east) -> angle from +x
    theta = np.deg2rad(90.0 + kernel_beam.pa)
    c, s = np.cos(theta), np.sin(theta)

    yy, xx = np.indices((npix, npix))
    cy, cx = (npix-1)/2.0, (npix-1)/2.0
    x = xx - cx
    y = yy - cy

    # major axis along x'
    xp, yp = _rot(x, y, c, s)

    k = np.exp(-0.5*((xp/sx_pix)**2 + (yp/sy_pix)**2))
    return _normalize_kernel(k)


def make_kernel(kernel_beam: Beam, pixel_scale: float, image_shape: Sequence[int]) -> Tuple[np.ndarray, bool]:
    """Size and rasterize the kernel for an image. Returns (kernel, clamped)."""
    npix, clamped = kernel_size(kernel_beam, pixel_scale, image_shape)
    return rasterize_kernel(kernel_beam, npix, pixel_scale), clamped
