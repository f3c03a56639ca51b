"""
beam.py : Elliptical Gaussian beams and their quadratic forms.

Conventions
-----------
• major, minor : FWHM [arcsec], major >= minor >= 0
• pa           : [deg], north = 0, east = 90, folded into [0, 180)
• Quadratic form Q is a symmetric 2x2 matrix in the (north, east) frame with
      Q = R diag(major^2, minor^2) R^T / (4 ln 2)
  so that the beam profile is exp(-r^T Q^-1 r). Convolving two Gaussians adds
  their quadratic forms; deconvolving subtracts them.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Tuple, Optional
import numpy as np

from .errors import BeamIncompatibleError

logger = logging.getLogger(__name__)

FWHM2_TO_QF = 1.0 / (4.0 * np.log(2.0))  # FWHM^2 -> quadratic-form eigenvalue
DEG2ARCSEC = 3600.0
PSD_TOL = 1e-9  # relative tolerance on eigenvalues


# -------------------------- Beam -------------------------- #
@dataclass(frozen=True, slots=True)
class Beam:
    """
    Elliptical Gaussian beam.

    A beam with minor > major is flipped so that the larger axis is the major
    one, and the position angle is rotated by 90 deg accordingly.
    major == minor == 0 denotes a point source (no smoothing).
    """
    major: float
    minor: float
    pa: float = 0.0

    def __post_init__(self):
        major, minor, pa = float(self.major), float(self.minor), float(self.pa)
        if not np.all(np.isfinite([major, minor, pa])):
            raise ValueError(f"Beam parameters must be finite, got ({major}, {minor}, {pa}).")
        if major < 0 or minor < 0:
            raise ValueError(f"Beam axes must be >= 0, got major={major}, minor={minor}.")
        if minor > major:
            major, minor, pa = minor, major, pa + 90.0

        pa = pa % 180.0
        if 180.0 - pa < 1e-9:
            pa = 0.0

        object.__setattr__(self, "major", major)
        object.__setattr__(self, "minor", minor)
        object.__setattr__(self, "pa", pa)

    @classmethod
    def from_header(cls, header) -> "Beam":
        """Read BMAJ, BMIN [deg] and BPA [deg] from a FITS-like header."""
        bmaj = header.get("BMAJ")
        bmin = header.get("BMIN")
        bpa = header.get("BPA", 0.0)
        if bmaj is None or bmin is None:
            raise KeyError("Header has no BMAJ/BMIN keywords.")
        return cls(float(bmaj) * DEG2ARCSEC, float(bmin) * DEG2ARCSEC, float(bpa))

    def to_header_keywords(self) -> dict:
        return {
            "BMAJ": self.major / DEG2ARCSEC,
            "BMIN": self.minor / DEG2ARCSEC,
            "BPA": self.pa,
        }

    @property
    def is_point(self) -> bool:
        return self.major == 0.0

    @property
    def area(self) -> float:
        """Solid angle of the beam [arcsec^2]."""
        return np.pi * self.major * self.minor / (4.0 * np.log(2.0))

    def describe(self) -> str:
        return f'{self.major:.3f}" x {self.minor:.3f}", PA {self.pa:.1f} deg'


POINT_BEAM = Beam(0.0, 0.0, 0.0)


# -------------------------- Quadratic forms -------------------------- #
def _rotation(pa_deg: float) -> np.ndarray:
    """Columns are the major and minor axis directions in the (north, east) frame."""
    t = np.deg2rad(pa_deg)
    c, s = np.cos(t), np.sin(t)
    return np.array([[c, -s],
                     [s,  c]])


def to_quadratic_form(beam: Beam) -> np.ndarray:
    """
    Build the quadratic form of a beam.

    Parameters
    ----------
    beam : Beam
        Any beam, including minor == 0 (line) and point sources.

    Returns
    -------
    Q : (2, 2) ndarray
        Symmetric positive semi-definite matrix [arcsec^2].
    """
    R = _rotation(beam.pa)
    D = np.diag([beam.major**2, beam.minor**2]) * FWHM2_TO_QF
    Q = R @ D @ R.T
    return 0.5 * (Q + Q.T)


def from_quadratic_form(Q, tol: float = PSD_TOL, scale: Optional[float] = None) -> Beam:
    """
    Recover a beam from its quadratic form by eigen-decomposition.

    Parameters
    ----------
    Q : (2, 2) array
        Symmetric matrix.
    tol : float
        Relative tolerance. Eigenvalues within tol*scale of zero are set to
        zero; eigenvalues below -tol*scale mean Q is not positive semi-definite.
    scale : float or None
        Reference magnitude for tol (defaults to the largest |eigenvalue|).
        deconvolve() passes the size of the input forms so that round-off in
        a difference is judged against the operands, not against the result.

    Returns
    -------
    beam : Beam

    Raises
    ------
    BeamIncompatibleError
        If Q has a significantly negative eigenvalue.
    """
    Q = np.asarray(Q, dtype=float)
    if Q.shape != (2, 2):
        raise ValueError(f"Quadratic form must be 2x2, got shape {Q.shape}.")
    Q = 0.5 * (Q + Q.T)

    w, v = np.linalg.eigh(Q)  # ascending
    ref = float(np.max(np.abs(w))) if scale is None else float(scale)
    if ref <= 0.0:
        return POINT_BEAM

    if w[0] < -tol * ref:
        raise BeamIncompatibleError(
            f"Quadratic form is not positive semi-definite (eigenvalues {w[0]:.4g}, {w[1]:.4g})."
        )
    w = np.where(np.abs(w) <= tol * ref, 0.0, w)

    major = np.sqrt(w[1] / FWHM2_TO_QF)
    minor = np.sqrt(w[0] / FWHM2_TO_QF)

    if w[1] - w[0] <= tol * ref:
        pa = 0.0  # circular: orientation undefined
    else:
        # major eigenvector = (north, east) components
        pa = np.degrees(np.arctan2(v[1, 1], v[0, 1]))

    return Beam(major, minor, pa)


# -------------------------- Beam algebra -------------------------- #
def convolve(beam_a: Beam, beam_b: Beam) -> Beam:
    """Beam resulting from convolving two Gaussian beams."""
    return from_quadratic_form(to_quadratic_form(beam_a) + to_quadratic_form(beam_b))


def deconvolve(
    target: Beam,
    current: Beam,
    pixel_scale: Optional[float] = None,
    point_fraction: float = 0.1,
    tol: float = PSD_TOL,
) -> Tuple[Beam, bool, bool]:
    """
    Find the Gaussian kernel that turns the current beam into the target beam.

    Parameters
    ----------
    target, current : Beam
    pixel_scale : float or None
        Pixel size [arcsec]. Used to decide whether the kernel is effectively
        a point source.
    point_fraction : float
        A kernel whose major axis is below point_fraction of a pixel (or of
        the current minor axis when no pixel scale is given) is flagged as
        near point source.

    Returns
    -------
    kernel : Beam
        Kernel beam (POINT_BEAM when the deconvolution failed).
    worked : bool
        False if target is narrower than current along some axis.
    near_point_source : bool
        True if the kernel is (almost) a delta function.
    """
    q_t = to_quadratic_form(target)
    q_c = to_quadratic_form(current)
    scale = max(np.trace(q_t), np.trace(q_c))

    try:
        kernel = from_quadratic_form(q_t - q_c, tol=tol, scale=scale)
    except BeamIncompatibleError as e:
        logger.debug("deconvolve failed for target %s, current %s: %s",
                     target.describe(), current.describe(), e)
        return POINT_BEAM, False, False

    if pixel_scale is not None and pixel_scale > 0:
        limit = point_fraction * pixel_scale
    elif current.minor > 0:
        limit = point_fraction * current.minor
    else:
        limit = point_fraction * target.minor

    near_point_source = kernel.major <= limit
    return kernel, True, near_point_source
