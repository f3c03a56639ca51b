"""
fitsio.py : FITS reading/writing and header bookkeeping (astropy.io.fits).
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Tuple, Union
import numpy as np
from astropy.io import fits

from .beam import Beam

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_image(path: PathLike) -> Tuple[np.ndarray, fits.Header]:
    """
    Read the primary HDU of a FITS image or cube.

    Degenerate leading axes (e.g. a Stokes axis of length 1) are dropped so
    that the data are (ny, nx) or (nplane, ny, nx).
    """
    data, header = fits.getdata(str(path), header=True, memmap=False)
    data = np.asarray(data)
    while data.ndim > 3 and data.shape[0] == 1:
        data = data[0]
    if data.ndim == 3 and data.shape[0] == 1:
        data = data[0]
    if data.ndim not in (2, 3):
        raise ValueError(f"{path}: expected a 2D image or 3D cube, got shape {data.shape}.")
    return data, header


def write_image(path: PathLike, data: np.ndarray, header: Optional[fits.Header] = None,
                overwrite: bool = False) -> Path:
    """Write data (and header) to a new primary HDU."""
    path = Path(path)
    fits.PrimaryHDU(data=np.asarray(data), header=header).writeto(path, overwrite=overwrite)
    logger.info("Wrote %s", path)
    return path


def as_header(header=None) -> fits.Header:
    """Copy of header as an astropy Header (a fresh one for None)."""
    if header is None:
        return fits.Header()
    if isinstance(header, fits.Header):
        return header.copy()
    return fits.Header(dict(header))


def update_header(header, target_beam: Beam, kernel_beam: Beam, kernel_npix: int,
                  pixel_scale: float, history: Optional[list] = None) -> fits.Header:
    """
    Header for the smoothed data: BMAJ/BMIN/BPA of the target beam [deg] and
    HISTORY cards describing the kernel.
    """
    out = as_header(header)
    comments = {
        "BMAJ": "[deg] beam major axis FWHM",
        "BMIN": "[deg] beam minor axis FWHM",
        "BPA": "[deg] beam position angle",
    }
    for key, value in target_beam.to_header_keywords().items():
        out.set(key, value, comments[key])

    out.add_history(f"beamsmooth: smoothed to {target_beam.describe()}")
    out.add_history(
        f"beamsmooth: kernel {kernel_beam.describe()}, "
        f"{kernel_npix}x{kernel_npix} pix at {pixel_scale:.4g} arcsec/pix"
    )
    for line in history or []:
        out.add_history(f"beamsmooth: {line}")
    return out
