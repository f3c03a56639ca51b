from __future__ import annotations
import logging
import warnings
import multiprocessing as mp
from functools import partial
from pathlib import Path
from typing import Optional, Union
import numpy as np
from scipy.signal import fftconvolve
from astropy.convolution import convolve

from .beam import deconvolve
from .context import SmoothOptions, ConvolutionResult
from .errors import BeamIncompatibleError, NearPointSourceWarning, OversizedKernelWarning
from .fitsio import read_image, write_image, update_header
from .kernel import make_kernel
from .preprocess import (BeamLike, as_beam, resolve_pixel_scale, resolve_start_beam,
                         mask_nonfinite, restore_nonfinite, square_if_uncertainty)
from .scaling import pixels_per_beam, uncertainty_scale, per_beam_scale, unsquare_uncertainty

logger = logging.getLogger(__name__)


# -----------------------------
# Convolution
# -----------------------------
def convolve_plane(plane: np.ndarray, kernel: np.ndarray, use_fft: bool = True) -> np.ndarray:
    """
    Convolve one 2D plane with an odd-sized kernel, zero outside the image.
    """
    if kernel.shape == (1, 1):
        return plane * kernel[0, 0]
    if use_fft:
        # fftconvolve (much faster)
        return fftconvolve(plane, kernel, mode='same')
    # direct convolution using astropy.convolution.convolve
    return convolve(plane, kernel, boundary='fill', fill_value=0.0,
                    normalize_kernel=False, nan_treatment='fill')


def convolve_cube(cube: np.ndarray, kernel: np.ndarray, use_fft: bool = True, ncpu: int = 1) -> np.ndarray:
    """
    Convolve every plane of a (nplane, ny, nx) cube with the same kernel.
    With ncpu > 1 the planes are distributed over a process pool.
    """
    out = np.empty(cube.shape, dtype=np.float64)
    nplane = cube.shape[0]
    work = partial(convolve_plane, kernel=kernel, use_fft=use_fft)

    if ncpu <= 1 or nplane <= 1:
        for i in range(nplane):
            out[i] = work(cube[i])
    else:
        with mp.Pool(processes=min(ncpu, nplane)) as pool:
            for i, plane in enumerate(pool.imap(work, cube)):
                out[i] = plane
    return out


def _report(diagnostics: list, category, message: str, quiet: bool) -> None:
    diagnostics.append(message)
    if not quiet:
        warnings.warn(message, category, stacklevel=3)


# -----------------------------
# Smoothing
# -----------------------------
def smooth_to_beam(
    data: np.ndarray,
    target_beam: BeamLike,
    header=None,
    pixel_scale: Optional[float] = None,
    start_beam: Optional[BeamLike] = None,
    options: Optional[SmoothOptions] = None,
) -> ConvolutionResult:
    """
    Smooth an image or cube from its current beam to a larger target beam.

    Parameters
    ----------
    data : ndarray
        (ny, nx) image or (nplane, ny, nx) cube. NaN allowed. Not modified.
    target_beam : Beam or (major, minor, pa)
        [arcsec, arcsec, deg]
    header : astropy.io.fits.Header or dict, optional
        Supplies CDELT2 and BMAJ/BMIN/BPA when pixel_scale / start_beam are
        not given.
    pixel_scale : float, optional
        [arcsec/pix]
    start_beam : Beam or (major, minor, pa), optional
        Current beam [arcsec, arcsec, deg]. (0, 0, 0) means a point source.
    options : SmoothOptions, optional

    Returns
    -------
    result : ConvolutionResult

    Raises
    ------
    ConfigurationError
        Pixel scale or start beam unavailable.
    BeamIncompatibleError
        Target beam narrower than the start beam along some axis.
    """
    opts = options if options is not None else SmoothOptions()
    diagnostics: list = []

    data = np.asarray(data)
    if data.ndim not in (2, 3):
        raise ValueError(f"data must be 2D (ny, nx) or 3D (nplane, ny, nx), got shape {data.shape}.")

    target = as_beam(target_beam)
    pixel_scale = resolve_pixel_scale(header, pixel_scale)
    start = resolve_start_beam(header, start_beam)

    # --- kernel beam ---
    kernel_beam, worked, near_point = deconvolve(
        target, start, pixel_scale=pixel_scale, point_fraction=opts.point_fraction)
    if not worked:
        raise BeamIncompatibleError(
            f"Cannot smooth from {start.describe()} to {target.describe()}: "
            "target beam is narrower than the current beam along some axis.")
    if near_point:
        _report(diagnostics, NearPointSourceWarning,
                f"Target beam {target.describe()} is nearly the current beam {start.describe()}; "
                "kernel is close to a point source.", opts.quiet)

    # --- kernel raster ---
    kernel, clamped = make_kernel(kernel_beam, pixel_scale, data.shape)
    if clamped:
        _report(diagnostics, OversizedKernelWarning,
                f"Kernel {kernel_beam.describe()} is large relative to the image "
                f"{data.shape[-2]}x{data.shape[-1]}; truncated to {kernel.shape[0]} pix. "
                "Result is approximate.", opts.quiet)

    # --- convolution ---
    clean, mask = mask_nonfinite(data)
    flux_before = float(np.sum(clean))
    work = square_if_uncertainty(clean, opts.treat_as_uncertainty)

    if work.ndim == 2:
        smoothed = np.asarray(convolve_plane(work, kernel, opts.use_fft), dtype=np.float64)
    else:
        smoothed = convolve_cube(work, kernel, opts.use_fft, opts.ncpu)

    # --- scale corrections ---
    ppbeam_start = pixels_per_beam(start, pixel_scale)
    ppbeam_final = pixels_per_beam(target, pixel_scale)
    history = []
    if opts.treat_as_uncertainty:
        scale = uncertainty_scale(ppbeam_start, ppbeam_final)
        unsquare_uncertainty(smoothed, scale)
        history.append(f"treated as uncertainty map, scaled by {scale:.4g}")
    if opts.per_beam_units:
        scale = per_beam_scale(ppbeam_start, ppbeam_final)
        smoothed *= scale
        history.append(f"per-beam units, scaled by {scale:.4g}")

    restore_nonfinite(smoothed, mask)
    flux_after = float(np.nansum(smoothed))

    out_header = update_header(header, target, kernel_beam, kernel.shape[0], pixel_scale, history)

    if not opts.quiet:
        logger.info("Start beam : %s", start.describe())
        logger.info("Target beam: %s", target.describe())
        logger.info("Kernel     : %s, %d x %d pix (%.4g arcsec/pix)",
                    kernel_beam.describe(), kernel.shape[0], kernel.shape[1], pixel_scale)
        logger.info("Flux before = %.6g, after = %.6g", flux_before, flux_after)

    return ConvolutionResult(
        data=smoothed,
        header=out_header,
        kernel=kernel,
        kernel_beam=kernel_beam,
        start_beam=start,
        target_beam=target,
        pixel_scale=pixel_scale,
        ppbeam_start=ppbeam_start,
        ppbeam_final=ppbeam_final,
        flux_before=flux_before,
        flux_after=flux_after,
        near_point_source=near_point,
        kernel_clamped=clamped,
        diagnostics=diagnostics,
    )


def smooth_fits(
    infile: Union[str, Path],
    target_beam: BeamLike,
    outfile: Optional[Union[str, Path]] = None,
    pixel_scale: Optional[float] = None,
    start_beam: Optional[BeamLike] = None,
    options: Optional[SmoothOptions] = None,
    overwrite: bool = False,
) -> ConvolutionResult:
    """
    Read a FITS image/cube, smooth it to target_beam and optionally write it.
    Nothing is written if smoothing fails.
    """
    data, header = read_image(infile)
    result = smooth_to_beam(data, target_beam, header=header, pixel_scale=pixel_scale,
                            start_beam=start_beam, options=options)
    if outfile is not None:
        write_image(outfile, result.data, result.header, overwrite=overwrite)
    return result
