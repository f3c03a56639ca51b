"""
Command line entry point.

    beamsmooth image.fits --beam 20 20 0 --outfile image_20as.fits
    beamsmooth noise.fits --beam 20 15 30 --uncertainty --outfile noise_20as.fits
"""

from __future__ import annotations
import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .context import SmoothOptions
from .errors import BeamSmoothError
from .smooth import smooth_fits

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="beamsmooth",
                                description="Smooth a FITS image or cube to a larger Gaussian beam.")
    p.add_argument("infile", help="Input FITS image or cube.")
    p.add_argument("--beam", nargs=3, type=float, required=True,
                   metavar=("BMAJ_ARCSEC", "BMIN_ARCSEC", "BPA_DEG"),
                   help="Target beam (arcsec arcsec deg).")
    p.add_argument("--outfile", default=None, help="Output FITS file (default: not written).")
    p.add_argument("--pixel-scale", type=float, default=None,
                   help="Pixel scale in arcsec (default: from CDELT2).")
    p.add_argument("--start-beam", nargs=3, type=float, default=None,
                   metavar=("BMAJ_ARCSEC", "BMIN_ARCSEC", "BPA_DEG"),
                   help="Current beam (default: from BMAJ/BMIN/BPA).")
    p.add_argument("--no-fft", action="store_true", help="Use direct convolution instead of FFT.")
    p.add_argument("--uncertainty", action="store_true",
                   help="Treat the input as a per-pixel uncertainty map.")
    p.add_argument("--per-beam", action="store_true",
                   help="Input units are per beam (e.g. Jy/beam); rescale to the new beam area.")
    p.add_argument("--quiet", action="store_true", help="Suppress warnings and the summary.")
    p.add_argument("--ncpu", type=int, default=1, help="Processes for cube planes.")
    p.add_argument("--overwrite", action="store_true", help="Overwrite an existing outfile.")
    p.add_argument("--loglevel", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                   help="Logging level.")
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.loglevel), format="%(levelname)s: %(message)s")

    try:
        options = SmoothOptions(
            no_fft=args.no_fft,
            treat_as_uncertainty=args.uncertainty,
            per_beam_units=args.per_beam,
            quiet=args.quiet,
            ncpu=args.ncpu,
        )
        result = smooth_fits(
            Path(args.infile),
            args.beam,
            outfile=Path(args.outfile) if args.outfile else None,
            pixel_scale=args.pixel_scale,
            start_beam=args.start_beam,
            options=options,
            overwrite=args.overwrite,
        )
    except BeamSmoothError as e:
        logger.error("%s", e)
        return 2
    except (OSError, ValueError) as e:
        # unreadable or malformed input, or an outfile that may not be overwritten
        logger.error("%s: %s", type(e).__name__, e)
        return 1

    if args.outfile is None and not args.quiet:
        logger.info("No --outfile given; result not written (flux %.6g -> %.6g).",
                    result.flux_before, result.flux_after)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
