from .beam import Beam, deconvolve, convolve, to_quadratic_form, from_quadratic_form
from .context import SmoothOptions, ConvolutionResult
from .errors import (ConfigurationError, BeamIncompatibleError,
                     OversizedKernelWarning, NearPointSourceWarning)
from .smooth import smooth_to_beam, smooth_fits

__all__ = [
    "Beam",
    "deconvolve",
    "convolve",
    "to_quadratic_form",
    "from_quadratic_form",
    "SmoothOptions",
    "ConvolutionResult",
    "ConfigurationError",
    "BeamIncompatibleError",
    "OversizedKernelWarning",
    "NearPointSourceWarning",
    "smooth_to_beam",
    "smooth_fits",
]
