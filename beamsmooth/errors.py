"""
Errors and warnings raised while smoothing an image to a new beam.

Fatal conditions are exceptions and are always raised before the data are
touched. Recoverable conditions are warnings: they are collected on the
result and, unless running quietly, issued through :mod:`warnings`.
"""


class BeamSmoothError(Exception):
    """Base class for fatal beamsmooth errors."""


class ConfigurationError(BeamSmoothError, ValueError):
    """Pixel scale and/or starting beam cannot be determined, or an option is invalid."""


class BeamIncompatibleError(BeamSmoothError, ValueError):
    """The target beam is narrower than the current beam along some axis."""


class BeamSmoothWarning(UserWarning):
    """Base class for recoverable beamsmooth conditions."""


class OversizedKernelWarning(BeamSmoothWarning):
    """The kernel support was clamped to the image size; the result is approximate."""


class NearPointSourceWarning(BeamSmoothWarning):
    """Target and current beam nearly agree; the kernel is close to a delta function."""
