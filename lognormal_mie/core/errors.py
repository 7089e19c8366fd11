"""
Exceptions and warnings raised by lognormal_mie.
"""


class LognormalMieError(Exception):
    """Base class for all lognormal_mie errors."""
    pass


class InvalidParameterError(LognormalMieError, ValueError):
    """Raised when distribution or quadrature parameters are out of domain."""
    pass


class SolverFailure(LognormalMieError, RuntimeError):
    """Raised when the single-particle Mie solver returns unusable output."""
    pass


class ConfigurationError(LognormalMieError, ValueError):
    """Raised when a configuration file cannot be interpreted."""
    pass


class NumericOverflowWarning(RuntimeWarning):
    """Issued when the upper radius bound is clamped to the solver limit."""
    pass
