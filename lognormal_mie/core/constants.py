"""
Numerical constants for log-normal Mie integration.

Lengths are in whatever unit the caller uses for the median radius;
the wavenumber must be the reciprocal of that same unit (1/wavelength,
not 2π/wavelength).
"""

import numpy as np
from scipy.stats import norm

# =============================================================================
# Size Parameter Limits
# =============================================================================

# Largest size parameter the single-particle solver accepts
MAX_SIZE_PARAMETER = 12000.0

# Size parameter assigned to the upper bound when it has to be clamped
CLAMPED_SIZE_PARAMETER = 11999.0

# =============================================================================
# Integration Bounds
# =============================================================================

# Lower-tail probability used to truncate the log-normal distribution
TRUNCATION_PROBABILITY = 0.001

# Standard normal quantile for the truncation (negative, about -3.09)
TRUNCATION_QUANTILE = float(norm.ppf(TRUNCATION_PROBABILITY))

# Extra widening of the upper radius bound
UPPER_TAIL_FACTOR = 4.0

# =============================================================================
# Quadrature Point Selection
# =============================================================================

# Minimum number of quadrature points
MIN_QUADRATURE_POINTS = 200

# Target mean spacing of quadrature nodes in size-parameter space
SIZE_PARAMETER_STEP = 0.1

# Default base quadrature rule
DEFAULT_QUADRATURE_KIND = "gauss_legendre"

SQRT_2PI = np.sqrt(2.0 * np.pi)


def size_parameter(radius, wavenumber: float):
    """Mie size parameter x = 2*pi*r*wavenumber."""
    return 2.0 * np.pi * np.asarray(radius) * wavenumber
