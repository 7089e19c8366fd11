"""
lognormal-mie: Mie scattering derivatives for log-normal size distributions.

Bulk extinction and scattering coefficients, intensity functions and their
analytic derivatives with respect to number density, median radius and
spread, for use in gradient-based aerosol and cloud retrievals.

Modules
-------
core
    Log-normal distribution, integration bounds and the derivative engine
quadrature
    Gauss-Legendre rules, interval shifting and the rule cache
scattering
    Single-particle Mie solver (efficiencies and amplitudes)
config
    YAML/JSON run configuration
utils
    Result export (JSON, YAML, CSV)
"""

__version__ = "0.1.0"
__author__ = "lognormal-mie Contributors"

from lognormal_mie.core import (
    DistributionParams,
    InvalidParameterError,
    LogNormalMieEngine,
    MieDerivativesResult,
    NumericOverflowWarning,
    SolverFailure,
    mie_derivs_ln,
)
from lognormal_mie.quadrature import shift_quadrature
from lognormal_mie.scattering import mie_single

__all__ = [
    "__version__",
    "DistributionParams",
    "InvalidParameterError",
    "LogNormalMieEngine",
    "MieDerivativesResult",
    "NumericOverflowWarning",
    "SolverFailure",
    "mie_derivs_ln",
    "shift_quadrature",
    "mie_single",
]
