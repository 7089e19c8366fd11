"""
Core computational modules for log-normal Mie calculations.

- DistributionParams: Log-normal distribution and optical parameters
- LogNormalMieEngine: Quadrature over radius with analytic derivatives
- mie_derivs_ln: Convenience wrapper around a shared engine
"""

from lognormal_mie.core.distribution import (
    DistributionParams,
    IntegrationBounds,
    integration_bounds,
    lognormal_size_distribution,
)
from lognormal_mie.core.engine import (
    BulkProperties,
    IntensityResult,
    LogNormalMieEngine,
    MieDerivativesResult,
    QuadratureDiagnostics,
    get_default_engine,
    mie_derivs_ln,
)
from lognormal_mie.core.errors import (
    ConfigurationError,
    InvalidParameterError,
    LognormalMieError,
    NumericOverflowWarning,
    SolverFailure,
)

__all__ = [
    "DistributionParams",
    "IntegrationBounds",
    "integration_bounds",
    "lognormal_size_distribution",
    "BulkProperties",
    "IntensityResult",
    "LogNormalMieEngine",
    "MieDerivativesResult",
    "QuadratureDiagnostics",
    "get_default_engine",
    "mie_derivs_ln",
    "ConfigurationError",
    "InvalidParameterError",
    "LognormalMieError",
    "NumericOverflowWarning",
    "SolverFailure",
]
