"""
Log-normal size distribution and integration bound selection.

n(r) = N / (sqrt(2π) r ln S) * exp(-(ln(r/Rm))^2 / (2 ln^2 S))
"""

import logging
import math
import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np

from lognormal_mie.core.constants import (
    CLAMPED_SIZE_PARAMETER,
    MAX_SIZE_PARAMETER,
    MIN_QUADRATURE_POINTS,
    SIZE_PARAMETER_STEP,
    SQRT_2PI,
    TRUNCATION_QUANTILE,
    UPPER_TAIL_FACTOR,
)
from lognormal_mie.core.errors import InvalidParameterError, NumericOverflowWarning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistributionParams:
    """Parameters of a log-normal distribution of spheres.

    Attributes:
        n: Number density (particles per unit volume)
        rm: Median radius
        s: Geometric spread, > 1
        wavenumber: 1/wavelength, in the reciprocal unit of ``rm``
        refractive_index: Complex refractive index (n + ik)
    """
    n: float
    rm: float
    s: float
    wavenumber: float
    refractive_index: complex

    def validate(self) -> None:
        """Raise InvalidParameterError if any parameter is out of domain."""
        for name in ("n", "rm", "s", "wavenumber"):
            value = getattr(self, name)
            if not np.isfinite(value):
                raise InvalidParameterError(f"{name} must be finite, got {value}")
        if not np.isfinite(complex(self.refractive_index)):
            raise InvalidParameterError(
                f"refractive_index must be finite, got {self.refractive_index}"
            )
        if self.n <= 0:
            raise InvalidParameterError(f"Number density N must be positive, got {self.n}")
        if self.rm <= 0:
            raise InvalidParameterError(f"Median radius Rm must be positive, got {self.rm}")
        if self.s <= 1:
            raise InvalidParameterError(f"Spread S must be greater than 1, got {self.s}")
        if self.wavenumber <= 0:
            raise InvalidParameterError(
                f"Wavenumber must be positive, got {self.wavenumber}"
            )

    @property
    def ln_s(self) -> float:
        return math.log(self.s)


@dataclass(frozen=True)
class IntegrationBounds:
    """Radius interval and point count for the size-distribution integral.

    Attributes:
        lower: Lower radius bound Rl
        upper: Upper radius bound Ru (after any clamping)
        npts: Number of quadrature points
        truncated: True if Ru was clamped to the solver's size-parameter limit
    """
    lower: float
    upper: float
    npts: int
    truncated: bool = False


def lognormal_size_distribution(
    radius: np.ndarray,
    rm: float,
    s: float,
    n: float = 1.0,
) -> np.ndarray:
    """
    Log-normal number distribution dn/dr.

    Parameters
    ----------
    radius : array_like
        Particle radii
    rm : float
        Median radius
    s : float
        Geometric spread (> 1)
    n : float, optional
        Total number density (default: 1.0)

    Returns
    -------
    dndr : ndarray
        Number distribution dn/dr
    """
    radius = np.asarray(radius)
    ln_s = np.log(s)

    return (
        n
        / (SQRT_2PI * ln_s * radius)
        * np.exp(-0.5 * (np.log(radius / rm) / ln_s) ** 2)
    )


def radius_limits(rm: float, s: float):
    """Unclamped (Rl, Ru) for a distribution.

    The lower bound sits at the 0.1% quantile of ln r; the upper bound is
    the symmetric 99.9% quantile widened by a factor of four.
    """
    ln_rm = math.log(rm)
    ln_s = math.log(s)
    lower = math.exp(ln_rm + TRUNCATION_QUANTILE * ln_s)
    upper = math.exp(ln_rm - TRUNCATION_QUANTILE * ln_s + math.log(UPPER_TAIL_FACTOR))
    return lower, upper


def select_point_count(
    lower: float,
    upper: float,
    wavenumber: float,
    min_points: int = MIN_QUADRATURE_POINTS,
    step: float = SIZE_PARAMETER_STEP,
) -> int:
    """Number of nodes giving a mean size-parameter spacing of ``step``."""
    span = 2.0 * math.pi * (upper - lower) * wavenumber
    return max(int(min_points), int(math.floor(span / step)))


def integration_bounds(
    params: DistributionParams,
    npts: Optional[int] = None,
    min_points: int = MIN_QUADRATURE_POINTS,
    step: float = SIZE_PARAMETER_STEP,
    stacklevel: int = 2,
) -> IntegrationBounds:
    """
    Radius interval and point count for a validated distribution.

    If 2π·Ru·wavenumber reaches the solver limit, Ru is clamped so that
    its size parameter is exactly 11999 and a NumericOverflowWarning is
    issued.

    Parameters
    ----------
    params : DistributionParams
        Distribution (assumed already validated)
    npts : int, optional
        Explicit point count; overrides the automatic selection
    min_points : int
        Floor for the automatic point count
    step : float
        Target size-parameter spacing for the automatic point count
    stacklevel : int
        Passed to ``warnings.warn``; the default attributes the overflow
        warning to the caller of this function

    Returns
    -------
    bounds : IntegrationBounds
    """
    if npts is not None and (int(npts) != npts or npts < 1):
        raise InvalidParameterError(
            f"Number of quadrature points must be a positive integer, got {npts}"
        )

    lower, upper = radius_limits(params.rm, params.s)
    truncated = False

    if 2.0 * math.pi * upper * params.wavenumber >= MAX_SIZE_PARAMETER:
        clamped = CLAMPED_SIZE_PARAMETER / (2.0 * math.pi * float(params.wavenumber))
        message = (
            f"Upper radius bound {upper:.6g} exceeds size parameter limit "
            f"{MAX_SIZE_PARAMETER:.0f}; truncated to {clamped:.6g}"
        )
        logger.warning(message)
        warnings.warn(message, NumericOverflowWarning, stacklevel=stacklevel)
        upper = clamped
        truncated = True

    if upper <= lower:
        raise InvalidParameterError(
            f"No valid integration interval: lower bound {lower:.6g} is above "
            f"the clamped upper bound {upper:.6g}"
        )

    if npts is None:
        npts = select_point_count(lower, upper, params.wavenumber, min_points, step)
    else:
        npts = int(npts)

    logger.debug(
        f"Integration bounds [{lower:.6g}, {upper:.6g}] with {npts} points"
    )

    return IntegrationBounds(lower=lower, upper=upper, npts=npts, truncated=truncated)
