"""
Base quadrature rules and the affine shift onto a radius interval.

Canonical rules live on [-1, 1]. ``shift_quadrature`` maps a rule onto
an arbitrary interval [a, b] so it can be used to integrate over particle
radius.
"""

from dataclasses import dataclass

import numpy as np
from numpy.polynomial.legendre import leggauss

# Accepted spellings of the Gauss-Legendre rule
GAUSS_LEGENDRE_KINDS = ("gauss_legendre", "gaussian", "legendre")


def _as_vector(values, name: str) -> np.ndarray:
    arr = np.array(values, dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be one-dimensional, got shape {arr.shape}")
    return arr


@dataclass(frozen=True)
class QuadratureRule:
    """Quadrature nodes and weights on the canonical interval [-1, 1].

    Attributes:
        abscissas: Node positions, ordered
        weights: Weights paired with ``abscissas`` by index
    """
    abscissas: np.ndarray
    weights: np.ndarray

    def __post_init__(self):
        abscissas = _as_vector(self.abscissas, "abscissas")
        weights = _as_vector(self.weights, "weights")
        if abscissas.shape != weights.shape:
            raise ValueError(
                f"Mismatched quadrature rule: {abscissas.size} abscissas, "
                f"{weights.size} weights"
            )
        abscissas.setflags(write=False)
        weights.setflags(write=False)
        object.__setattr__(self, "abscissas", abscissas)
        object.__setattr__(self, "weights", weights)

    @property
    def npts(self) -> int:
        """Number of nodes in the rule."""
        return self.abscissas.size

    def __len__(self) -> int:
        return self.npts


@dataclass(frozen=True)
class RadialGrid:
    """Quadrature rule shifted onto a radius interval.

    Attributes:
        radius: Node radii inside [lower, upper]
        weights: Shifted weights, sum to (upper - lower)
    """
    radius: np.ndarray
    weights: np.ndarray

    def __len__(self) -> int:
        return self.radius.size


def quadrature(kind: str, npts: int) -> QuadratureRule:
    """
    Generate a base quadrature rule on [-1, 1].

    Parameters
    ----------
    kind : str
        Rule identifier. Only Gauss-Legendre ("gauss_legendre" or
        "gaussian") is supported.
    npts : int
        Number of nodes

    Returns
    -------
    rule : QuadratureRule
        Nodes in ascending order and their weights

    Raises
    ------
    ValueError
        If the kind is unknown or npts is not a positive integer
    """
    if kind.lower() not in GAUSS_LEGENDRE_KINDS:
        raise ValueError(
            f"Unknown quadrature kind: {kind}. Available: {list(GAUSS_LEGENDRE_KINDS)}"
        )
    if int(npts) != npts or npts < 1:
        raise ValueError(f"Number of quadrature points must be a positive integer, got {npts}")

    abscissas, weights = leggauss(int(npts))
    return QuadratureRule(abscissas=abscissas, weights=weights)


def shift_quadrature(rule: QuadratureRule, a: float, b: float) -> RadialGrid:
    """
    Map a canonical quadrature rule onto the interval [a, b].

    r = ((a + b) + (b - a) * x) / 2,  w' = (b - a) * w / 2

    Parameters
    ----------
    rule : QuadratureRule
        Rule on [-1, 1]
    a, b : float
        Interval bounds, a < b

    Returns
    -------
    grid : RadialGrid
        Shifted nodes and weights, same ordering as ``rule``

    Raises
    ------
    ValueError
        If a >= b or a bound is not finite
    """
    if not (np.isfinite(a) and np.isfinite(b)):
        raise ValueError(f"Quadrature interval bounds must be finite, got [{a}, {b}]")
    if a >= b:
        raise ValueError(f"Quadrature interval must satisfy a < b, got [{a}, {b}]")

    half_width = (b - a) / 2.0
    radius = (a + b) / 2.0 + half_width * rule.abscissas
    weights = half_width * rule.weights

    return RadialGrid(radius=radius, weights=weights)


def unshift_quadrature(grid: RadialGrid, a: float, b: float) -> QuadratureRule:
    """Inverse of :func:`shift_quadrature`, mapping [a, b] back to [-1, 1]."""
    if a >= b:
        raise ValueError(f"Quadrature interval must satisfy a < b, got [{a}, {b}]")

    half_width = (b - a) / 2.0
    abscissas = (grid.radius - (a + b) / 2.0) / half_width
    weights = grid.weights / half_width

    return QuadratureRule(abscissas=abscissas, weights=weights)
