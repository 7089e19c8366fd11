"""
Quadrature rules for integrating over particle radius.

Classes
-------
QuadratureRule
    Nodes and weights on the canonical interval [-1, 1]
RadialGrid
    Rule shifted onto a radius interval
QuadratureCache
    Thread-safe memo of rules keyed by point count

Functions
---------
quadrature
    Generate a Gauss-Legendre base rule
shift_quadrature
    Affine map of a base rule onto [a, b]
unshift_quadrature
    Inverse of shift_quadrature
"""

from lognormal_mie.quadrature.rules import (
    QuadratureRule,
    RadialGrid,
    quadrature,
    shift_quadrature,
    unshift_quadrature,
)
from lognormal_mie.quadrature.cache import QuadratureCache

__all__ = [
    "QuadratureRule",
    "RadialGrid",
    "QuadratureCache",
    "quadrature",
    "shift_quadrature",
    "unshift_quadrature",
]
