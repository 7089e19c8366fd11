"""
Single-particle Mie scattering.

Classes
-------
MieEfficiencies
    Efficiency factors and amplitudes for an array of spheres

Functions
---------
mie_single
    Vectorized Bohren-Huffman Mie solver
"""

from lognormal_mie.scattering.mie import MieEfficiencies, mie_single

__all__ = [
    "MieEfficiencies",
    "mie_single",
]
