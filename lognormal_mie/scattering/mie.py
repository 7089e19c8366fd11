"""
Single-particle Mie solver.

Efficiency factors and complex scattering amplitudes for homogeneous
spheres, vectorized over size parameter. Based on the Bohren and
Huffman (1983) algorithm.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from numba import jit, prange

from lognormal_mie.core.constants import MAX_SIZE_PARAMETER
from lognormal_mie.core.errors import SolverFailure


@dataclass
class MieEfficiencies:
    """Per-particle Mie solver output.

    Attributes:
        qext: Extinction efficiency, one per size parameter
        qsca: Scattering efficiency
        qback: Backscatter efficiency
        g: Asymmetry parameter
        s1: Perpendicular amplitude S1, shape (n_angles, n_sizes), or None
        s2: Parallel amplitude S2, shape (n_angles, n_sizes), or None
    """
    qext: np.ndarray
    qsca: np.ndarray
    qback: np.ndarray
    g: np.ndarray
    s1: Optional[np.ndarray] = None
    s2: Optional[np.ndarray] = None

    @property
    def qabs(self) -> np.ndarray:
        """Absorption efficiency."""
        return self.qext - self.qsca


@jit(nopython=True, cache=True)
def _mie_sphere(x, m, mu, s1, s2):
    """Mie efficiencies for one sphere; accumulates amplitudes into s1, s2.

    Args:
        x: Size parameter (2*pi*r/lambda)
        m: Complex refractive index
        mu: Cosines of the scattering angles
        s1, s2: Output amplitude buffers, len(mu), zeroed by the caller

    Returns:
        (Q_ext, Q_sca, Q_back, g)
    """
    nang = mu.shape[0]
    mx = m * x

    # Wiscombe's criterion for number of terms
    nstop = int(x + 4.0 * x**(1.0 / 3.0) + 2.0)

    # Downward recurrence for logarithmic derivative D_n(mx)
    nmx = max(nstop, int(abs(mx))) + 15
    d = np.zeros(nmx + 1, dtype=np.complex128)
    for n in range(nmx, 0, -1):
        d[n - 1] = n / mx - 1.0 / (d[n] + n / mx)

    # Riccati-Bessel functions by upward recurrence
    psi0 = np.cos(x)
    psi1 = np.sin(x)
    chi0 = -np.sin(x)
    chi1 = np.cos(x)
    xi1 = psi1 - 1j * chi1

    # Angular functions pi_{n-1} and pi_n
    pi0 = np.zeros(nang)
    pi1 = np.ones(nang)

    q_ext = 0.0
    q_sca = 0.0
    g_sum = 0.0
    back = 0.0 + 0.0j
    a_prev = 0.0 + 0.0j
    b_prev = 0.0 + 0.0j
    sign = -1.0

    for n in range(1, nstop + 1):
        en = float(n)
        fn = (2.0 * en + 1.0) / (en * (en + 1.0))

        psi = (2.0 * en - 1.0) * psi1 / x - psi0
        chi = (2.0 * en - 1.0) * chi1 / x - chi0
        xi = psi - 1j * chi

        dn = d[n]
        a_n = ((dn / m + en / x) * psi - psi1) / ((dn / m + en / x) * xi - xi1)
        b_n = ((m * dn + en / x) * psi - psi1) / ((m * dn + en / x) * xi - xi1)

        q_ext += (2.0 * en + 1.0) * (a_n.real + b_n.real)
        q_sca += (2.0 * en + 1.0) * (abs(a_n)**2 + abs(b_n)**2)
        back += (2.0 * en + 1.0) * sign * (a_n - b_n)
        sign = -sign

        g_sum += fn * (a_n.real * b_n.real + a_n.imag * b_n.imag)
        if n > 1:
            g_sum += ((en - 1.0) * (en + 1.0) / en) * \
                     (a_prev.real * a_n.real + a_prev.imag * a_n.imag +
                      b_prev.real * b_n.real + b_prev.imag * b_n.imag)

        for j in range(nang):
            pi_n = pi1[j]
            tau_n = en * mu[j] * pi_n - (en + 1.0) * pi0[j]
            s1[j] += fn * (a_n * pi_n + b_n * tau_n)
            s2[j] += fn * (a_n * tau_n + b_n * pi_n)
            pi1[j] = ((2.0 * en + 1.0) * mu[j] * pi_n - (en + 1.0) * pi0[j]) / en
            pi0[j] = pi_n

        a_prev = a_n
        b_prev = b_n

        psi0 = psi1
        psi1 = psi
        chi0 = chi1
        chi1 = chi
        xi1 = xi

    q_sca_raw = q_sca
    q_ext *= 2.0 / x**2
    q_sca *= 2.0 / x**2
    q_back = abs(back)**2 / x**2

    g = 2.0 * g_sum / q_sca_raw if q_sca_raw > 0 else 0.0

    return q_ext, q_sca, q_back, g


@jit(nopython=True, parallel=True, cache=True)
def _mie_batch(x, m, mu, q_ext, q_sca, q_back, g, s1, s2):
    """Fill efficiency and amplitude arrays for every size parameter."""
    for i in prange(x.shape[0]):
        amp1 = np.zeros(mu.shape[0], dtype=np.complex128)
        amp2 = np.zeros(mu.shape[0], dtype=np.complex128)
        qe, qs, qb, gi = _mie_sphere(x[i], m, mu, amp1, amp2)
        q_ext[i] = qe
        q_sca[i] = qs
        q_back[i] = qb
        g[i] = gi
        for j in range(mu.shape[0]):
            s1[j, i] = amp1[j]
            s2[j, i] = amp2[j]


def mie_single(
    size_parameters: Sequence[float],
    refractive_index: complex,
    cos_angles: Optional[Sequence[float]] = None,
) -> MieEfficiencies:
    """
    Mie efficiencies and scattering amplitudes for an array of spheres.

    Parameters
    ----------
    size_parameters : array_like
        Size parameters x = 2*pi*r/lambda, each in (0, 12000)
    refractive_index : complex
        Complex refractive index m = n + ik relative to the medium
    cos_angles : array_like, optional
        Cosines of the scattering angles at which S1 and S2 are wanted

    Returns
    -------
    efficiencies : MieEfficiencies
        Efficiencies per size parameter; amplitudes shaped
        (n_angles, n_sizes) when angles were requested

    Raises
    ------
    ValueError
        If a size parameter is outside (0, 12000) or an angle cosine is
        outside [-1, 1]
    SolverFailure
        If any output is not finite

    References
    ----------
    Bohren, C.F. and Huffman, D.R., 1983: Absorption and Scattering of
    Light by Small Particles. Wiley.
    """
    x = np.atleast_1d(np.asarray(size_parameters, dtype=float))
    if x.ndim != 1:
        raise ValueError(f"Size parameters must be one-dimensional, got shape {x.shape}")
    if not np.all(np.isfinite(x)) or np.any(x <= 0):
        raise ValueError("Size parameters must be finite and positive")
    if np.any(x >= MAX_SIZE_PARAMETER):
        raise ValueError(
            f"Size parameter {x.max():.1f} exceeds solver limit {MAX_SIZE_PARAMETER:.0f}"
        )

    want_amplitudes = cos_angles is not None
    if want_amplitudes:
        mu = np.atleast_1d(np.asarray(cos_angles, dtype=float))
        if mu.ndim != 1 or np.any(np.abs(mu) > 1.0) or not np.all(np.isfinite(mu)):
            raise ValueError("Scattering angle cosines must lie in [-1, 1]")
    else:
        mu = np.zeros(0)

    m = complex(refractive_index)

    q_ext = np.empty_like(x)
    q_sca = np.empty_like(x)
    q_back = np.empty_like(x)
    g = np.empty_like(x)
    s1 = np.zeros((mu.size, x.size), dtype=np.complex128)
    s2 = np.zeros((mu.size, x.size), dtype=np.complex128)

    _mie_batch(x, m, mu, q_ext, q_sca, q_back, g, s1, s2)

    for name, values in (("Q_ext", q_ext), ("Q_sca", q_sca), ("Q_back", q_back), ("g", g),
                         ("S1", s1), ("S2", s2)):
        if not np.all(np.isfinite(values)):
            raise SolverFailure(
                f"Mie solver returned non-finite {name} for m={m} "
                f"(size parameters {x.min():.4g} - {x.max():.4g})"
            )

    return MieEfficiencies(
        qext=q_ext,
        qsca=q_sca,
        qback=q_back,
        g=g,
        s1=s1 if want_amplitudes else None,
        s2=s2 if want_amplitudes else None,
    )
