"""Prandtl-Meyer expansion for a calorically perfect gas.

Anderson MCF Section 4.14 (Eq. 4.44); NACA 1135 Eq. 171.
Angles in degrees.
"""

import numpy as np
from scipy.optimize import brentq

from compair.errors import InvalidFlowError
from compair.gas import p0_over_p


def prandtl_meyer(M, gamma=1.4):
    """Prandtl-Meyer angle ν(M) [degrees].

    Anderson MCF Eq. 4.44:
        ν = √((γ+1)/(γ-1)) · arctan(√((γ-1)/(γ+1)·(M²-1))) - arctan(√(M²-1))

    Returns 0 for M <= 1, monotonically increasing for M > 1.
    """
    if np.isscalar(M):
        if M <= 1.0:
            return 0.0
    gp1 = gamma + 1
    gm1 = gamma - 1
    Msq_m1 = M**2 - 1
    return np.degrees(np.sqrt(gp1 / gm1) * np.arctan(np.sqrt(gm1 / gp1 * Msq_m1))
                      - np.arctan(np.sqrt(Msq_m1)))


def max_prandtl_meyer(gamma=1.4):
    """ν_max as M → ∞ [degrees]: (√((γ+1)/(γ-1)) - 1) · 90°."""
    return (np.sqrt((gamma + 1) / (gamma - 1)) - 1) * 90.0


def mach_from_prandtl_meyer(nu, gamma=1.4):
    """Invert ν(M) to find M given Prandtl-Meyer angle [degrees].

    Uses Brent's method on M in (1, 200].
    """
    if nu <= 0:
        return 1.0

    nu_max = max_prandtl_meyer(gamma)
    if nu >= nu_max:
        raise InvalidFlowError(f"nu = {nu:.2f}° exceeds nu_max = {nu_max:.2f}°")

    return brentq(lambda M: prandtl_meyer(M, gamma) - nu, 1.0 + 1e-12, 200.0)


def expand_mach2(M1, theta, gamma=1.4):
    """Mach number after turning a flow at M1 through θ [degrees] of expansion."""
    if theta < 0:
        raise InvalidFlowError(f"Expansion angle must be non-negative, got {theta}")
    return mach_from_prandtl_meyer(prandtl_meyer(M1, gamma) + theta, gamma)


def expand_p2_over_p1(M1, theta, gamma=1.4):
    """Static pressure ratio p2/p1 (< 1) across the expansion fan."""
    M2 = expand_mach2(M1, theta, gamma)
    return p0_over_p(M1, gamma) / p0_over_p(M2, gamma)


def theta_from_pressure_ratio(p2_over_p1, M1, gamma=1.4):
    """Turning angle [degrees] that expands M1 to the given p2/p1.

    The achievable range is (0, 1]; p2/p1 = 1 is no turning.
    """
    if not 0 < p2_over_p1 <= 1:
        raise InvalidFlowError(
            f"Expansion pressure ratio must be in (0, 1], got {p2_over_p1}"
        )
    if p2_over_p1 == 1:
        return 0.0
    # Target Mach from the isentropic pressure relation, then the angle follows
    p0_p2 = p0_over_p(M1, gamma) / p2_over_p1
    M2 = np.sqrt(2 / (gamma - 1) * (p0_p2 ** ((gamma - 1) / gamma) - 1))
    return float(prandtl_meyer(M2, gamma) - prandtl_meyer(M1, gamma))
