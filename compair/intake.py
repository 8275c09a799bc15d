"""Multi-ramp external-compression intake.

Each ramp turns the flow by its own angle through a weak oblique shock;
the Mach number behind one ramp is the freestream of the next.
"""

from collections import namedtuple

import numpy as np

from compair.oblique_shock import solve_oblique

IntakeRamp = namedtuple('IntakeRamp', ['M', 'rho2_ratio', 'p2_ratio', 'p0_ratio', 'beta'])


def intake_ramp(M_inf, ramp_angles, gamma=1.4):
    """Chain oblique shocks over a sequence of ramp deflections.

    Parameters
    ----------
    M_inf : float
        Freestream Mach number.
    ramp_angles : sequence of float
        Deflection of each stage [degrees], relative to the flow ahead of it.
    gamma : float

    Returns
    -------
    IntakeRamp
        M : ndarray, shape (n+1,) — Mach number ahead of each stage and after the last.
        rho2_ratio, p2_ratio, p0_ratio : ndarray, shape (n,) — per-stage ratios.
        beta : ndarray, shape (n,) — per-stage wave angles [degrees].
    """
    n = len(ramp_angles)
    M = np.zeros(n + 1)
    rho2 = np.zeros(n)
    p2 = np.zeros(n)
    p0 = np.zeros(n)
    beta = np.zeros(n)

    M[0] = M_inf
    for i, angle in enumerate(ramp_angles):
        shock = solve_oblique(M[i], float(angle), gamma)
        M[i + 1] = shock.M2
        rho2[i] = shock.rho2_ratio
        p2[i] = shock.p2_ratio
        p0[i] = shock.p0_ratio
        beta[i] = shock.beta

    return IntakeRamp(M, rho2, p2, p0, beta)


def total_pressure_recovery(ramp):
    """Overall p0 recovery of the chain (product of stage ratios)."""
    return float(np.prod(ramp.p0_ratio))
