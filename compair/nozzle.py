"""Quasi-one-dimensional nozzle relations.

References:
- Anderson MCF Section 5.3-5.5 (area-Mach relation, Eq. 5.20).
- Sutton & Biblarz, *Rocket Propulsion Elements*, Eq. 3-24 (choked mass flow).
"""

import numpy as np
from scipy.optimize import brentq

from compair.errors import InvalidFlowError
from compair.gas import p0_over_p, t0_over_t
from compair.normal_shock import normal_mach2, p2_over_p1


def area_ratio(M, gamma=1.4):
    """A/A* from the isentropic area-Mach relation.

    Anderson MCF Eq. 5.20:
        A/A* = (1/M) · [(2/(γ+1)) · (1 + (γ-1)/2 · M²)]^((γ+1)/(2(γ-1)))
    """
    gp1 = gamma + 1
    gm1 = gamma - 1
    exponent = gp1 / (2 * gm1)
    return (1.0 / M) * ((2.0 / gp1) * t0_over_t(M, gamma)) ** exponent


def mach_from_area_ratio(ar, gamma=1.4, supersonic=True):
    """Invert A/A*(M) to find M given A/A*.

    Uses Brent's method on [1, 100] for supersonic or [1e-6, 1] for subsonic.
    """
    if ar < 1.0 and not np.isclose(ar, 1.0, atol=1e-12):
        raise InvalidFlowError(f"Area ratio must be >= 1, got {ar}")
    if np.isclose(ar, 1.0, atol=1e-12):
        return 1.0

    def f(M):
        return area_ratio(M, gamma) - ar

    if supersonic:
        return brentq(f, 1.0 + 1e-12, 100.0)
    else:
        return brentq(f, 1e-6, 1.0 - 1e-12)


def mdot(M, area=1.0, p0=1.0, t0=1.0, gamma=1.4, R=1.0):
    """Mass flow through a section of given area at Mach M.

        ṁ = A · p0 · √(γ/(R·T0)) · M · (1 + (γ-1)/2·M²)^(-(γ+1)/(2(γ-1)))

    Defaults give the non-dimensional flow per unit area.
    """
    exponent = (gamma + 1) / (2 * (gamma - 1))
    return area * np.sqrt(gamma / (R * t0)) * p0 * M / t0_over_t(M, gamma) ** exponent


def subsonic_pressure_from_area_ratio(ar, gamma=1.4, p0=1.0):
    """Static pressure at a section on the subsonic isentropic branch."""
    return p0 / p0_over_p(mach_from_area_ratio(ar, gamma, supersonic=False), gamma)


def mach_after_exit_shock(ar, gamma=1.4):
    """Mach number behind a normal shock standing in the exit plane.

    The exit Mach number ahead of the shock is the supersonic root of the
    area-Mach relation. Older versions of this calculation applied the shock
    to the subsonic root, which is not a shock, so their values differ.
    """
    return normal_mach2(mach_from_area_ratio(ar, gamma), gamma)


def pressure_after_exit_shock(ar, gamma=1.4, p0=1.0):
    """Static pressure behind a normal shock standing in the exit plane.

    This is the back pressure that places the shock exactly at the exit.
    The jump is taken on the supersonic exit Mach number, not the subsonic
    root used by older versions of this calculation.
    """
    Me = mach_from_area_ratio(ar, gamma)
    return p0 / p0_over_p(Me, gamma) * p2_over_p1(Me, gamma)
