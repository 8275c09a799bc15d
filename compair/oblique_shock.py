"""Oblique shock relations: θ-β-M, weak wave angle and maximum deflection.

References:
- Anderson, *Modern Compressible Flow*, 3rd ed., Section 4.3
  (θ-β-M relation, Eq. 4.17).
- NACA 1135, Eqs. 138-149.

Angles are degrees at every public boundary; trigonometry is done in
radians internally.
"""

import logging
from collections import namedtuple
from functools import lru_cache

import numpy as np
from scipy.optimize import brentq, minimize_scalar

from compair.errors import (
    ConvergenceError, InvalidFlowError, require_gamma, require_supersonic,
)
from compair.gas import mach_angle
from compair.normal_shock import solve_normal

logger = logging.getLogger(__name__)

ObliqueShock = namedtuple(
    'ObliqueShock', ['M2', 'rho2_ratio', 'p2_ratio', 'p0_ratio', 'beta', 'detached']
)

# Root-finder budget for the weak wave angle.
BETA_XTOL = 1e-14
BETA_MAXITER = 200


def _tan_theta(beta_r, M, gamma):
    """tan θ from the θ-β-M relation (Anderson MCF Eq. 4.17), β in radians."""
    return (2 / np.tan(beta_r) * ((M * np.sin(beta_r))**2 - 1)
            / (M**2 * (gamma + np.cos(2 * beta_r)) + 2))


def theta_from_beta(beta, M, gamma=1.4):
    """Deflection angle θ [degrees] for wave angle β [degrees]."""
    return np.degrees(np.arctan(_tan_theta(np.radians(beta), M, gamma)))


@lru_cache(maxsize=256)
def max_deflection_point(M, gamma=1.4):
    """Wave angle and deflection at the attachment limit.

    Maximizes tan θ(β) over β in (μ, 90°) with bounded Brent minimization;
    the function is unimodal on that interval.

    Returns
    -------
    beta_star : float
        Wave angle at maximum deflection [degrees].
    theta_max : float
        Maximum deflection for an attached shock [degrees].
    """
    require_supersonic(M)
    require_gamma(gamma)
    res = minimize_scalar(
        lambda b: -_tan_theta(b, M, gamma),
        bounds=(np.radians(mach_angle(M)), np.pi / 2),
        method='bounded',
        options={'xatol': 1e-12, 'maxiter': 500},
    )
    if not res.success:
        raise ConvergenceError(
            f"Maximum deflection search failed at M={M}: {res.message}"
        )
    return float(np.degrees(res.x)), float(np.degrees(np.arctan(-res.fun)))


def max_deflection(M, gamma=1.4):
    """Maximum attached-shock deflection θ_max(M, γ) [degrees]."""
    return max_deflection_point(M, gamma)[1]


def wave_angle(M, theta, gamma=1.4):
    """Weak-branch wave angle β [degrees] for deflection θ [degrees].

    Brent's method on tan θ(β) - tan θ, bracketed between the Mach angle
    (θ = 0) and the maximum-deflection wave angle β*. Only the weak root
    lies in that bracket.

    Raises
    ------
    InvalidFlowError
        If θ < 0 or θ exceeds θ_max (no attached solution).
    ConvergenceError
        If the root-finder exceeds its iteration budget.
    """
    require_supersonic(M)
    require_gamma(gamma)
    if theta < 0:
        raise InvalidFlowError(f"Deflection must be non-negative, got {theta}")
    mu = mach_angle(M)
    if theta == 0:
        return float(mu)

    beta_star, theta_max = max_deflection_point(M, gamma)
    if theta > theta_max:
        raise InvalidFlowError(
            f"theta = {theta:.4f}° exceeds theta_max = {theta_max:.4f}° "
            f"at M = {M}: shock is detached"
        )

    tan_t = np.tan(np.radians(theta))
    beta_r, r = brentq(
        lambda b: _tan_theta(b, M, gamma) - tan_t,
        np.radians(mu), np.radians(beta_star),
        xtol=BETA_XTOL, maxiter=BETA_MAXITER, full_output=True, disp=False,
    )
    if not r.converged:
        raise ConvergenceError(
            f"Wave angle did not converge at M={M}, theta={theta}: {r.flag}"
        )
    return float(np.degrees(beta_r))


def mn1(M, theta, gamma=1.4):
    """Upstream Mach number normal to the weak shock."""
    return M * np.sin(np.radians(wave_angle(M, theta, gamma)))


def oblique_mach2(M, theta, gamma=1.4):
    """Downstream Mach number behind the weak oblique shock."""
    return shock_jump(M, theta, wave_angle(M, theta, gamma), gamma).M2


def shock_jump(M, theta, beta, gamma=1.4, detached=False):
    """Jump conditions for a known wave angle.

    Decomposes M into the normal component M·sin β, applies the normal
    shock relations, and recovers M2 = Mn2 / sin(β - θ).
    """
    beta_r = np.radians(beta)
    ns = solve_normal(M * np.sin(beta_r), gamma)
    M2 = ns.M2 / np.sin(beta_r - np.radians(theta))
    return ObliqueShock(
        float(M2), float(ns.rho2_ratio), float(ns.p2_ratio),
        float(ns.p0_ratio), float(beta), detached,
    )


def solve_oblique(M, theta, gamma=1.4):
    """Downstream state behind a wedge of deflection θ [degrees].

    For θ >= θ_max the shock detaches. That case is not an error: the wave
    angle is taken as 90° (normal shock on M) and the result is flagged
    ``detached=True``; a warning is logged.

    Returns
    -------
    ObliqueShock
        (M2, rho2_ratio, p2_ratio, p0_ratio, beta [deg], detached).
    """
    _, theta_max = max_deflection_point(M, gamma)
    if theta < theta_max:
        return shock_jump(M, theta, wave_angle(M, theta, gamma), gamma)

    logger.warning(
        "Bow shock occurred at M=%.3f, theta=%.3f deg (theta_max=%.3f deg)",
        M, theta, theta_max,
    )
    return shock_jump(M, theta, 90.0, gamma, detached=True)
