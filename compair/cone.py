"""Supersonic flow over a circular cone at zero incidence (Taylor-Maccoll).

References:
- Anderson, *Modern Compressible Flow*, 3rd ed., Sections 10.4-10.5.
- Taylor & Maccoll, "The Air Pressure on a Cone Moving at High Speeds",
  Proc. Roy. Soc. A 139, 1933.
- NASA Glenn, "Conical Flow", https://www.grc.nasa.gov/www/k-12/airplane/coneflow.html

Method
------
The conical flow field between the shock (φ = β) and the cone surface
(φ = θ_c) is self-similar: velocity depends only on the polar ray angle φ
measured from the cone axis. With velocities normalized by the limiting
speed V_max, the state y = [v_r, v_θ] obeys

    dv_r/dφ = v_θ
    dv_θ/dφ = [v_θ²·v_r - a·(2·v_r + v_θ·cot φ)] / (a - v_θ²)
    a       = (γ-1)/2 · (1 - v_r² - v_θ²)

The cone angle is not an input of this ODE but the ray where v_θ = 0.
For a given cone we therefore shoot on the *effective wedge angle* θ_eff:
the 2-D deflection whose oblique shock has the same wave angle as the
cone. For a trial deflection x the oblique-shock jump gives β(x) and the
post-shock state; the ODE is integrated from β(x) toward θ_c and the
tangency residual is driven to zero with Brent's method.

Layering (each piece is usable on its own):

    taylor_maccoll            ODE right-hand side
    integrate_taylor_maccoll  adaptive DOP853 driver, endpoint only
    shock_start               post-shock initial state for a trial deflection
    solve_cone_shock          bracket check + root-find, memoized
    cone_*                    public property queries built on the above

Angles are degrees at every public boundary.
"""

import logging
from collections import namedtuple
from dataclasses import dataclass
from functools import lru_cache

import numpy as np
from scipy.integrate import DOP853
from scipy.optimize import brentq

from compair.errors import (
    ConvergenceError, InvalidFlowError, require_angle, require_gamma,
    require_supersonic,
)
from compair.gas import (
    mach_angle, mach_from_velocity_ratio, p0_over_p, rho0_over_rho,
    velocity_ratio,
)
from compair.normal_shock import normal_mach2
from compair.oblique_shock import max_deflection_point, shock_jump, wave_angle

logger = logging.getLogger(__name__)

ShockStart = namedtuple('ShockStart', ['beta', 'v_r', 'v_theta', 'detached'])
SurfaceState = namedtuple('SurfaceState', ['M', 'flow_angle'])
ConeProperties = namedtuple(
    'ConeProperties', ['M', 'rho_ratio', 'p_ratio', 'p0_ratio', 'beta']
)
RayProperties = namedtuple(
    'RayProperties', ['M', 'rho_ratio', 'p_ratio', 'p0_ratio', 'beta', 'flow_angle']
)

# ODE integration budget
ODE_RTOL = 1e-10
ODE_ATOL = 1e-12
ODE_MAX_STEPS = 20000

# Effective-wedge root-finding budget [degrees]
THETA_SEED = 1e-3       # x = 0 is a removable singularity (Mach wave)
THETA_SEED_MIN = 1e-9
THETA_XTOL = 1e-10
THETA_MAXITER = 200

RAY_ANGLE_TOL = 1e-9


@dataclass(frozen=True)
class ConicalShock:
    """Solution of the cone boundary-value problem for one (M, θ_c, γ).

    Attributes
    ----------
    M : float
        Freestream Mach number.
    cone_angle : float
        Cone half-angle θ_c [degrees].
    gamma : float
        Ratio of specific heats.
    theta_eff : float
        Effective 2-D wedge deflection [degrees].
    beta : float
        Shock wave angle [degrees]; 90 on the detached branch.
    detached : bool
        True when no attached shock reproduces the cone (bow shock).
    """
    M: float
    cone_angle: float
    gamma: float
    theta_eff: float
    beta: float
    detached: bool


# ---------------------------------------------------------------------------
# ODE
# ---------------------------------------------------------------------------

def taylor_maccoll(phi, y, gamma=1.4):
    """Right-hand side of the Taylor-Maccoll equation.

    Parameters
    ----------
    phi : float
        Polar ray angle from the cone axis [radians].
    y : array_like, shape (2,)
        [v_r, v_θ] normalized by V_max.
    gamma : float

    Returns
    -------
    ndarray, shape (2,)
        [dv_r/dφ, dv_θ/dφ].

    Notes
    -----
    Singular at φ = 0 (cot φ) and where a = v_θ², i.e. where the velocity
    component normal to the ray is sonic.
    """
    v_r, v_theta = y
    a = (gamma - 1) / 2 * (1 - v_r**2 - v_theta**2)
    dv_theta = ((v_theta**2 * v_r - a * (2 * v_r + v_theta / np.tan(phi)))
                / (a - v_theta**2))
    return np.array([v_theta, dv_theta])


def integrate_taylor_maccoll(v_r, v_theta, phi_start, phi_end, gamma=1.4,
                             stop_at_surface=False, rtol=ODE_RTOL,
                             atol=ODE_ATOL, max_steps=ODE_MAX_STEPS):
    """Integrate the Taylor-Maccoll equation from phi_start to phi_end.

    Steps an order-8 embedded Runge-Kutta (DOP853) one step at a time and
    keeps only the current state; no trajectory is stored.

    Parameters
    ----------
    v_r, v_theta : float
        Initial velocity components (normalized by V_max).
    phi_start, phi_end : float
        Integration span [radians]; either direction.
    gamma : float
    stop_at_surface : bool
        Stop where v_θ first crosses zero from below (the cone surface).
        The crossing is located on the step interpolant.
    rtol, atol : float
        Error-control tolerances.
    max_steps : int
        Step budget.

    Returns
    -------
    phi, v_r, v_theta : float
        Terminal ray angle [radians] and velocity components. With
        ``stop_at_surface`` the terminal angle is the surface crossing if
        one occurs before phi_end.

    Raises
    ------
    ConvergenceError
        If the step size collapses (singular point), the state becomes
        non-finite, or the step budget is exhausted.
    """
    y0 = np.array([v_r, v_theta], dtype=float)
    if phi_end == phi_start:
        return float(phi_start), float(y0[0]), float(y0[1])

    solver = DOP853(lambda phi, y: taylor_maccoll(phi, y, gamma),
                    phi_start, y0, phi_end, rtol=rtol, atol=atol)

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        for _ in range(max_steps):
            v_theta_old = solver.y[1]
            message = solver.step()
            if solver.status == 'failed':
                raise ConvergenceError(
                    f"Taylor-Maccoll integration failed at "
                    f"phi = {np.degrees(solver.t):.6f} deg: {message}"
                )
            if not np.all(np.isfinite(solver.y)):
                raise ConvergenceError(
                    f"Taylor-Maccoll state became non-finite at "
                    f"phi = {np.degrees(solver.t):.6f} deg"
                )
            if stop_at_surface and v_theta_old < 0.0 <= solver.y[1]:
                return _surface_crossing(solver)
            if solver.status == 'finished':
                return float(solver.t), float(solver.y[0]), float(solver.y[1])

    raise ConvergenceError(
        f"Taylor-Maccoll integration did not reach phi = "
        f"{np.degrees(phi_end):.6f} deg within {max_steps} steps"
    )


def _surface_crossing(solver):
    """Locate v_θ = 0 inside the last accepted step."""
    if solver.y[1] == 0.0:
        return float(solver.t), float(solver.y[0]), 0.0
    dense = solver.dense_output()
    lo, hi = sorted((solver.t_old, solver.t))
    phi_s = brentq(lambda phi: dense(phi)[1], lo, hi, xtol=1e-15)
    return float(phi_s), float(dense(phi_s)[0]), 0.0


# ---------------------------------------------------------------------------
# Shooting on the effective wedge angle
# ---------------------------------------------------------------------------

def _start_state(M, theta, beta, gamma, detached=False):
    # Detached: the normal shock acts on the full freestream Mach number.
    if detached:
        M2 = normal_mach2(M, gamma)
    else:
        M2 = shock_jump(M, theta, beta, gamma).M2
    v = velocity_ratio(M2, gamma)
    delta = np.radians(beta - theta)
    return ShockStart(float(beta), float(v * np.cos(delta)),
                      float(-v * np.sin(delta)), detached)


def shock_start(M, theta, gamma=1.4):
    """Post-shock initial state for a trial wedge deflection θ [degrees].

    When θ meets or exceeds θ_max the shock is treated as detached: the
    wave angle is 90° and the post-shock Mach number comes from the normal
    shock relation applied to M.

    Returns
    -------
    ShockStart
        (beta [deg], v_r, v_theta, detached). v_θ is negative (toward the
        axis) just behind the shock.
    """
    _, theta_max = max_deflection_point(M, gamma)
    if theta >= theta_max:
        return _start_state(M, theta, 90.0, gamma, detached=True)
    return _start_state(M, theta, wave_angle(M, theta, gamma), gamma)


def _tangency_residual(start, cone_r, gamma):
    """Signed miss of the cone-surface condition v_θ(θ_c) = 0.

    Negative: the flow has not yet turned parallel to the ray at θ_c (the
    trial shock is too weak for this cone). Positive: the surface was
    reached at φ_s > θ_c; the residual is then φ_s - θ_c so the function
    stays continuous through the root.
    """
    beta_r = np.radians(start.beta)
    if beta_r <= cone_r:
        # Shock inside the cone: nothing to integrate.
        return start.v_theta
    phi, _, v_theta = integrate_taylor_maccoll(
        start.v_r, start.v_theta, beta_r, cone_r, gamma, stop_at_surface=True,
    )
    if phi > cone_r:
        return phi - cone_r
    return v_theta


@lru_cache(maxsize=1024)
def solve_cone_shock(M, cone_angle, gamma=1.4):
    """Solve the cone boundary-value problem for θ_eff and β.

    The attached branch is searched on [THETA_SEED, θ_max]. A sign change
    of the tangency residual there is required before Brent's method is
    trusted. If the residual is still negative at θ_max, no attached shock
    can turn the flow onto the cone and it is classified as detached with
    θ_eff = θ_max and β = 90°.

    Results are memoized on (M, cone_angle, gamma); the returned object is
    immutable.

    Raises
    ------
    InvalidFlowError
        M <= 1, γ <= 1, or cone angle outside [0, 90).
    ConvergenceError
        No bracket exists below θ_max, or the root-finder or the ODE
        integrator exceeded its budget.
    """
    require_supersonic(M)
    require_gamma(gamma)
    require_angle(cone_angle, "cone half-angle")

    if cone_angle == 0:
        return ConicalShock(M, 0.0, gamma, 0.0, float(mach_angle(M)), False)

    beta_star, theta_max = max_deflection_point(M, gamma)
    cone_r = np.radians(cone_angle)

    def residual(theta):
        if theta >= theta_max:
            start = _start_state(M, theta_max, beta_star, gamma)
        else:
            start = _start_state(M, theta, wave_angle(M, theta, gamma), gamma)
        return _tangency_residual(start, cone_r, gamma)

    f_hi = residual(theta_max)
    if f_hi < 0:
        # Even the strongest attached shock turns the flow short of the cone
        logger.debug(
            "Cone M=%.4f angle=%.4f deg is beyond attachment "
            "(theta_max=%.4f deg, residual=%.3e)", M, cone_angle, theta_max, f_hi,
        )
        return ConicalShock(M, cone_angle, gamma, theta_max, 90.0, True)
    if f_hi == 0:
        return ConicalShock(M, cone_angle, gamma, theta_max, beta_star, False)

    lo = min(THETA_SEED, theta_max / 2)
    f_lo = residual(lo)
    while f_lo > 0 and lo > THETA_SEED_MIN:
        lo /= 10
        f_lo = residual(lo)
    if f_lo > 0:
        raise ConvergenceError(
            f"Effective wedge angle for a {cone_angle} deg cone at M={M} "
            f"is below {THETA_SEED_MIN} deg"
        )

    if f_lo == 0:
        theta_eff = lo
    else:
        theta_eff, r = brentq(residual, lo, theta_max, xtol=THETA_XTOL,
                              maxiter=THETA_MAXITER, full_output=True,
                              disp=False)
        if not r.converged:
            raise ConvergenceError(
                f"Effective wedge angle did not converge for a {cone_angle} "
                f"deg cone at M={M} after {r.iterations} iterations"
            )
    theta_eff = float(theta_eff)
    beta = beta_star if theta_eff >= theta_max else wave_angle(M, theta_eff, gamma)
    logger.debug("Cone M=%.4f angle=%.4f deg: theta_eff=%.6f deg, beta=%.6f deg",
                 M, cone_angle, theta_eff, beta)
    return ConicalShock(M, cone_angle, gamma, theta_eff, float(beta), False)


# ---------------------------------------------------------------------------
# Property queries
# ---------------------------------------------------------------------------

def effective_wedge_angle(M, cone_angle, gamma=1.4):
    """2-D deflection [degrees] whose oblique shock matches the cone's shock."""
    return solve_cone_shock(M, cone_angle, gamma).theta_eff


def cone_shock_angle(M, cone_angle, gamma=1.4):
    """Conical shock wave angle β [degrees]; 90 when detached."""
    return solve_cone_shock(M, cone_angle, gamma).beta


def _shock_jump(shock):
    if shock.detached:
        logger.warning(
            "Bow shock occurred at M=%.3f, cone angle=%.3f deg "
            "(theta_eff=%.3f deg)", shock.M, shock.cone_angle, shock.theta_eff,
        )
    return shock_jump(shock.M, shock.theta_eff, shock.beta, shock.gamma,
                      detached=shock.detached)


def cone_full_jump(M, cone_angle, gamma=1.4):
    """State just behind the conical shock.

    Returns
    -------
    ObliqueShock
        (M2, rho2_ratio, p2_ratio, p0_ratio, beta [deg], detached).
    """
    return _shock_jump(solve_cone_shock(M, cone_angle, gamma))


def cone_downstream_mach(M, cone_angle, gamma=1.4):
    """Mach number just behind the conical shock."""
    return cone_full_jump(M, cone_angle, gamma).M2


def _ray_state(shock, psi):
    """Local Mach number and flow direction [degrees] on ray psi [degrees]."""
    if shock.cone_angle == 0:
        # Mach-wave limit: uniform freestream.
        return shock.M, 0.0
    start = _start_state(shock.M, shock.theta_eff, shock.beta, shock.gamma)
    _, v_r, v_theta = integrate_taylor_maccoll(
        start.v_r, start.v_theta, np.radians(shock.beta), np.radians(psi),
        shock.gamma,
    )
    mach = mach_from_velocity_ratio(np.hypot(v_r, v_theta), shock.gamma)
    flow_angle = psi + np.degrees(np.arctan2(v_theta, v_r))
    return float(mach), float(flow_angle)


def _require_attached(shock):
    # Behind a bow shock the flow is not conical; there is no ray field.
    if shock.detached:
        _shock_jump(shock)
        raise InvalidFlowError(
            f"No conical flow field on a {shock.cone_angle} deg cone at "
            f"M={shock.M}: the shock is detached"
        )


def cone_surface_state(M, cone_angle, gamma=1.4):
    """Mach number and flow direction [degrees] on the cone surface.

    Raises
    ------
    InvalidFlowError
        The shock is detached.
    """
    shock = solve_cone_shock(M, cone_angle, gamma)
    _require_attached(shock)
    return SurfaceState(*_ray_state(shock, shock.cone_angle))


def cone_ray_properties(M, cone_angle, gamma=1.4, psi=None):
    """Flow properties on a ray between the cone surface and the shock.

    Everything downstream of the shock is isentropic, so static ratios at
    the ray follow from the shock jump chained through stagnation ratios:

        ρ/ρ1 = (ρ2/ρ1) · (ρ0/ρ)(M2) / (ρ0/ρ)(M_ray)
        p/p1 = (p2/p1) · (p0/p)(M2) / (p0/p)(M_ray)

    Parameters
    ----------
    M : float
        Freestream Mach number.
    cone_angle : float
        Cone half-angle [degrees].
    gamma : float
    psi : float or None
        Ray angle [degrees] in [cone_angle, β]. None evaluates the surface.

    Returns
    -------
    ConeProperties
        (M, rho_ratio, p_ratio, p0_ratio, beta) when ``psi`` is None.
    RayProperties
        The same plus ``flow_angle`` [degrees] when ``psi`` is given.

    Raises
    ------
    InvalidFlowError
        The shock is detached, or ``psi`` lies outside [cone_angle, β].
    """
    shock = solve_cone_shock(M, cone_angle, gamma)
    _require_attached(shock)
    ray = shock.cone_angle if psi is None else psi
    if not (shock.cone_angle - RAY_ANGLE_TOL <= ray <= shock.beta + RAY_ANGLE_TOL):
        raise InvalidFlowError(
            f"Ray angle {ray} deg outside [{shock.cone_angle}, "
            f"{shock.beta:.4f}] deg"
        )

    jump = _shock_jump(shock)
    mach, flow_angle = _ray_state(shock, ray)
    rho_ratio = (jump.rho2_ratio * rho0_over_rho(jump.M2, gamma)
                 / rho0_over_rho(mach, gamma))
    p_ratio = jump.p2_ratio * p0_over_p(jump.M2, gamma) / p0_over_p(mach, gamma)

    props = (mach, float(rho_ratio), float(p_ratio), jump.p0_ratio, jump.beta)
    if psi is None:
        return ConeProperties(*props)
    return RayProperties(*props, flow_angle)
