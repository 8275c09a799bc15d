"""Parameter sweeps and single-case evaluation.

Sweeps are independent point evaluations; a point that fails to converge
is recorded as NaN and logged instead of aborting the whole sweep.
"""

import logging

import numpy as np

from compair.atmosphere import atmosphere
from compair.cone import cone_full_jump, cone_ray_properties, solve_cone_shock
from compair.errors import ConvergenceError
from compair.expansion import expand_mach2, expand_p2_over_p1
from compair.gas import mach_angle
from compair.intake import intake_ramp, total_pressure_recovery
from compair.normal_shock import solve_normal
from compair.nozzle import (
    mach_after_exit_shock, mach_from_area_ratio, pressure_after_exit_shock,
)
from compair.oblique_shock import (
    max_deflection_point, solve_oblique, theta_from_beta,
)

logger = logging.getLogger(__name__)


def theta_beta_curve(M, gamma=1.4, n_points=200):
    """θ(β) for one Mach number, from the Mach angle to 90°.

    Returns
    -------
    dict with keys:
        beta : ndarray — wave angles [degrees]
        theta : ndarray — deflections [degrees]
        weak : ndarray of bool — True on the weak branch (β <= β*)
        beta_star : float — wave angle at θ_max [degrees]
        theta_max : float — maximum deflection [degrees]
    """
    beta_star, theta_max = max_deflection_point(M, gamma)
    beta = np.linspace(mach_angle(M), 90.0, n_points)
    theta = theta_from_beta(beta, M, gamma)
    return {
        'beta': beta,
        'theta': np.maximum(theta, 0.0),
        'weak': beta <= beta_star,
        'beta_star': beta_star,
        'theta_max': theta_max,
    }


def cone_sweep(M, cone_angles, gamma=1.4):
    """Solve the cone problem over a range of half-angles at fixed M.

    Returns
    -------
    dict with keys (arrays aligned with ``cone_angles``):
        cone_angle, theta_eff, beta, M_surface, p_surface, detached
    """
    cone_angles = np.asarray(cone_angles, dtype=float)
    n = len(cone_angles)
    out = {
        'cone_angle': cone_angles,
        'theta_eff': np.full(n, np.nan),
        'beta': np.full(n, np.nan),
        'M_surface': np.full(n, np.nan),
        'p_surface': np.full(n, np.nan),
        'detached': np.zeros(n, dtype=bool),
    }
    for i, angle in enumerate(cone_angles):
        try:
            shock = solve_cone_shock(float(M), float(angle), float(gamma))
        except ConvergenceError as exc:
            logger.warning("Cone sweep point M=%.3f angle=%.3f skipped: %s",
                           M, angle, exc)
            continue
        out['theta_eff'][i] = shock.theta_eff
        out['beta'][i] = shock.beta
        out['detached'][i] = shock.detached
        if shock.detached:
            continue
        surface = cone_ray_properties(float(M), float(angle), float(gamma))
        out['M_surface'][i] = surface.M
        out['p_surface'][i] = surface.p_ratio
    return out


def evaluate_case(case):
    """Evaluate one normalized case (see ``compair.config.build_case``).

    Returns
    -------
    dict
        Flat result with plain Python scalars/lists (JSON serializable).
    """
    ctype = case['type']
    gamma = case.get('gamma', 1.4)
    result = {'type': ctype, 'gamma': gamma}

    if ctype == 'cone':
        M, angle = case['mach'], case['angle']
        shock = solve_cone_shock(M, angle, gamma)
        jump = cone_full_jump(M, angle, gamma)
        result.update({
            'mach': M,
            'angle': angle,
            'theta_eff': shock.theta_eff,
            'beta': shock.beta,
            'detached': shock.detached,
            'M2': jump.M2,
            'rho2_ratio': jump.rho2_ratio,
            'p2_ratio': jump.p2_ratio,
            'p0_ratio': jump.p0_ratio,
        })
        if not shock.detached:
            surface = cone_ray_properties(M, angle, gamma)
            result.update({
                'M_surface': surface.M,
                'rho_surface': surface.rho_ratio,
                'p_surface': surface.p_ratio,
            })
        if case.get('psi') is not None:
            ray = cone_ray_properties(M, angle, gamma, psi=case['psi'])
            result.update({
                'psi': case['psi'],
                'M_ray': ray.M,
                'rho_ray': ray.rho_ratio,
                'p_ray': ray.p_ratio,
                'flow_angle': ray.flow_angle,
            })

    elif ctype == 'oblique':
        M, theta = case['mach'], case['theta']
        shock = solve_oblique(M, theta, gamma)
        result.update({'mach': M, 'theta': theta,
                       'theta_max': max_deflection_point(M, gamma)[1]})
        result.update(shock._asdict())

    elif ctype == 'normal':
        result['mach'] = case['mach']
        result.update({k: float(v) for k, v in
                       solve_normal(case['mach'], gamma)._asdict().items()})

    elif ctype == 'expansion':
        M, theta = case['mach'], case['theta']
        result.update({
            'mach': M,
            'theta': theta,
            'M2': float(expand_mach2(M, theta, gamma)),
            'p2_ratio': float(expand_p2_over_p1(M, theta, gamma)),
        })

    elif ctype == 'intake':
        ramp = intake_ramp(case['mach'], case['ramps'], gamma)
        result.update({
            'mach': case['mach'],
            'ramps': list(case['ramps']),
            'recovery': total_pressure_recovery(ramp),
        })
        result.update({k: v.tolist() for k, v in ramp._asdict().items()})

    elif ctype == 'nozzle':
        ar = case['area_ratio']
        result.update({
            'area_ratio': ar,
            'M_exit': float(mach_from_area_ratio(ar, gamma)),
            'M_exit_subsonic': float(mach_from_area_ratio(ar, gamma, supersonic=False)),
            'M_after_exit_shock': float(mach_after_exit_shock(ar, gamma)),
            'p_after_exit_shock': float(pressure_after_exit_shock(ar, gamma)),
        })

    elif ctype == 'atmosphere':
        alt = case['altitude_km']
        result['altitude_km'] = alt
        result.update({k: float(v) for k, v in atmosphere(alt)._asdict().items()})

    else:
        raise ValueError(f"Unknown case type: {ctype}")

    return result
