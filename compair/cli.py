"""Command-line interface for compressible-flow calculations.

Usage:
    compair run cases.yaml [--output-dir DIR]
    compair cone M ANGLE [--gamma G] [--psi PSI]
    compair oblique M THETA [--gamma G]
    compair normal M [--gamma G]
    compair atmos ALT_KM
    compair chart [--mach 1.5 2 3] [--cone] [--output FILE]
"""

import argparse
import json
import logging
from pathlib import Path

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt

from compair.analysis import evaluate_case
from compair.atmosphere import atmosphere
from compair.config import build_case, load_config
from compair.errors import ConvergenceError
from compair.normal_shock import solve_normal
from compair.oblique_shock import max_deflection, solve_oblique
from compair.plots import plot_cone_shock_chart, plot_theta_beta_mach

DEFAULT_CHART_MACHS = [1.5, 2.0, 3.0, 5.0]


def main(args=None):
    parser = argparse.ArgumentParser(
        prog='compair',
        description='Shock, expansion and conical-flow calculator',
    )
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command')

    # --- run command ---
    run_parser = subparsers.add_parser('run', help='Run cases from a YAML file')
    run_parser.add_argument('config', type=str, help='YAML case file')
    run_parser.add_argument('--output-dir', '-o', default=None,
                            help='Output directory (default: ./output)')

    # --- cone command ---
    cone_parser = subparsers.add_parser('cone', help='Conical shock on a cone')
    cone_parser.add_argument('mach', type=float, help='Freestream Mach number')
    cone_parser.add_argument('angle', type=float, help='Cone half-angle [deg]')
    cone_parser.add_argument('--gamma', type=float, default=1.4)
    cone_parser.add_argument('--psi', type=float, default=None,
                             help='Ray angle between cone and shock [deg]')

    # --- oblique command ---
    oblique_parser = subparsers.add_parser('oblique', help='Planar oblique shock')
    oblique_parser.add_argument('mach', type=float, help='Upstream Mach number')
    oblique_parser.add_argument('theta', type=float, help='Deflection [deg]')
    oblique_parser.add_argument('--gamma', type=float, default=1.4)

    # --- normal command ---
    normal_parser = subparsers.add_parser('normal', help='Normal shock')
    normal_parser.add_argument('mach', type=float, help='Upstream Mach number')
    normal_parser.add_argument('--gamma', type=float, default=1.4)

    # --- atmos command ---
    atmos_parser = subparsers.add_parser('atmos', help='Standard atmosphere')
    atmos_parser.add_argument('altitude', type=float,
                              help='Geometric altitude [km]')

    # --- chart command ---
    chart_parser = subparsers.add_parser('chart', help='Shock charts')
    chart_parser.add_argument('--mach', type=float, nargs='+',
                              default=DEFAULT_CHART_MACHS,
                              help='Mach numbers to draw')
    chart_parser.add_argument('--gamma', type=float, default=1.4)
    chart_parser.add_argument('--cone', action='store_true',
                              help='Conical shock chart instead of θ-β-M')
    chart_parser.add_argument('--output', default=None,
                              help='Image file (default: theta_beta_mach.png '
                                   'or cone_shock_chart.png)')

    parsed = parser.parse_args(args)

    if parsed.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(levelname)s %(name)s: %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING,
                            format='%(levelname)s: %(message)s')

    commands = {
        'run': cmd_run,
        'cone': cmd_cone,
        'oblique': cmd_oblique,
        'normal': cmd_normal,
        'atmos': cmd_atmos,
        'chart': cmd_chart,
    }
    if parsed.command not in commands:
        parser.print_help()
        return 1

    try:
        return commands[parsed.command](parsed)
    except (ValueError, ConvergenceError) as exc:
        print(f"Error: {exc}")
        return 1


def _json_default(obj):
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def cmd_run(args):
    """Evaluate every case in a YAML file."""
    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: config file not found: {config_path}")
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else Path('output')
    output_dir.mkdir(parents=True, exist_ok=True)

    spec = load_config(config_path)
    cases = spec['cases']
    outputs = spec.get('outputs', ['summary'])

    results = {}
    failed = 0
    for name, cfg in cases.items():
        try:
            case = build_case(cfg)
            results[name] = evaluate_case(case)
        except (ValueError, ConvergenceError) as exc:
            print(f"  Error in case '{name}': {exc}")
            results[name] = {'type': cfg.get('type'), 'error': str(exc)}
            failed += 1

    if 'summary' in outputs:
        _print_summary_table(results)
        json_path = output_dir / 'summary.json'
        with open(json_path, 'w') as f:
            json.dump(results, f, indent=2, default=_json_default)
        print(f"Saved summary to {json_path}")

    if 'chart' in outputs:
        chart = spec.get('chart', {})
        machs = chart.get('machs') or sorted(
            {r['mach'] for r in results.values() if r.get('mach', 0) > 1}
        ) or DEFAULT_CHART_MACHS
        gamma = float(chart.get('gamma', 1.4))
        for name, plot in (('theta_beta_mach', plot_theta_beta_mach),
                           ('cone_shock_chart', plot_cone_shock_chart)):
            fig, _ = plot(machs, gamma)
            path = output_dir / f'{name}.png'
            fig.savefig(path, dpi=150, bbox_inches='tight')
            plt.close(fig)
            print(f"Saved chart to {path}")

    return 1 if failed else 0


def _summary_note(r):
    rtype = r.get('type')
    if 'error' in r:
        return f"error: {r['error']}"
    if rtype == 'cone':
        note = f"theta_eff={r['theta_eff']:.3f}"
        if r['detached']:
            return note + " (detached)"
        return note + f" M_surface={r['M_surface']:.4f}"
    if rtype == 'oblique':
        return "detached" if r['detached'] else f"theta_max={r['theta_max']:.3f}"
    if rtype == 'intake':
        return f"recovery={r['recovery']:.4f}"
    if rtype == 'nozzle':
        return f"M_exit={r['M_exit']:.4f}"
    if rtype == 'atmosphere':
        return f"T={r['temperature']:.2f} K"
    return ''


def _print_summary_table(results):
    """Print an aligned summary table."""
    rows = []
    for name, r in results.items():
        M2 = r.get('M2')
        beta = r.get('beta')
        if r.get('type') == 'intake' and 'M' in r:
            # Last stage exit Mach, first-ramp wave angle
            M2, beta = r['M'][-1], r['beta'][0]
        rows.append((name, r.get('type') or '?', M2, beta, _summary_note(r)))

    if not rows:
        return

    w_name = max(max(len(row[0]) for row in rows), 4)  # "Case" header
    w_type = max(max(len(row[1]) for row in rows), 4)

    print(f"\n{'Case':<{w_name}}   {'Type':<{w_type}}   {'M2':>8}   {'beta':>8}   Notes")
    print(f"{'-' * w_name}   {'-' * w_type}   {'--------':>8}   {'--------':>8}   -----")
    for name, rtype, M2, beta, note in rows:
        m2_str = f"{M2:>8.4f}" if M2 is not None else f"{'-':>8}"
        beta_str = f"{beta:>8.3f}" if beta is not None else f"{'-':>8}"
        print(f"{name:<{w_name}}   {rtype:<{w_type}}   {m2_str}   {beta_str}   {note}")
    print()


def cmd_cone(args):
    """Solve and print the flow over one cone."""
    case = {'type': 'cone', 'mach': args.mach, 'angle': args.angle,
            'gamma': args.gamma, 'psi': args.psi}
    r = evaluate_case(case)

    print(f"Cone M = {args.mach:g}, half-angle = {args.angle:g}°, γ = {args.gamma:g}")
    print(f"  θ_eff   = {r['theta_eff']:.4f}°")
    print(f"  β       = {r['beta']:.4f}°" + ("  (detached)" if r['detached'] else ""))
    print(f"  M2      = {r['M2']:.4f}")
    print(f"  ρ2/ρ1   = {r['rho2_ratio']:.4f}")
    print(f"  p2/p1   = {r['p2_ratio']:.4f}")
    print(f"  p02/p01 = {r['p0_ratio']:.4f}")
    if not r['detached']:
        print(f"  Surface: M = {r['M_surface']:.4f}, "
              f"ρ/ρ1 = {r['rho_surface']:.4f}, p/p1 = {r['p_surface']:.4f}")
    if args.psi is not None:
        print(f"  Ray ψ = {args.psi:g}°: M = {r['M_ray']:.4f}, "
              f"ρ/ρ1 = {r['rho_ray']:.4f}, p/p1 = {r['p_ray']:.4f}, "
              f"flow angle = {r['flow_angle']:.4f}°")
    return 0


def cmd_oblique(args):
    """Solve and print one planar oblique shock."""
    shock = solve_oblique(args.mach, args.theta, args.gamma)
    print(f"Oblique shock M = {args.mach:g}, θ = {args.theta:g}°, γ = {args.gamma:g}")
    print(f"  θ_max   = {max_deflection(args.mach, args.gamma):.4f}°")
    print(f"  β       = {shock.beta:.4f}°" + ("  (detached)" if shock.detached else ""))
    print(f"  M2      = {shock.M2:.4f}")
    print(f"  ρ2/ρ1   = {shock.rho2_ratio:.4f}")
    print(f"  p2/p1   = {shock.p2_ratio:.4f}")
    print(f"  p02/p01 = {shock.p0_ratio:.4f}")
    return 0


def cmd_normal(args):
    """Solve and print one normal shock."""
    shock = solve_normal(args.mach, args.gamma)
    print(f"Normal shock M = {args.mach:g}, γ = {args.gamma:g}")
    print(f"  M2      = {shock.M2:.4f}")
    print(f"  ρ2/ρ1   = {shock.rho2_ratio:.4f}")
    print(f"  p2/p1   = {shock.p2_ratio:.4f}")
    print(f"  p02/p01 = {shock.p0_ratio:.4f}")
    return 0


def cmd_atmos(args):
    """Print standard-atmosphere properties at one altitude."""
    atm = atmosphere(args.altitude)
    print(f"Standard atmosphere at {args.altitude:g} km")
    print(f"  T   = {atm.temperature:.3f} K")
    print(f"  p   = {atm.pressure:.2f} Pa")
    print(f"  ρ   = {atm.density:.5f} kg/m^3")
    print(f"  a   = {atm.speed_of_sound:.3f} m/s")
    print(f"  μ   = {atm.viscosity:.4e} Pa·s")
    return 0


def cmd_chart(args):
    """Draw a θ-β-M or conical shock chart to an image file."""
    if args.cone:
        fig, _ = plot_cone_shock_chart(args.mach, args.gamma)
        default = 'cone_shock_chart.png'
    else:
        fig, _ = plot_theta_beta_mach(args.mach, args.gamma)
        default = 'theta_beta_mach.png'
    path = Path(args.output or default)
    fig.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"Saved chart to {path}")
    return 0
