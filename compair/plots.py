"""Shock charts.

All plot functions return (fig, ax) tuples for composability.
"""

import numpy as np
import matplotlib.pyplot as plt

from compair.analysis import cone_sweep, theta_beta_curve
from compair.oblique_shock import max_deflection_point


def plot_theta_beta_mach(machs, gamma=1.4, ax=None, title=None, n_points=200):
    """θ-β-M chart for planar oblique shocks.

    Weak branch drawn solid, strong branch dashed, and the locus of
    maximum deflection marked for each Mach number.

    Parameters
    ----------
    machs : sequence of float
        Upstream Mach numbers, one curve each.
    gamma : float
    ax : matplotlib Axes or None
        Existing axes to plot on.
    title : str or None
    n_points : int
        Samples per curve.

    Returns
    -------
    fig, ax
    """
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=(8, 6))
    else:
        fig = ax.figure
    colors = plt.cm.tab10.colors

    for i, M in enumerate(machs):
        color = colors[i % len(colors)]
        curve = theta_beta_curve(M, gamma, n_points)
        weak = curve['weak']
        ax.plot(curve['theta'][weak], curve['beta'][weak], '-',
                color=color, linewidth=1.5, label=f'M = {M:g}')
        ax.plot(curve['theta'][~weak], curve['beta'][~weak], '--',
                color=color, linewidth=1.0)
        ax.plot(curve['theta_max'], curve['beta_star'], 'o',
                color=color, markersize=4)

    ax.set_xlabel("Deflection angle θ [°]")
    ax.set_ylabel("Wave angle β [°]")
    ax.set_title(title or f"θ-β-M (γ = {gamma:g})")
    ax.set_xlim(left=0)
    ax.set_ylim(0, 90)
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=8)
    fig.tight_layout()
    return fig, ax


def plot_cone_shock_chart(machs, gamma=1.4, ax=None, title=None, n_angles=60):
    """Shock angle against cone half-angle for attached conical shocks.

    Each curve stops at the last cone angle with an attached shock; the
    planar θ-β weak branch is overlaid dotted for comparison.

    Returns
    -------
    fig, ax
    """
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=(8, 6))
    else:
        fig = ax.figure
    colors = plt.cm.tab10.colors

    for i, M in enumerate(machs):
        color = colors[i % len(colors)]
        # Cones hold an attached shock well past the planar θ_max
        theta_max = max_deflection_point(M, gamma)[1]
        angles = np.linspace(0.0, min(2.0 * theta_max, 60.0), n_angles)
        sweep = cone_sweep(M, angles, gamma)
        attached = ~sweep['detached'] & np.isfinite(sweep['beta'])
        ax.plot(angles[attached], sweep['beta'][attached], '-',
                color=color, linewidth=1.5, label=f'M = {M:g}')

        planar = theta_beta_curve(M, gamma)
        weak = planar['weak']
        ax.plot(planar['theta'][weak], planar['beta'][weak], ':',
                color=color, linewidth=0.8)

    ax.set_xlabel("Cone half-angle θc [°]")
    ax.set_ylabel("Shock angle β [°]")
    ax.set_title(title or f"Conical shock chart (γ = {gamma:g})")
    ax.set_xlim(left=0)
    ax.set_ylim(0, 90)
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=8)
    fig.tight_layout()
    return fig, ax
