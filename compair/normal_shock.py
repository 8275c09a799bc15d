"""Normal shock relations for a calorically perfect gas.

Anderson MCF Section 3.6; NACA 1135 Eqs. 93-99.

All relations are closed form in the upstream (normal) Mach number. They
are defined for any M, but only M >= 1 is a physical compression shock;
M < 1 returns a mathematically valid "shock" with M2 > M.
"""

from collections import namedtuple

from compair.gas import p0_over_p

NormalShock = namedtuple('NormalShock', ['M2', 'rho2_ratio', 'p2_ratio', 'p0_ratio'])


def normal_mach2(M, gamma=1.4):
    """Downstream Mach number. Anderson MCF Eq. 3.51."""
    return ((1 + (gamma - 1) / 2 * M**2) / (gamma * M**2 - (gamma - 1) / 2)) ** 0.5


def rho2_over_rho1(M, gamma=1.4):
    """Density ratio ρ2/ρ1. Anderson MCF Eq. 3.53."""
    return (gamma + 1) * M**2 / (2 + (gamma - 1) * M**2)


def p2_over_p1(M, gamma=1.4):
    """Static pressure ratio p2/p1. Anderson MCF Eq. 3.57."""
    return 1 + 2 * gamma / (gamma + 1) * (M**2 - 1)


def t2_over_t1(M, gamma=1.4):
    """Static temperature ratio T2/T1 = (p2/p1) / (ρ2/ρ1). Anderson MCF Eq. 3.59."""
    return p2_over_p1(M, gamma) / rho2_over_rho1(M, gamma)


def normal_p02(M, gamma=1.4):
    """Total pressure behind the shock referenced to upstream static, p02/p1.

    This is the pitot pressure ratio (Rayleigh pitot formula in product form).
    """
    return p0_over_p(normal_mach2(M, gamma), gamma) * p2_over_p1(M, gamma)


def p02_over_p01(M, gamma=1.4):
    """Total pressure ratio p02/p01 across the shock."""
    return normal_p02(M, gamma) / p0_over_p(M, gamma)


def solve_normal(M, gamma=1.4):
    """Full set of downstream properties behind a normal shock.

    Parameters
    ----------
    M : float
        Upstream Mach number (normal to the shock).
    gamma : float
        Ratio of specific heats.

    Returns
    -------
    NormalShock
        (M2, rho2_ratio, p2_ratio, p0_ratio).
    """
    return NormalShock(
        normal_mach2(M, gamma),
        rho2_over_rho1(M, gamma),
        p2_over_p1(M, gamma),
        p02_over_p01(M, gamma),
    )
