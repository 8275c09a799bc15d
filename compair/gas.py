"""Isentropic relations for a calorically perfect gas.

Every function cites its published source:
- Anderson, *Modern Compressible Flow* (MCF), 3rd ed., 2003
- NACA 1135, "Equations, Tables, and Charts for Compressible Flow", 1953

All functions accept scalars or numpy arrays for ``M``.
"""

import numpy as np


# ---------------------------------------------------------------------------
# Stagnation-to-static ratios (Anderson MCF Eqs. 3.28-3.31, NACA 1135 Eqs. 43-45)
# ---------------------------------------------------------------------------

def t0_over_t(M, gamma=1.4):
    """T0/T = 1 + (γ-1)/2 · M².

    Anderson MCF Eq. 3.28; NACA 1135 Eq. 43.
    """
    return 1 + (gamma - 1) / 2 * M**2


def p0_over_p(M, gamma=1.4):
    """p0/p = (1 + (γ-1)/2 · M²)^(γ/(γ-1)).

    Anderson MCF Eq. 3.30; NACA 1135 Eq. 44.
    """
    return t0_over_t(M, gamma) ** (gamma / (gamma - 1))


def rho0_over_rho(M, gamma=1.4):
    """ρ0/ρ = (1 + (γ-1)/2 · M²)^(1/(γ-1)).

    Anderson MCF Eq. 3.31; NACA 1135 Eq. 45.
    """
    return t0_over_t(M, gamma) ** (1 / (gamma - 1))


def temperature_ratio(M, gamma=1.4):
    """T/T0."""
    return 1 / t0_over_t(M, gamma)


def pressure_ratio(M, gamma=1.4):
    """p/p0."""
    return 1 / p0_over_p(M, gamma)


def density_ratio(M, gamma=1.4):
    """ρ/ρ0."""
    return 1 / rho0_over_rho(M, gamma)


# ---------------------------------------------------------------------------
# Mach angle and velocity normalization
# ---------------------------------------------------------------------------

def mach_angle(M):
    """Mach angle μ = arcsin(1/M) [degrees].

    Anderson MCF Eq. 9.1.
    """
    return np.degrees(np.arcsin(1.0 / M))


def velocity_ratio(M, gamma=1.4):
    """V/V_max, speed normalized by the limiting (infinite expansion) speed.

    Anderson MCF Eq. 10.16:
        V' = [2/((γ-1)·M²) + 1]^(-1/2)

    Written here in the equivalent form
        V' = sqrt[(γ-1)/2·M² / (1 + (γ-1)/2·M²)]
    which stays finite at M = 0.
    """
    half_gm1_msq = (gamma - 1) / 2 * M**2
    return np.sqrt(half_gm1_msq / (1 + half_gm1_msq))


def mach_from_velocity_ratio(v, gamma=1.4):
    """Invert V/V_max back to Mach number.

        M = sqrt[2/(γ-1) · V'² / (1 - V'²)]
    """
    return np.sqrt(2 / (gamma - 1) * (v**2 / (1 - v**2)))


# ---------------------------------------------------------------------------
# Speed of sound
# ---------------------------------------------------------------------------

def speed_of_sound(T, gamma=1.4, R=287.058):
    """a = sqrt(γ·R·T) [m/s]. Anderson MCF Eq. 1.5."""
    return np.sqrt(gamma * R * T)
