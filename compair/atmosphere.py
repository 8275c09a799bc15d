"""U.S. Standard Atmosphere, 1976 (seven layers, 0-86 km).

Reference: NOAA/NASA/USAF, NASA-TM-X-74335, 1976.

Altitudes are geometric, in kilometres. Above 84.852 km geopotential the
last (isothermal) layer is extended.
"""

from collections import namedtuple

import numpy as np

from compair.errors import InvalidFlowError

Atmosphere = namedtuple(
    'Atmosphere', ['density', 'pressure', 'temperature', 'speed_of_sound', 'viscosity']
)

EARTH_RADIUS_KM = 6369.0
GMR = 34.163195  # g0·M/R* [K/km]

T_SL = 288.15      # K
P_SL = 101325.0    # Pa
RHO_SL = 1.225     # kg/m^3
A_SL = 340.294     # m/s

# Base geopotential altitude [km], base temperature [K], base pressure
# ratio p/p_SL, and lapse rate [K/km] for each layer.
LAYERS = np.array([
    [0.0, 288.15, 1.0, -6.5],
    [11.0, 216.65, 2.2336110e-1, 0.0],
    [20.0, 216.65, 5.4032950e-2, 1.0],
    [32.0, 228.65, 8.5666784e-3, 2.8],
    [47.0, 270.65, 1.0945601e-3, 0.0],
    [51.0, 270.65, 6.6063531e-4, -2.8],
    [71.0, 214.65, 3.9046834e-5, -2.0],
    [84.852, 186.946, 3.68501e-6, 0.0],
])


def geometric_to_geopotential(alt, rearth=EARTH_RADIUS_KM):
    """Geometric altitude Z → geopotential altitude H [km]."""
    return alt * rearth / (rearth + alt)


def geopotential_to_geometric(alt, rearth=EARTH_RADIUS_KM):
    """Geopotential altitude H → geometric altitude Z [km]."""
    return alt * rearth / (rearth - alt)


def sutherland_viscosity(T, beta_s=1.458e-6, suth=110.4):
    """Dynamic viscosity μ = β·T^1.5 / (T + S) [Pa·s] (Sutherland's law)."""
    return beta_s * T**1.5 / (T + suth)


def _layer_ratios(alt):
    """Density, pressure and temperature ratios to sea level."""
    h = geometric_to_geopotential(alt)
    i = int(np.searchsorted(LAYERS[:, 0], h, side='right')) - 1
    h_base, t_base, p_base, lapse = LAYERS[max(i, 0)]

    dh = h - h_base
    t_local = t_base + lapse * dh
    if abs(lapse) < 1e-6:
        p_ratio = p_base * np.exp(-GMR * dh / t_base)
    else:
        p_ratio = p_base * (t_base / t_local) ** (GMR / lapse)
    t_ratio = t_local / T_SL
    return p_ratio / t_ratio, p_ratio, t_ratio


def atmosphere(alt):
    """Standard-atmosphere properties at geometric altitude ``alt`` [km].

    Returns
    -------
    Atmosphere
        (density [kg/m^3], pressure [Pa], temperature [K],
        speed_of_sound [m/s], viscosity [Pa·s]).
    """
    if alt < 0:
        raise InvalidFlowError(f"Altitude must be non-negative, got {alt} km")
    rho_ratio, p_ratio, t_ratio = _layer_ratios(alt)
    temperature = T_SL * t_ratio
    return Atmosphere(
        density=RHO_SL * rho_ratio,
        pressure=P_SL * p_ratio,
        temperature=temperature,
        speed_of_sound=A_SL * np.sqrt(t_ratio),
        viscosity=sutherland_viscosity(temperature),
    )
