"""YAML case files with inheritance.

Supports a `base:` key for case inheritance with deep merge, so a family
of cases can share a freestream and override only what differs:

    cases:
      air_cone:
        type: cone
        mach: 3.0
        angle: 20deg
      helium_cone:
        base: air_cone
        gamma: 1.667
    outputs: [summary, chart]
"""

import copy
from pathlib import Path

import numpy as np
import yaml

CASE_TYPES = ('cone', 'oblique', 'normal', 'expansion', 'intake', 'nozzle', 'atmosphere')


def _deep_merge(base, overrides):
    """Recursively merge overrides into base dict.

    - Scalars in overrides replace base values
    - Dicts are merged recursively
    - None values in overrides remove the key
    """
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if value is None:
            result.pop(key, None)
        elif isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _resolve_case(name, raw, all_raw, resolved_cache=None, chain=()):
    """Resolve a single case, following base references.

    Parameters
    ----------
    name : str
        Case name.
    raw : dict
        Raw case dict.
    all_raw : dict
        All raw cases (for base resolution).
    resolved_cache : dict
        Cache of already-resolved cases.
    chain : tuple
        Names visited on the way here, for cycle detection.

    Returns
    -------
    dict : Resolved case (base fields merged in).
    """
    if resolved_cache is None:
        resolved_cache = {}

    if name in resolved_cache:
        return resolved_cache[name]
    if name in chain:
        raise ValueError(f"Circular base reference: {' -> '.join(chain + (name,))}")

    if 'base' in raw:
        base_name = raw['base']
        if base_name not in all_raw:
            raise ValueError(f"Case '{name}' references unknown base '{base_name}'")
        base_resolved = _resolve_case(
            base_name, all_raw[base_name], all_raw, resolved_cache, chain + (name,)
        )
        # Merge: base + overrides (excluding the 'base' key itself)
        overrides = {k: v for k, v in raw.items() if k != 'base'}
        resolved = _deep_merge(base_resolved, overrides)
    else:
        resolved = copy.deepcopy(raw)

    resolved_cache[name] = resolved
    return resolved


def load_config(path):
    """Load a case file from YAML.

    Supports:
    - Single case: `case:` top-level key
    - Multiple cases: `cases:` top-level key with inheritance
    - Output control: `outputs:` list ('summary', 'chart')

    Parameters
    ----------
    path : str or Path
        Path to YAML file.

    Returns
    -------
    dict with keys:
        cases : dict of {name: resolved_case}
        outputs : list of output types
        chart : dict of chart options (may be empty)
    """
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raise ValueError(f"Empty config file: {path}")

    if 'case' in raw and 'cases' not in raw:
        cases_raw = {'default': raw['case']}
    elif 'cases' in raw:
        cases_raw = raw['cases']
    else:
        # Treat entire file as a single case
        cases_raw = {'default': raw}

    resolved_cache = {}
    cases = {}
    for name, cfg in cases_raw.items():
        cases[name] = _resolve_case(name, cfg, cases_raw, resolved_cache)

    return {
        'cases': cases,
        'outputs': raw.get('outputs', ['summary']),
        'chart': raw.get('chart', {}),
    }


def _parse_angle(value):
    """Parse an angle with optional unit suffix.

    Supports: deg, rad.  Plain numbers are treated as degrees.
    Returns value in degrees.
    """
    if isinstance(value, (int, float)):
        return float(value)

    s = str(value).strip()
    if s.endswith('deg'):
        return float(s[:-3].strip())
    if s.endswith('rad'):
        return float(np.degrees(float(s[:-3].strip())))
    return float(s)


def _require(cfg, key, ctype):
    if key not in cfg:
        raise ValueError(f"'{ctype}' case requires '{key}'")
    return cfg[key]


def build_case(cfg):
    """Convert a resolved case dict into a normalized case specification.

    Parameters
    ----------
    cfg : dict
        Resolved case from load_config.

    Returns
    -------
    dict with standardized keys:
        type : str — one of CASE_TYPES
        gamma : float
        Additional keys depend on type (mach, angle, psi, theta, ramps,
        area_ratio, altitude_km), angles in degrees.
    """
    ctype = cfg.get('type', 'cone')
    if ctype not in CASE_TYPES:
        raise ValueError(
            f"Unknown case type '{ctype}', expected one of {', '.join(CASE_TYPES)}"
        )

    spec = {'type': ctype, 'gamma': float(cfg.get('gamma', 1.4))}

    if ctype in ('cone', 'oblique', 'normal', 'expansion', 'intake'):
        spec['mach'] = float(_require(cfg, 'mach', ctype))

    if ctype == 'cone':
        spec['angle'] = _parse_angle(_require(cfg, 'angle', ctype))
        spec['psi'] = _parse_angle(cfg['psi']) if 'psi' in cfg else None

    elif ctype in ('oblique', 'expansion'):
        spec['theta'] = _parse_angle(_require(cfg, 'theta', ctype))

    elif ctype == 'intake':
        ramps = _require(cfg, 'ramps', ctype)
        if not isinstance(ramps, (list, tuple)) or not ramps:
            raise ValueError("'intake' case requires a non-empty list of ramps")
        spec['ramps'] = [_parse_angle(r) for r in ramps]

    elif ctype == 'nozzle':
        spec['area_ratio'] = float(_require(cfg, 'area_ratio', ctype))

    elif ctype == 'atmosphere':
        spec['altitude_km'] = float(_require(cfg, 'altitude_km', ctype))

    return spec
