"""Tests for nozzle.py — quasi-1D area-Mach relation and choked flow."""

import pytest
from compair.errors import InvalidFlowError
from compair.gas import p0_over_p
from compair.normal_shock import normal_mach2, p2_over_p1
from compair.nozzle import (
    area_ratio,
    mach_from_area_ratio,
    mdot,
    subsonic_pressure_from_area_ratio,
    mach_after_exit_shock,
    pressure_after_exit_shock,
)


class TestAreaMachRatio:
    """Anderson MCF Table A.1 values, γ=1.4."""

    @pytest.mark.parametrize("M, expected", [
        (1.0, 1.0),
        (1.5, 1.1762),
        (2.0, 1.6875),
        (2.5, 2.6367),
        (3.0, 4.2346),
        (5.0, 25.00),
    ])
    def test_area_ratio(self, M, expected):
        assert area_ratio(M) == pytest.approx(expected, rel=1e-3)


class TestAreaMachInversion:
    """Verify round-trip: M → A/A* → M."""

    @pytest.mark.parametrize("M", [1.5, 2.0, 3.0, 5.0, 10.0])
    def test_supersonic_roundtrip(self, M):
        ar = area_ratio(M)
        assert mach_from_area_ratio(ar, supersonic=True) == pytest.approx(M, rel=1e-10)

    @pytest.mark.parametrize("M", [0.1, 0.3, 0.5, 0.8, 0.99])
    def test_subsonic_roundtrip(self, M):
        ar = area_ratio(M)
        assert mach_from_area_ratio(ar, supersonic=False) == pytest.approx(M, rel=1e-8)

    def test_sonic(self):
        assert mach_from_area_ratio(1.0) == pytest.approx(1.0, abs=1e-10)

    def test_below_throat_rejected(self):
        with pytest.raises(InvalidFlowError, match=">= 1"):
            mach_from_area_ratio(0.5)


class TestMassFlow:

    def test_dimensional(self):
        """Sea-level stagnation, 0.01 m² sonic throat."""
        assert mdot(1.0, 0.01, 101325.0, 288.15, 1.4, 287.0) == pytest.approx(
            2.4126, rel=1e-3)

    def test_choked_is_maximum(self):
        assert mdot(1.0) > mdot(0.8)
        assert mdot(1.0) > mdot(1.2)

    def test_scales_with_area(self):
        assert mdot(2.0, area=3.0) == pytest.approx(3.0 * mdot(2.0), rel=1e-12)


class TestExitShock:

    def test_subsonic_pressure(self):
        ar = 2.0
        M_sub = mach_from_area_ratio(ar, supersonic=False)
        assert subsonic_pressure_from_area_ratio(ar) == pytest.approx(
            1 / p0_over_p(M_sub), rel=1e-12)

    def test_mach_after_exit_shock(self):
        ar = area_ratio(2.0)
        assert mach_after_exit_shock(ar) == pytest.approx(normal_mach2(2.0), rel=1e-9)

    def test_pressure_after_exit_shock(self):
        """p_e/p0 = (p/p0)(Me) · p2/p1(Me); Me = 2 → 0.1278 · 4.5."""
        ar = area_ratio(2.0)
        assert pressure_after_exit_shock(ar) == pytest.approx(
            p2_over_p1(2.0) / p0_over_p(2.0), rel=1e-9)
        assert pressure_after_exit_shock(ar) == pytest.approx(0.5752, rel=1e-3)

    def test_shock_pressure_between_branches(self):
        """Back pressure for an exit-plane shock lies between the two isentropic exits."""
        ar = 3.0
        p_super = 1 / p0_over_p(mach_from_area_ratio(ar))
        p_sub = subsonic_pressure_from_area_ratio(ar)
        assert p_super < pressure_after_exit_shock(ar) < p_sub
