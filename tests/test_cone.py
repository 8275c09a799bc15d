"""Tests for cone.py — Taylor-Maccoll conical flow.

Reference values are NACA 1135 Charts 4-6 readings refined with a
high-order integration; γ=1.4 unless noted.
"""

import logging

import numpy as np
import pytest
from compair import cone
from compair.cone import (
    ConicalShock,
    taylor_maccoll,
    integrate_taylor_maccoll,
    shock_start,
    solve_cone_shock,
    effective_wedge_angle,
    cone_shock_angle,
    cone_full_jump,
    cone_downstream_mach,
    cone_surface_state,
    cone_ray_properties,
)
from compair.errors import ConvergenceError, InvalidFlowError
from compair.gas import mach_angle
from compair.normal_shock import normal_mach2
from compair.oblique_shock import max_deflection, wave_angle


class TestReferenceCases:

    @pytest.mark.parametrize("M, theta_eff, beta, M_surface", [
        (2.0, 8.570, 37.796, 1.568),
        (3.0, 12.377, 29.615, 2.290),
    ])
    def test_twenty_degree_cone(self, M, theta_eff, beta, M_surface):
        assert effective_wedge_angle(M, 20.0) == pytest.approx(theta_eff, rel=1e-3)
        assert cone_shock_angle(M, 20.0) == pytest.approx(beta, rel=1e-3)
        assert cone_surface_state(M, 20.0).M == pytest.approx(M_surface, rel=1e-3)

    def test_full_jump_mach_4(self):
        jump = cone_full_jump(4.0, 20.0)
        assert jump.M2 == pytest.approx(2.970, rel=1e-3)
        assert jump.rho2_ratio == pytest.approx(2.333, rel=1e-3)
        assert jump.p2_ratio == pytest.approx(3.546, rel=1e-3)
        assert jump.p0_ratio == pytest.approx(0.820, rel=1e-3)
        assert jump.beta == pytest.approx(26.485, rel=1e-3)
        assert not jump.detached

    def test_slender_cone(self):
        # Converged values; chart readings at this angle are coarser
        assert effective_wedge_angle(3.0, 5.0) == pytest.approx(0.35970, rel=1e-4)
        assert cone_shock_angle(3.0, 5.0) == pytest.approx(19.7155, rel=1e-5)
        assert cone_downstream_mach(3.0, 5.0) == pytest.approx(2.98142, rel=1e-4)

    def test_monatomic_gas(self, gamma_monatomic):
        jump = cone_full_jump(2.5, 10.0, gamma_monatomic)
        assert jump.M2 == pytest.approx(2.365, rel=1e-3)
        assert jump.rho2_ratio == pytest.approx(1.116, rel=1e-3)
        assert jump.p2_ratio == pytest.approx(1.201, rel=1e-3)
        assert jump.beta == pytest.approx(25.528, rel=1e-3)


class TestTwoDimensionalLimit:

    def test_zero_cone_is_mach_wave(self):
        shock = solve_cone_shock(2.5, 0.0)
        assert shock.theta_eff == 0.0
        assert shock.beta == pytest.approx(mach_angle(2.5), rel=1e-12)
        assert cone_surface_state(2.5, 0.0).M == pytest.approx(2.5)

    @pytest.mark.parametrize("M", [1.5, 2.0, 4.0])
    def test_thin_cone_approaches_mach_angle(self, M):
        shock = solve_cone_shock(M, 1.0)
        assert shock.theta_eff < 0.05
        assert shock.beta == pytest.approx(mach_angle(M), abs=0.5)
        assert shock.beta > mach_angle(M)

    def test_weaker_than_wedge(self):
        """The cone's shock is weaker than a wedge of the same half-angle."""
        assert cone_shock_angle(2.0, 15.0) < wave_angle(2.0, 15.0)
        assert effective_wedge_angle(2.0, 15.0) < 15.0


class TestShockProperties:

    def test_monotonic_in_cone_angle(self):
        angles = np.linspace(2.0, 30.0, 8)
        betas = [cone_shock_angle(2.5, a) for a in angles]
        assert np.all(np.diff(betas) > 0)

    @pytest.mark.parametrize("M, cone_angle", [(2.0, 20.0), (3.0, 10.0), (6.0, 30.0)])
    def test_shock_angle_consistency(self, M, cone_angle):
        theta_eff = effective_wedge_angle(M, cone_angle)
        assert cone_shock_angle(M, cone_angle) == pytest.approx(
            wave_angle(M, theta_eff), abs=1e-8)

    @pytest.mark.parametrize("M, cone_angle", [(2.0, 20.0), (3.0, 5.0), (4.0, 35.0)])
    def test_boundary_tangency(self, M, cone_angle):
        """v_θ vanishes on the cone surface for the converged θ_eff."""
        theta_eff = effective_wedge_angle(M, cone_angle)
        start = shock_start(M, theta_eff)
        _, _, v_theta = integrate_taylor_maccoll(
            start.v_r, start.v_theta, np.radians(start.beta),
            np.radians(cone_angle),
        )
        assert v_theta == pytest.approx(0.0, abs=1e-6)

    def test_surface_flow_follows_cone(self):
        state = cone_surface_state(3.0, 20.0)
        assert state.flow_angle == pytest.approx(20.0, abs=1e-5)

    def test_surface_pressure_exceeds_shock_pressure(self):
        """Isentropic compression continues between shock and cone."""
        jump = cone_full_jump(3.0, 20.0)
        surface = cone_ray_properties(3.0, 20.0)
        assert surface.p_ratio > jump.p2_ratio
        assert surface.rho_ratio > jump.rho2_ratio
        assert surface.M < jump.M2

    def test_result_is_cached_and_frozen(self):
        a = solve_cone_shock(2.2, 12.0)
        b = solve_cone_shock(2.2, 12.0)
        assert a is b
        assert isinstance(a, ConicalShock)
        with pytest.raises(AttributeError):
            a.beta = 45.0


class TestDetachedBranch:

    def test_bow_shock(self, caplog):
        with caplog.at_level(logging.WARNING, logger='compair'):
            shock = solve_cone_shock(2.0, 40.0)
            jump = cone_full_jump(2.0, 40.0)
        assert shock.detached
        assert shock.beta == 90.0
        assert jump.beta == 90.0
        assert jump.detached
        assert jump.M2 == pytest.approx(0.627, rel=1e-3)
        # Normal shock on M, turned through the attachment-limit deflection
        assert jump.M2 == pytest.approx(
            normal_mach2(2.0) / np.cos(np.radians(max_deflection(2.0))), rel=1e-9)
        assert "Bow shock occurred" in caplog.text

    def test_warning_logged_on_cached_calls(self, caplog):
        cone_downstream_mach(2.0, 40.0)
        with caplog.at_level(logging.WARNING, logger='compair'):
            cone_downstream_mach(2.0, 40.0)
        assert "Bow shock occurred" in caplog.text

    def test_attached_beyond_wedge_limit(self):
        """A 25° cone stays attached at M=2 although a 25° wedge would not."""
        assert 25.0 > max_deflection(2.0)
        shock = solve_cone_shock(2.0, 25.0)
        assert not shock.detached
        assert shock.beta < 90.0

    def test_ray_beyond_bow_shock_rejected(self):
        with pytest.raises(InvalidFlowError):
            cone_ray_properties(2.0, 40.0, psi=95.0)

    def test_surface_state_rejected(self, caplog):
        with caplog.at_level(logging.WARNING, logger='compair'):
            with pytest.raises(InvalidFlowError, match="detached"):
                cone_surface_state(2.0, 40.0)
        assert "Bow shock occurred" in caplog.text

    @pytest.mark.parametrize("psi", [None, 40.0, 60.0])
    def test_ray_properties_rejected(self, psi):
        with pytest.raises(InvalidFlowError, match="detached"):
            cone_ray_properties(2.0, 40.0, psi=psi)


class TestRayProperties:

    def test_surface_roundtrip(self):
        default = cone_ray_properties(2.0, 20.0)
        explicit = cone_ray_properties(2.0, 20.0, psi=20.0)
        assert explicit.M == pytest.approx(default.M, rel=1e-9)
        assert explicit.rho_ratio == pytest.approx(default.rho_ratio, rel=1e-9)
        assert explicit.p_ratio == pytest.approx(default.p_ratio, rel=1e-9)
        assert explicit.p0_ratio == pytest.approx(default.p0_ratio, rel=1e-12)
        assert explicit.beta == pytest.approx(default.beta, rel=1e-12)
        assert explicit.flow_angle == pytest.approx(20.0, abs=1e-5)

    def test_ray_at_shock_matches_jump(self):
        jump = cone_full_jump(3.0, 15.0)
        ray = cone_ray_properties(3.0, 15.0, psi=jump.beta)
        assert ray.M == pytest.approx(jump.M2, rel=1e-9)
        assert ray.p_ratio == pytest.approx(jump.p2_ratio, rel=1e-9)
        assert ray.rho_ratio == pytest.approx(jump.rho2_ratio, rel=1e-9)
        # Flow just behind the shock is turned by θ_eff
        assert ray.flow_angle == pytest.approx(effective_wedge_angle(3.0, 15.0), abs=1e-6)

    def test_mach_decreases_toward_surface(self):
        beta = cone_shock_angle(3.0, 15.0)
        psis = np.linspace(15.0, beta, 5)
        machs = [cone_ray_properties(3.0, 15.0, psi=p).M for p in psis]
        assert np.all(np.diff(machs) > 0)

    @pytest.mark.parametrize("psi", [10.0, 40.0])
    def test_ray_outside_field_rejected(self, psi):
        with pytest.raises(InvalidFlowError, match="outside"):
            cone_ray_properties(2.0, 20.0, psi=psi)


class TestInputValidation:

    @pytest.mark.parametrize("M", [1.0, 0.5])
    def test_subsonic(self, M):
        with pytest.raises(InvalidFlowError, match="Supersonic"):
            solve_cone_shock(M, 10.0)

    def test_gamma(self):
        with pytest.raises(InvalidFlowError, match="gamma"):
            solve_cone_shock(2.0, 10.0, 1.0)

    def test_negative_angle(self):
        with pytest.raises(InvalidFlowError, match="cone half-angle"):
            solve_cone_shock(2.0, -5.0)

    def test_error_classes_are_distinct(self):
        assert issubclass(InvalidFlowError, ValueError)
        assert issubclass(ConvergenceError, RuntimeError)
        assert not issubclass(ConvergenceError, ValueError)


class TestRootFinding:

    @pytest.fixture(autouse=True)
    def fresh_cache(self):
        solve_cone_shock.cache_clear()
        yield
        solve_cone_shock.cache_clear()

    def test_no_bracket_below_lower_limit(self, monkeypatch):
        # θ_eff ≈ 0.36° lies below a 1° floor on the lower end
        monkeypatch.setattr(cone, 'THETA_SEED', 1.0)
        monkeypatch.setattr(cone, 'THETA_SEED_MIN', 1.0)
        with pytest.raises(ConvergenceError, match="below"):
            solve_cone_shock(3.0, 5.0)

    def test_iteration_budget_exhausted(self, monkeypatch):
        monkeypatch.setattr(cone, 'THETA_MAXITER', 1)
        with pytest.raises(ConvergenceError, match="did not converge"):
            solve_cone_shock(2.5, 15.0)

    def test_not_an_input_error(self, monkeypatch):
        monkeypatch.setattr(cone, 'THETA_MAXITER', 1)
        with pytest.raises(ConvergenceError) as excinfo:
            cone_full_jump(2.5, 15.0)
        assert not isinstance(excinfo.value, InvalidFlowError)

    def test_failure_is_not_cached(self, monkeypatch):
        monkeypatch.setattr(cone, 'THETA_MAXITER', 1)
        with pytest.raises(ConvergenceError):
            solve_cone_shock(2.5, 15.0)
        monkeypatch.undo()
        assert not solve_cone_shock(2.5, 15.0).detached


class TestIntegrator:

    def test_rhs_radial_derivative(self):
        """dv_r/dφ = v_θ."""
        d = taylor_maccoll(0.5, np.array([0.6, -0.2]))
        assert d[0] == pytest.approx(-0.2)

    def test_uniform_flow_is_exact_solution(self):
        """A uniform stream along the axis: v_r = V cos φ, v_θ = -V sin φ."""
        V = 0.4
        phi0, phi1 = np.radians(40.0), np.radians(15.0)
        phi, v_r, v_theta = integrate_taylor_maccoll(
            V * np.cos(phi0), -V * np.sin(phi0), phi0, phi1)
        assert phi == pytest.approx(phi1)
        assert v_r == pytest.approx(V * np.cos(phi1), rel=1e-8)
        assert v_theta == pytest.approx(-V * np.sin(phi1), rel=1e-8)

    def test_zero_span(self):
        assert integrate_taylor_maccoll(0.5, -0.1, 0.3, 0.3) == (0.3, 0.5, -0.1)

    def test_stop_at_surface(self):
        theta_eff = effective_wedge_angle(2.0, 20.0)
        start = shock_start(2.0, theta_eff)
        phi, _, v_theta = integrate_taylor_maccoll(
            start.v_r, start.v_theta, np.radians(start.beta), np.radians(5.0),
            stop_at_surface=True,
        )
        assert np.degrees(phi) == pytest.approx(20.0, abs=1e-6)
        assert v_theta == 0.0

    def test_step_budget_exhausted(self):
        with pytest.raises(ConvergenceError):
            integrate_taylor_maccoll(0.6, -0.3, np.radians(40.0), np.radians(10.0),
                                     max_steps=1)

    def test_shock_start_detached(self):
        start = shock_start(2.0, 30.0)
        assert start.detached
        assert start.beta == 90.0
        assert start.v_theta < 0
