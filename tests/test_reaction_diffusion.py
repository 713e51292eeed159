"""Regression tests for the explicit reaction-diffusion update.

These tests run on CPU and validate:
- Agreement with a literal cell-by-cell evaluation of the update rule.
- The step reads only the current snapshot (input untouched, no aliasing).
- Non-negativity floor and the non-finite policy.
- The metric factor rescaling along x.
"""

from __future__ import annotations

import math

import pytest
import torch

from color_algebra.kernels.grid import FieldState, GridGeometry, index, laplacian_at
from color_algebra.kernels.physics_units import CouplingConstants, InitialDensities
from color_algebra.kernels.reaction_diffusion import (
    FieldNumerics,
    NonFiniteFieldError,
    enforce_numerics_,
    reaction_diffusion_step,
)


def _varied_state(geo: GridGeometry) -> FieldState:
    # Integer-valued fields keep every stencil sum exact.
    i = torch.arange(geo.num_cells, dtype=torch.float64)
    return FieldState(
        geo,
        1000.0 + i * i,
        500.0 + 3.0 * i,
        200.0 + 7.0 * torch.remainder(i, 5.0),
        30.0 + 2.0 * i,
    )


def _unit_couplings() -> CouplingConstants:
    """O(1) couplings so every term of the update is visible in float64."""
    return CouplingConstants(
        g_a_gamma=1e-3,
        photon_to_neutrino_coeff=2e-3,
        saturation_scale=5000.0,
        epsilon_crit=50.0,
        delta=10.0,
        d_photon=0.01,
        d_axion=0.02,
        d_neutrino=0.03,
        d_energy=0.04,
        lambda_nu=1e-3,
        alpha_expansion=2e-3,
        gw_strength=1e-3,
        gw_frequency=1.0,
    )


def _reference_cell(state: FieldState, geo: GridGeometry, c: CouplingConstants, t: float, x: int, y: int, z: int):
    """One cell of the update, written out with python floats."""
    idx = index(geo, x, y, z)
    n_ph = float(state.photon_density[idx])
    n_ax = float(state.axion_density[idx])
    n_nu = float(state.neutrino_density[idx])
    eps = float(state.energy_density[idx])

    lap_ph = laplacian_at(state.photon_density, geo, x, y, z)
    lap_ax = laplacian_at(state.axion_density, geo, x, y, z)
    lap_nu = laplacian_at(state.neutrino_density, geo, x, y, z)
    lap_e = laplacian_at(state.energy_density, geo, x, y, z)

    w = 0.5 * (1.0 + math.tanh((eps - c.epsilon_crit) / c.delta))
    p = w * (1.0 / 3.0) * eps + (1.0 - w) * 0.15 * eps
    mf = 1.0 + c.gw_strength * math.sin(2.0 * math.pi * c.gw_frequency * t) * (x * geo.spacing)

    d_ax_to_ph = c.g_a_gamma * n_ax / (1.0 + n_ph / c.saturation_scale) * geo.dt
    d_ph_to_nu = c.photon_to_neutrino_coeff * n_ph / (1.0 + n_ph / c.saturation_scale) * geo.dt
    d_e_nu = c.lambda_nu * n_nu * geo.dt
    d_e_exp = p * c.alpha_expansion * geo.dt

    ph = n_ph + c.d_photon * lap_ph * geo.dt + d_ax_to_ph - d_ph_to_nu
    ax = n_ax + c.d_axion * lap_ax * geo.dt - d_ax_to_ph
    nu = n_nu + c.d_neutrino * lap_nu * geo.dt + d_ph_to_nu
    e = eps + c.d_energy * lap_e * geo.dt - d_e_nu - d_e_exp
    return tuple(max(v * mf, 0.0) for v in (ph, ax, nu, e))


def test_matches_cellwise_reference():
    geo = GridGeometry(nx=4, ny=3, nz=2, spacing=1.0, dt=0.5)
    c = _unit_couplings()
    state = _varied_state(geo)
    out = FieldState.empty_like(state)
    t = 0.1

    reaction_diffusion_step(state, out, t=t, geometry=geo, couplings=c)

    for z in range(geo.nz):
        for y in range(geo.ny):
            for x in range(geo.nx):
                expected = _reference_cell(state, geo, c, t, x, y, z)
                idx = index(geo, x, y, z)
                got = tuple(float(values[idx]) for _name, values in out.items())
                assert got == pytest.approx(expected, rel=1e-12)


def test_uniform_state_reaction_terms():
    # Diffusion off: a uniform field still carries the float64 residual of
    # Σ neighbours - 6c, which the grid tests cover.
    geo = GridGeometry(nx=3, ny=3, nz=3)
    c = CouplingConstants(d_photon=0.0, d_axion=0.0, d_neutrino=0.0, d_energy=0.0)
    init = InitialDensities()
    state = FieldState.uniform(geo, init)
    out = FieldState.empty_like(state)

    reaction_diffusion_step(state, out, t=0.0, geometry=geo, couplings=c)

    dt = geo.dt
    sat = 1.0 + init.photon / 1e33
    d_ax_to_ph = c.g_a_gamma * init.axion / sat * dt
    d_ph_to_nu = c.photon_to_neutrino_coeff * init.photon / sat * dt
    w = 0.5 * (1.0 + math.tanh((init.energy - c.epsilon_crit) / c.delta))
    p = w * init.energy / 3.0 + (1.0 - w) * 0.15 * init.energy

    assert torch.allclose(out.photon_density, torch.full_like(out.photon_density, init.photon + d_ax_to_ph - d_ph_to_nu), rtol=1e-14)
    assert torch.allclose(out.axion_density, torch.full_like(out.axion_density, init.axion - d_ax_to_ph), rtol=1e-14)
    assert torch.allclose(out.neutrino_density, torch.full_like(out.neutrino_density, init.neutrino + d_ph_to_nu), rtol=1e-14)
    e_expected = init.energy - c.lambda_nu * init.neutrino * dt - p * c.alpha_expansion * dt
    assert torch.allclose(out.energy_density, torch.full_like(out.energy_density, e_expected), rtol=1e-14)


def test_reads_only_the_current_snapshot():
    geo = GridGeometry(nx=4, ny=4, nz=4)
    state = _varied_state(geo)
    before = state.clone()
    out = FieldState.empty_like(state)

    reaction_diffusion_step(state, out, t=0.0, geometry=geo, couplings=CouplingConstants())

    for name, values in state.items():
        assert torch.equal(values, getattr(before, name))


def test_rejects_aliased_output():
    geo = GridGeometry(nx=2, ny=2, nz=2)
    state = FieldState.uniform(geo)
    with pytest.raises(ValueError):
        reaction_diffusion_step(state, state, t=0.0, geometry=geo, couplings=CouplingConstants())


def test_non_negative_after_overshoot():
    # Strong diffusion of a single spike overshoots the centre far below zero.
    geo = GridGeometry(nx=5, ny=5, nz=5, spacing=1.0, dt=1.0)
    c = CouplingConstants(d_photon=1.0, d_axion=1.0, d_neutrino=1.0, d_energy=1.0)
    zeros = torch.zeros(geo.num_cells, dtype=torch.float64)
    state = FieldState(geo, zeros.clone(), zeros.clone(), zeros.clone(), zeros.clone())
    centre = index(geo, 2, 2, 2)
    for _name, values in state.items():
        values[centre] = 1e30
    out = FieldState.empty_like(state)

    reaction_diffusion_step(state, out, t=0.0, geometry=geo, couplings=c)

    for _name, values in out.items():
        assert float(values.min()) >= 0.0
        assert float(values[centre]) == 0.0
        assert float(values[index(geo, 1, 2, 2)]) > 0.0


class TestNonFinitePolicy:
    def _poisoned(self, value: float) -> tuple[FieldState, GridGeometry]:
        geo = GridGeometry(nx=3, ny=3, nz=3)
        state = FieldState.uniform(geo)
        state.photon_density[index(geo, 1, 1, 1)] = value
        return state, geo

    def test_raise_policy_fails_fast(self):
        state, geo = self._poisoned(float("inf"))
        out = FieldState.empty_like(state)
        with pytest.raises(NonFiniteFieldError, match="photon_density"):
            reaction_diffusion_step(
                state, out,
                t=0.0, geometry=geo, couplings=CouplingConstants(),
                numerics=FieldNumerics(nonfinite="raise"),
            )

    def test_raise_policy_catches_nan(self):
        state, geo = self._poisoned(float("nan"))
        out = FieldState.empty_like(state)
        with pytest.raises(NonFiniteFieldError):
            reaction_diffusion_step(
                state, out,
                t=0.0, geometry=geo, couplings=CouplingConstants(),
                numerics=FieldNumerics(nonfinite="raise"),
            )

    def test_saturate_policy_keeps_cells_finite(self):
        state, geo = self._poisoned(float("inf"))
        out = FieldState.empty_like(state)

        reaction_diffusion_step(state, out, t=0.0, geometry=geo, couplings=CouplingConstants())

        for _name, values in out.items():
            assert bool(torch.isfinite(values).all())
            assert float(values.min()) >= 0.0
        top = torch.finfo(torch.float64).max
        # centre: inf - inf -> NaN -> floor; neighbour: +inf -> dtype max
        assert float(out.photon_density[index(geo, 1, 1, 1)]) == 0.0
        assert float(out.photon_density[index(geo, 0, 1, 1)]) == top
        assert out.is_saturated()

    def test_default_is_saturate(self):
        assert FieldNumerics().nonfinite == "saturate"

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError):
            FieldNumerics(nonfinite="ignore")  # type: ignore[arg-type]

    def test_enforce_saturates_in_place(self):
        geo = GridGeometry(nx=3, ny=1, nz=1)
        top = torch.finfo(torch.float64).max
        ph = torch.tensor([float("inf"), float("nan"), -5.0], dtype=torch.float64)
        ones = torch.ones(3, dtype=torch.float64)
        state = FieldState(geo, ph, ones, ones.clone(), ones.clone())

        assert enforce_numerics_(state) is state

        assert state.photon_density is ph
        assert ph.tolist() == [top, 0.0, 0.0]
        assert state.axion_density.tolist() == [1.0, 1.0, 1.0]

    def test_enforce_raise_policy(self):
        geo = GridGeometry(nx=2, ny=1, nz=1)
        ok = torch.ones(2, dtype=torch.float64)
        bad = torch.tensor([1.0, float("inf")], dtype=torch.float64)
        state = FieldState(geo, ok, bad, ok.clone(), ok.clone())
        with pytest.raises(NonFiniteFieldError, match="axion_density"):
            enforce_numerics_(state, FieldNumerics(nonfinite="raise"), t=1.0)


def test_metric_factor_rescales_along_x():
    geo = GridGeometry(nx=5, ny=2, nz=2, spacing=1.0, dt=1.0)
    c = CouplingConstants(
        g_a_gamma=0.0,
        photon_to_neutrino_coeff=0.0,
        lambda_nu=0.0,
        alpha_expansion=0.0,
        gw_strength=0.1,
        gw_frequency=1.0,
    )
    state = FieldState.uniform(geo)
    out = FieldState.empty_like(state)

    reaction_diffusion_step(state, out, t=0.25, geometry=geo, couplings=c)

    ph = out.grid("photon_density")
    for x in range(geo.nx):
        expected = 1e30 * (1.0 + 0.1 * x)
        assert torch.allclose(ph[..., x], torch.full_like(ph[..., x], expected), rtol=1e-14)
