"""Explicit reaction-diffusion update for the four density fields.

One call advances every cell by dt:

    n' = mf * (n + D ∇²n dt + sources - sinks),  then floored at zero

where sources/sinks are the saturating axion→photon→neutrino conversions and
the neutrino/expansion energy losses, and mf is the metric factor at the
cell's x position.

The update reads only from the `current` snapshot and writes only into `out`,
so every cell is independent of every other cell within a step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import torch

from .constitutive import axion_to_photon_rate, metric_factor, photon_to_neutrino_rate, pressure
from .grid import FieldState, GridGeometry, laplacian_clamped
from .physics_units import CouplingConstants


class NonFiniteFieldError(FloatingPointError):
    """A density became NaN or infinite during an update."""


NonFinitePolicy = Literal["saturate", "raise"]


@dataclass(frozen=True)
class FieldNumerics:
    # [CHOICE] hard floor on every density after the update
    # [REASON] densities and energy are non-negative by construction; the floor
    #          absorbs numerical overshoot of the explicit scheme.
    density_floor: float = 0.0
    # [CHOICE] non-finite policy
    # [FORMULA] saturate: NaN -> floor, -inf -> floor, +inf -> finfo(dtype).max
    #           raise:    NonFiniteFieldError on the first NaN/inf after the floor
    # [NOTES] torch.clamp alone propagates NaN. The reference couplings run with
    #         D dt / dx^2 ≈ 5e11 (explicit limit 1/6), so the default run overflows
    #         after ~20 steps; "saturate" keeps every cell finite and >= 0 so the
    #         run still completes.
    nonfinite: NonFinitePolicy = "saturate"

    def __post_init__(self) -> None:
        if self.nonfinite not in ("saturate", "raise"):
            raise ValueError(f"nonfinite must be 'saturate' or 'raise', got {self.nonfinite!r}")
        if not (self.density_floor >= 0.0):
            raise ValueError(f"density_floor must be >= 0, got {self.density_floor}")


def _floor(values: torch.Tensor, numerics: FieldNumerics) -> torch.Tensor:
    floor = float(numerics.density_floor)
    if numerics.nonfinite == "saturate":
        top = torch.finfo(values.dtype).max
        values = torch.nan_to_num(values, nan=floor, posinf=top, neginf=floor)
    return torch.clamp(values, min=floor)


def _check_finite(state: FieldState, t: float) -> None:
    for name, values in state.items():
        if not bool(torch.isfinite(values).all()):
            bad = int((~torch.isfinite(values)).sum().item())
            raise NonFiniteFieldError(f"{name} has {bad} non-finite cell(s) at t={t:.6e} s")


def enforce_numerics_(state: FieldState, numerics: FieldNumerics | None = None, *, t: float = 0.0) -> FieldState:
    """Apply the floor and non-finite policy to every field of `state` in place.

    Used after passes that rewrite densities outside the update, such as
    braiding, which can push a saturated cell back to +inf.
    """
    numerics = numerics or FieldNumerics()
    for _name, values in state.items():
        values.copy_(_floor(values, numerics))
    if numerics.nonfinite == "raise":
        _check_finite(state, t)
    return state


def reaction_diffusion_step(
    current: FieldState,
    out: FieldState,
    *,
    t: float,
    geometry: GridGeometry,
    couplings: CouplingConstants,
    numerics: FieldNumerics | None = None,
) -> FieldState:
    """Compute the next state of every cell from `current` into `out`."""
    numerics = numerics or FieldNumerics()
    for (name, src), (_, dst) in zip(current.items(), out.items()):
        if src.data_ptr() == dst.data_ptr():
            raise ValueError(f"out.{name} aliases current.{name}; pass a separate buffer")

    dt = float(geometry.dt)
    dx = float(geometry.spacing)

    n_ph = current.grid("photon_density")
    n_ax = current.grid("axion_density")
    n_nu = current.grid("neutrino_density")
    eps = current.grid("energy_density")

    lap_ph = laplacian_clamped(n_ph, dx)
    lap_ax = laplacian_clamped(n_ax, dx)
    lap_nu = laplacian_clamped(n_nu, dx)
    lap_e = laplacian_clamped(eps, dx)

    p = pressure(eps, couplings)

    # x position of each cell column, broadcast over (z, y).
    x_pos = torch.arange(geometry.nx, device=n_ph.device, dtype=n_ph.dtype) * dx
    mf = metric_factor(t, x_pos, couplings)

    d_ax_to_ph = axion_to_photon_rate(n_ax, n_ph, couplings) * dt
    d_ph_to_nu = photon_to_neutrino_rate(n_ph, couplings) * dt

    d_e_nu = float(couplings.lambda_nu) * n_nu * dt
    d_e_exp = p * float(couplings.alpha_expansion) * dt

    ph_new = n_ph + float(couplings.d_photon) * lap_ph * dt + d_ax_to_ph - d_ph_to_nu
    ax_new = n_ax + float(couplings.d_axion) * lap_ax * dt - d_ax_to_ph
    nu_new = n_nu + float(couplings.d_neutrino) * lap_nu * dt + d_ph_to_nu
    e_new = eps + float(couplings.d_energy) * lap_e * dt - d_e_nu - d_e_exp

    out.grid("photon_density").copy_(_floor(ph_new * mf, numerics))
    out.grid("axion_density").copy_(_floor(ax_new * mf, numerics))
    out.grid("neutrino_density").copy_(_floor(nu_new * mf, numerics))
    out.grid("energy_density").copy_(_floor(e_new * mf, numerics))

    if numerics.nonfinite == "raise":
        _check_finite(out, t)
    return out
